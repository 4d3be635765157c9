"""
Configuration Loader

Loads YAML configuration from the config directory and merges it with
deployment overrides taken from environment variables (optionally read
from a .env file).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .constants import ENV_REGULAR, ENV_VIRTUAL, ENVIRONMENTS, REGULAR_CONTEXTS

SETTINGS_FILE = 'settings.yaml'


def _get_config_dir() -> Path:
    """Get the config directory path."""
    # Try relative to this file first
    module_dir = Path(__file__).parent.parent.parent
    config_dir = module_dir / 'config'

    if config_dir.exists():
        return config_dir

    # Try current working directory
    cwd_config = Path.cwd() / 'config'
    if cwd_config.exists():
        return cwd_config

    raise FileNotFoundError(
        f"Config directory not found. Tried: {config_dir}, {cwd_config}"
    )


def load_config(filename: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of the config file (e.g., 'settings.yaml')

    Returns:
        Parsed YAML content as dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = _get_config_dir() / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def resolve_environment(context: Optional[str]) -> str:
    """
    Map a sync-trigger context to an environment name.

    Store-front contexts (distri1, naranjos2) and 'regular' select the
    regular environment; everything else, including None, is virtual.
    """
    if context and context.strip().lower() in REGULAR_CONTEXTS:
        return ENV_REGULAR
    return ENV_VIRTUAL


@dataclass(frozen=True)
class Settings:
    """Resolved settings for one environment."""

    environment: str
    data_dir: Path
    store_path: Path
    manifest_path: Path
    images_dir: Path

    # Remote catalog
    api_key: str
    base_id: str
    products_table: str = "Products"
    webphotos_table: str = "WebPhotos"
    view: str = "Grid view"
    request_timeout: float = 30

    # Sync behaviour
    full_refresh: bool = True
    strict_verification: bool = False
    lease_ttl_seconds: float = 1800
    compact_after_update: bool = False

    # Attachments
    placement_mode: str = "local"
    url_prefix: str = "/api/images"
    placeholder_url: str = "/placeholder-product.svg"
    attachment_timeout: float = 10
    attachment_max_retries: int = 3
    attachment_batch_size: int = 10
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.base_id)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings(
    environment: str,
    config: Optional[Dict[str, Any]] = None,
    env: Optional[Dict[str, str]] = None,
) -> Settings:
    """
    Build Settings for one environment.

    Args:
        environment: 'virtual' or 'regular'
        config: Parsed settings (if None, loads config/settings.yaml)
        env: Environment variables (if None, loads .env then uses os.environ)

    Returns:
        Frozen Settings instance

    Raises:
        ValueError: If environment is unknown
    """
    if environment not in ENVIRONMENTS:
        raise ValueError(
            f"Unknown environment: {environment}. Supported: {', '.join(ENVIRONMENTS)}"
        )

    if config is None:
        config = load_config(SETTINGS_FILE)
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    env_config = config.get('environments', {}).get(environment, {})
    airtable = config.get('airtable', {})
    sync = config.get('sync', {})
    attachments = config.get('attachments', {})

    # Mounted volume wins over the configured data directory
    data_dir = Path(env.get('CATALOG_DATA_DIR') or config.get('data_dir', 'data'))

    api_key_env = env_config.get('api_key_env', 'AIRTABLE_API_KEY')
    base_id_env = env_config.get('base_id_env', 'AIRTABLE_BASE_ID')

    return Settings(
        environment=environment,
        data_dir=data_dir,
        store_path=data_dir / env_config.get('store_file', f'{environment}-products.db'),
        manifest_path=data_dir / env_config.get('manifest_file', f'{environment}-columns.json'),
        images_dir=data_dir / attachments.get('images_dir', 'images'),
        api_key=env.get(api_key_env, ''),
        base_id=env.get(base_id_env, ''),
        products_table=env.get('AIRTABLE_TABLE_NAME') or airtable.get('products_table', 'Products'),
        webphotos_table=airtable.get('webphotos_table', 'WebPhotos'),
        view=airtable.get('view', 'Grid view'),
        request_timeout=float(airtable.get('timeout', 30)),
        full_refresh=_as_bool(env_config.get('full_refresh', environment == ENV_VIRTUAL)),
        strict_verification=_as_bool(
            env.get('CATALOG_STRICT_VERIFICATION', sync.get('strict_verification', False))
        ),
        lease_ttl_seconds=float(sync.get('lease_ttl_seconds', 1800)),
        compact_after_update=_as_bool(sync.get('compact_after_update', False)),
        placement_mode=(env.get('CATALOG_PLACEMENT_MODE') or attachments.get('placement', 'local')).lower(),
        url_prefix=attachments.get('url_prefix', '/api/images').rstrip('/'),
        placeholder_url=attachments.get('placeholder_url', '/placeholder-product.svg'),
        attachment_timeout=float(attachments.get('timeout', 10)),
        attachment_max_retries=int(attachments.get('max_retries', 3)),
        attachment_batch_size=int(attachments.get('batch_size', 10)),
        cloudinary_cloud_name=env.get('CLOUDINARY_CLOUD_NAME', ''),
        cloudinary_api_key=env.get('CLOUDINARY_API_KEY', ''),
        cloudinary_api_secret=env.get('CLOUDINARY_API_SECRET', ''),
    )
