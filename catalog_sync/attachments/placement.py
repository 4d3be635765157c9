"""
Attachment placement strategies.

Where fetched payloads end up and which URL the store records for them:
- LocalPlacement: files under the data volume, served by an internal route
- CloudinaryPlacement: signed upload to the Cloudinary REST API

The mode is a deployment setting; build_placement() picks it from Settings.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Iterable, Optional

import requests

from ..common.errors import AttachmentError

logger = logging.getLogger(__name__)


class LocalPlacement:
    """
    Stores payloads at <root>/<environment>/<asset_class>/<filename>.

    Usage:
        placement = LocalPlacement("data/images", url_prefix="/api/images")
        placement.store("virtual", "products", "bolso_abc.jpg", payload)
        # '/api/images/virtual/products/bolso_abc.jpg'
    """

    def __init__(self, root: str | Path, url_prefix: str = "/api/images"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _directory(self, environment: str, asset_class: str) -> Path:
        return self.root / environment / asset_class

    def url_for(self, environment: str, asset_class: str, filename: str) -> str:
        return f"{self.url_prefix}/{environment}/{asset_class}/{filename}"

    def lookup(self, environment: str, asset_class: str, filename: str) -> Optional[str]:
        """URL of an already placed file, or None."""
        path = self._directory(environment, asset_class) / filename
        if path.is_file() and path.stat().st_size > 0:
            return self.url_for(environment, asset_class, filename)
        return None

    def store(self, environment: str, asset_class: str, filename: str, payload: bytes) -> str:
        directory = self._directory(environment, asset_class)
        directory.mkdir(parents=True, exist_ok=True)

        path = directory / filename
        tmp_path = None
        try:
            # Unique temp name per call, even for the same target file
            with tempfile.NamedTemporaryFile(
                dir=directory, prefix=f".{filename}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(payload)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise AttachmentError(filename, f"write failed: {e}") from e

        logger.debug("Saved %s (%d bytes)", path, len(payload))
        return self.url_for(environment, asset_class, filename)

    def cleanup_unused(self, environment: str, asset_class: str, keep: Iterable[str]) -> int:
        """
        Remove files no longer referenced.

        Args:
            keep: Filenames or URLs still in use

        Returns:
            Number of files removed
        """
        directory = self._directory(environment, asset_class)
        if not directory.is_dir():
            return 0

        keep_names = {str(item).rstrip("/").split("/")[-1] for item in keep}
        removed = 0
        for path in directory.iterdir():
            if path.is_file() and path.name not in keep_names:
                path.unlink()
                removed += 1

        if removed:
            logger.info("Removed %d unused %s/%s image(s)", removed, environment, asset_class)
        return removed


class CloudinaryPlacement:
    """
    Uploads payloads to Cloudinary under folder <environment>-<asset_class>.

    The public id is the filename without extension, so re-uploading the
    same attachment resolves to the same asset.
    """

    UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        if not (cloud_name and api_key and api_secret):
            raise ValueError("Cloudinary placement needs cloud name, API key and API secret")
        self.upload_url = self.UPLOAD_URL.format(cloud_name=cloud_name)
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def sign(self, params: dict) -> str:
        """Signature over the alphabetically sorted upload parameters."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1((to_sign + self.api_secret).encode("utf-8")).hexdigest()

    def lookup(self, environment: str, asset_class: str, filename: str) -> Optional[str]:
        # Uploads with overwrite=false already return the existing asset
        return None

    def store(self, environment: str, asset_class: str, filename: str, payload: bytes) -> str:
        params = {
            "folder": f"{environment}-{asset_class}",
            "overwrite": "false",
            "public_id": os.path.splitext(filename)[0],
            "timestamp": str(int(time.time())),
        }
        data = {**params, "api_key": self.api_key, "signature": self.sign(params)}

        try:
            response = self.session.post(
                self.upload_url,
                data=data,
                files={"file": (filename, payload)},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AttachmentError(filename, f"upload failed: {e}") from e

        if response.status_code >= 400:
            raise AttachmentError(filename, f"upload HTTP {response.status_code}: {response.text[:200]}")

        secure_url = response.json().get("secure_url")
        if not secure_url:
            raise AttachmentError(filename, "upload response has no secure_url")
        logger.debug("Uploaded %s -> %s", filename, secure_url)
        return secure_url


def build_placement(settings):
    """Placement strategy for the configured mode ('local' or 'cdn')."""
    if settings.placement_mode == "cdn":
        return CloudinaryPlacement(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            timeout=settings.request_timeout,
        )
    if settings.placement_mode != "local":
        raise ValueError(f"Unknown placement mode: {settings.placement_mode}")
    return LocalPlacement(settings.images_dir, url_prefix=settings.url_prefix)
