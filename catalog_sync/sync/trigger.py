"""
Sync trigger.

Entry point used by admin tooling. Takes the request payload
({"context": "virtual" | "regular" | <storefront>}) and returns an
HTTP-style (status, body) pair:

    200 - pass completed, body is SyncResult.to_dict()
    409 - a sync for the environment is already running
    500 - the pass aborted (connectivity, verification, unexpected error)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..common.config_loader import load_settings, resolve_environment
from ..common.errors import CatalogSyncError, LockConflictError
from .lock import SyncLease
from .orchestrator import CatalogSyncOrchestrator

logger = logging.getLogger(__name__)

KIND_PRODUCTS = "products"
KIND_WEBPHOTOS = "webphotos"


def handle_sync_request(
    payload: Optional[Mapping[str, Any]] = None,
    settings_loader: Callable = load_settings,
    orchestrator_factory: Optional[Callable] = None,
    lease: Optional[SyncLease] = None,
) -> Tuple[int, Dict[str, Any]]:
    """
    Run the sync a trigger request asks for.

    Args:
        payload: Request body; `context` selects the environment and
            `kind` selects products (default) or webphotos
        settings_loader: Builds Settings for an environment
        orchestrator_factory: Builds the orchestrator from Settings
        lease: Lease table (defaults to the process-wide one)

    Returns:
        (status code, response body)
    """
    payload = payload or {}
    environment = resolve_environment(payload.get("context"))
    kind = payload.get("kind") or KIND_PRODUCTS
    factory = orchestrator_factory or CatalogSyncOrchestrator.from_settings

    if kind not in (KIND_PRODUCTS, KIND_WEBPHOTOS):
        return 400, {"success": False, "environment": environment,
                     "errors": [f"Unknown sync kind: {kind}"]}

    try:
        settings = settings_loader(environment)
        orchestrator = factory(settings, lease=lease)
    except (OSError, ValueError) as e:
        logger.error("Cannot set up %s sync: %s", environment, e)
        return 500, {"success": False, "environment": environment, "errors": [str(e)]}

    try:
        if kind == KIND_WEBPHOTOS:
            result = orchestrator.sync_webphotos()
        else:
            result = orchestrator.run_full_sync()
    except LockConflictError as e:
        logger.warning("Rejected %s sync: %s", environment, e)
        return 409, {"success": False, "conflict": True, "environment": environment,
                     "errors": [str(e)]}
    except CatalogSyncError as e:
        logger.error("%s sync aborted: %s", environment, e)
        return 500, {"success": False, "environment": environment, "errors": [str(e)]}
    except Exception as e:
        logger.exception("%s sync crashed", environment)
        return 500, {"success": False, "environment": environment, "errors": [str(e)]}
    finally:
        orchestrator.close()

    return 200, result.to_dict()
