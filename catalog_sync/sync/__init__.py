"""
Sync orchestration.

Modules:
    lock - Lease mutex (one in-flight sync per environment, with TTL)
    orchestrator - Product and web-photo sync passes
    trigger - Request handler mapping outcomes to status codes
"""

from .lock import Lease, SyncLease
from .orchestrator import CatalogSyncOrchestrator, get_process_lease
from .trigger import handle_sync_request

__all__ = [
    # Lease
    'Lease',
    'SyncLease',
    'get_process_lease',
    # Orchestrator
    'CatalogSyncOrchestrator',
    # Trigger
    'handle_sync_request',
]
