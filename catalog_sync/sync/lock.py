"""
Sync lease.

At most one sync per key (e.g. "products:virtual") runs at a time. A second
request is rejected immediately, never queued. Leases expire after a TTL so
a crashed holder cannot block future syncs forever.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

from ..common.errors import LockConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Lease:
    key: str
    owner: str
    token: str
    expires_at: float


class SyncLease:
    """
    Process-wide lease table.

    Usage:
        lease = SyncLease(ttl_seconds=1800)
        with lease.hold("products:virtual", owner="admin"):
            ...
    """

    def __init__(self, ttl_seconds: float = 1800, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._leases: Dict[str, Lease] = {}
        self._lock = threading.Lock()

    def acquire(self, key: str, owner: str = "") -> str:
        """
        Take the lease for `key`.

        Returns:
            Token to pass to release()

        Raises:
            LockConflictError: If an unexpired lease is held for `key`
        """
        with self._lock:
            now = self.clock()
            current = self._leases.get(key)
            if current is not None:
                if current.expires_at > now:
                    raise LockConflictError(key, current.owner)
                logger.warning("Taking over expired lease on %s (held by %s)",
                               key, current.owner or "unknown")

            token = uuid.uuid4().hex
            self._leases[key] = Lease(key, owner, token, now + self.ttl_seconds)

        logger.debug("Acquired lease on %s", key)
        return token

    def release(self, token: str) -> bool:
        """Release a lease. Unknown or already released tokens are ignored."""
        with self._lock:
            for key, lease in list(self._leases.items()):
                if lease.token == token:
                    del self._leases[key]
                    logger.debug("Released lease on %s", key)
                    return True
        return False

    def holder(self, key: str) -> Optional[Lease]:
        """The unexpired lease on `key`, if any."""
        with self._lock:
            lease = self._leases.get(key)
            if lease is not None and lease.expires_at > self.clock():
                return lease
            return None

    def is_held(self, key: str) -> bool:
        return self.holder(key) is not None

    @contextmanager
    def hold(self, key: str, owner: str = "") -> Iterator[str]:
        """Hold the lease for the duration of a block, releasing on any exit."""
        token = self.acquire(key, owner)
        try:
            yield token
        finally:
            self.release(token)
