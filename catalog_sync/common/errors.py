"""
Sync error taxonomy.

Fatal kinds (ConnectivityError, VerificationError, LockConflictError)
abort a pass. Recoverable kinds (ConversionError, AttachmentError) are
recorded against one record or one image and the pass continues.
"""


class CatalogSyncError(Exception):
    """Base class for all catalog sync failures."""


class ConnectivityError(CatalogSyncError):
    """Remote catalog provider unreachable or misconfigured."""


class VerificationError(CatalogSyncError):
    """Store state did not match what a sync step expected."""


class ConversionError(CatalogSyncError):
    """A single remote record could not be normalized."""

    def __init__(self, record_id: str, reason: str):
        super().__init__(f"record {record_id}: {reason}")
        self.record_id = record_id
        self.reason = reason


class AttachmentError(CatalogSyncError):
    """A single attachment exhausted its retries."""

    def __init__(self, url: str, reason: str, attempts: int = 0):
        super().__init__(f"{url}: {reason} (after {attempts} attempts)")
        self.url = url
        self.reason = reason
        self.attempts = attempts


class LockConflictError(CatalogSyncError):
    """A sync for the same key is already in flight."""

    def __init__(self, key: str, owner: str = ""):
        message = f"Sync already in progress for '{key}'"
        if owner:
            message += f" (held by {owner})"
        super().__init__(message)
        self.key = key
        self.owner = owner
