# Common utilities
from .config_loader import Settings, load_config, load_settings, resolve_environment
from .errors import (
    AttachmentError,
    CatalogSyncError,
    ConnectivityError,
    ConversionError,
    LockConflictError,
    VerificationError,
)
from .log_config import setup_logging
from .text_utils import slugify
