"""
Remote catalog integration modules.

Modules:
    api_client - Read-only Airtable client (records, field metadata)
    manifest - Column manifest artifact for admin tooling
"""

from .api_client import AirtableClient
from .manifest import (
    build_column_manifest,
    manifest_type,
    read_column_manifest,
    write_column_manifest,
)

__all__ = [
    # API Client
    'AirtableClient',
    # Column manifest
    'build_column_manifest',
    'manifest_type',
    'read_column_manifest',
    'write_column_manifest',
]
