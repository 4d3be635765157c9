"""
Data models for catalog synchronization.

This module contains pure data classes with no business logic.
"""

from .product import (
    AttachmentDescriptor,
    CategoryRelation,
    FieldMeta,
    RemoteRecord,
    SyncResult,
)

__all__ = ['AttachmentDescriptor', 'CategoryRelation', 'FieldMeta', 'RemoteRecord', 'SyncResult']
