"""
Record normalization modules.

Modules:
    field_mapper - FieldMapper (raw record -> per-environment attribute bag)
    attachments - Attachment field detection and descriptor coercion
"""

from .attachments import (
    descriptor_fields,
    is_attachment_field,
    to_attachment_descriptors,
)
from .field_mapper import FieldMapper, normalize_webphoto, parse_float, parse_int

__all__ = [
    # Field mapping
    'FieldMapper',
    'normalize_webphoto',
    'parse_float',
    'parse_int',
    # Attachments
    'descriptor_fields',
    'is_attachment_field',
    'to_attachment_descriptors',
]
