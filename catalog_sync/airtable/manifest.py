"""
Column Manifest

Writes the [{key, label, type}] column list consumed by admin tooling.
The file is fully overwritten on every sync.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from ..common.constants import TIMESTAMP_FIELDS
from ..models import FieldMeta

logger = logging.getLogger(__name__)

# Provider field type -> manifest column type
FIELD_TYPE_MAP = {
    "number": "number",
    "currency": "number",
    "percent": "number",
    "rating": "number",
    "autoNumber": "number",
    "checkbox": "boolean",
    "multipleAttachments": "attachment",
    "singleSelect": "select",
    "multipleSelects": "multipleSelect",
    "multilineText": "longText",
    "richText": "longText",
    "email": "email",
    "phoneNumber": "phone",
    "date": "date",
    "dateTime": "date",
    "createdTime": "date",
    "lastModifiedTime": "date",
}


def manifest_type(field_type: str) -> str:
    """Map a provider field type to a manifest column type (default 'text')."""
    return FIELD_TYPE_MAP.get(field_type, "text")


def build_column_manifest(fields: Iterable[FieldMeta]) -> list[dict]:
    """Build manifest entries, skipping bookkeeping timestamps and duplicates."""
    columns = []
    seen = set()
    for meta in fields:
        if meta.name in TIMESTAMP_FIELDS or meta.name.lower() in seen:
            continue
        seen.add(meta.name.lower())
        columns.append({
            "key": meta.name,
            "label": meta.name,
            "type": manifest_type(meta.type),
        })
    return columns


def write_column_manifest(path: str | Path, fields: Iterable[FieldMeta]) -> int:
    """
    Overwrite the manifest file.

    Args:
        path: Manifest file path (parent directories are created)
        fields: Declared remote fields

    Returns:
        Number of columns written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    columns = build_column_manifest(fields)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(columns, f, indent=2, ensure_ascii=False)

    logger.info("Wrote %d columns to %s", len(columns), path)
    return len(columns)


def read_column_manifest(path: str | Path) -> list[dict]:
    """Read the manifest, returning an empty list when it does not exist."""
    path = Path(path)
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
