"""
Attachment field detection and descriptor coercion.

A field is an attachment field when the provider declares it as one
(`multipleAttachments`), or when it is a computed field (lookup, rollup,
formula) whose values are {url, ...} objects. Fields with no declared type
fall back to a name heuristic: the name contains "image", "photo",
"attachment" or "url".
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..models import AttachmentDescriptor

ATTACHMENT_FIELD_TYPE = "multipleAttachments"
ATTACHMENT_NAME_MARKERS = ("image", "photo", "attachment", "url")
# Computed types that can carry attachment objects from a linked table
COMPUTED_FIELD_TYPES = frozenset({"multipleLookupValues", "lookup", "rollup", "formula"})


def _holds_attachment_objects(value: Any) -> bool:
    items = value if isinstance(value, (list, tuple)) else [value]
    return bool(items) and all(
        isinstance(item, Mapping) and isinstance(item.get("url"), str) and item["url"].strip()
        for item in items
    )


def is_attachment_field(
    name: str,
    field_types: Optional[Mapping[str, str]] = None,
    value: Any = None,
) -> bool:
    """
    Decide whether a field carries attachment references.

    Args:
        name: Remote field name
        field_types: Declared field types by name (from the metadata call)
        value: Raw field value, inspected for computed field types

    Returns:
        True if values of this field should become attachment descriptors
    """
    if field_types:
        declared = field_types.get(name)
        if declared and declared != "unknown":
            if declared in COMPUTED_FIELD_TYPES:
                return _holds_attachment_objects(value)
            return declared == ATTACHMENT_FIELD_TYPE

    lowered = name.lower()
    return any(marker in lowered for marker in ATTACHMENT_NAME_MARKERS)


def _descriptor_from_item(item: Any) -> Optional[AttachmentDescriptor]:
    if isinstance(item, str):
        url = item.strip()
        return AttachmentDescriptor(url=url) if url else None

    if isinstance(item, Mapping):
        url = item.get("url")
        if not isinstance(url, str) or not url.strip():
            return None
        filename = item.get("filename")
        attachment_id = item.get("id")
        return AttachmentDescriptor(
            url=url.strip(),
            filename=filename if isinstance(filename, str) else "",
            attachment_id=attachment_id if isinstance(attachment_id, str) else "",
        )

    if isinstance(item, AttachmentDescriptor):
        return item

    return None


def to_attachment_descriptors(value: Any) -> list[AttachmentDescriptor]:
    """
    Coerce a raw field value into an attachment descriptor list.

    - a string becomes a one-element list
    - a single {url, ...} object becomes a one-element list
    - a list keeps {url, filename} objects and URL strings, dropping anything else

    Example:
        >>> to_attachment_descriptors("https://cdn.example.com/a.jpg")
        [AttachmentDescriptor(url='https://cdn.example.com/a.jpg', filename='', attachment_id='')]
    """
    if value is None:
        return []

    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]

    descriptors = []
    for item in items:
        descriptor = _descriptor_from_item(item)
        if descriptor is not None:
            descriptors.append(descriptor)
    return descriptors


def descriptor_fields(bag: Mapping[str, Any]) -> list[str]:
    """Names of fields in a normalized bag that still hold descriptors."""
    return [
        key for key, value in bag.items()
        if isinstance(value, list) and value
        and all(isinstance(item, AttachmentDescriptor) for item in value)
    ]
