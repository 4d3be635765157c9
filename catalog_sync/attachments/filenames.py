"""
Stable attachment filenames.

The same descriptor always maps to the same filename, so repeat syncs
against an unchanged source reuse assets instead of duplicating them.

Name shape: <stem>_<key><ext>
    stem - original filename (or last URL path segment), sanitized
    key  - provider attachment id, else one found in the URL, else md5(url)[:8]
    ext  - original extension, default .jpg
"""

from __future__ import annotations

import hashlib
import os
import re
from typing import Optional
from urllib.parse import unquote, urlparse

from ..common.text_utils import sanitize_filename
from ..models import AttachmentDescriptor

DEFAULT_EXTENSION = ".jpg"
MAX_STEM_LENGTH = 60

# Provider attachment ids: att + 14 alphanumerics
ATTACHMENT_ID_PATTERN = re.compile(r"\batt[A-Za-z0-9]{14}\b")
# Legacy CDN paths: /.attachments/<long id>/...
LEGACY_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_-]{21,}$")
LEGACY_HOSTS = ("dl.airtable.com",)


def extract_attachment_id(url: str) -> Optional[str]:
    """
    Find a stable attachment identifier embedded in a URL.

    Example:
        >>> extract_attachment_id("https://cdn.example.com/attABCDEFGHIJKLMN/photo.jpg")
        'attABCDEFGHIJKLMN'
        >>> extract_attachment_id("https://example.com/photo.jpg") is None
        True
    """
    match = ATTACHMENT_ID_PATTERN.search(url)
    if match:
        return match.group(0)

    parsed = urlparse(url)
    if parsed.netloc in LEGACY_HOSTS:
        for segment in parsed.path.split("/"):
            if LEGACY_SEGMENT_PATTERN.match(segment):
                return segment
    return None


def _url_basename(url: str) -> str:
    return unquote(urlparse(url).path.rstrip("/").split("/")[-1])


def stable_filename(descriptor: AttachmentDescriptor) -> str:
    """
    Compute the filename an attachment is stored under.

    Example:
        >>> stable_filename(AttachmentDescriptor(
        ...     url="https://x.example/a", filename="Bolso Rojo.PNG", attachment_id="attABCDEFGHIJKLMN"))
        'Bolso_Rojo_attABCDEFGHIJKLMN.png'
    """
    source = descriptor.filename or _url_basename(descriptor.url)
    stem, extension = os.path.splitext(sanitize_filename(source))
    if not extension:
        extension = os.path.splitext(_url_basename(descriptor.url))[1] or DEFAULT_EXTENSION
    extension = extension.lower()
    stem = stem[:MAX_STEM_LENGTH] or "image"

    key = descriptor.attachment_id or extract_attachment_id(descriptor.url)
    if not key:
        key = hashlib.md5(descriptor.url.encode("utf-8")).hexdigest()[:8]

    return f"{stem}_{sanitize_filename(key)}{extension}"
