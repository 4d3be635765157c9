"""
Attachment retrieval and re-hosting.

This package provides:
- stable_filename: deterministic asset names per descriptor
- ImageFetcher: HTTP download with timeout and retries
- LocalPlacement / CloudinaryPlacement: where payloads are kept
- AttachmentPipeline: batched descriptor -> URL resolution
"""

from .fetcher import ImageFetcher
from .filenames import extract_attachment_id, stable_filename
from .pipeline import AttachmentPipeline
from .placement import CloudinaryPlacement, LocalPlacement, build_placement

__all__ = [
    # Filenames
    'extract_attachment_id',
    'stable_filename',
    # Retrieval
    'ImageFetcher',
    # Placement
    'CloudinaryPlacement',
    'LocalPlacement',
    'build_placement',
    # Pipeline
    'AttachmentPipeline',
]
