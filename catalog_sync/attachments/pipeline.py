"""
Attachment Retrieval Pipeline

Turns attachment descriptors into durable URLs:
    filename (stable) -> existing asset? -> fetch with retries -> place

Descriptors are processed in fixed-size batches. Items within a batch run
concurrently; batches run one after another. A descriptor that cannot be
resolved yields the placeholder URL and an entry in the caller's error list.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from ..common.errors import AttachmentError
from ..models import AttachmentDescriptor
from ..normalization.attachments import descriptor_fields
from .fetcher import ImageFetcher
from .filenames import stable_filename
from .placement import build_placement

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "/placeholder-product.svg"


class AttachmentPipeline:
    """
    Resolves descriptor lists to URL lists aligned with the input.

    Usage:
        pipeline = AttachmentPipeline(LocalPlacement("data/images"))
        errors = []
        urls = pipeline.resolve(descriptors, "virtual", "products", errors)
    """

    def __init__(
        self,
        placement,
        fetcher: Optional[ImageFetcher] = None,
        placeholder_url: str = DEFAULT_PLACEHOLDER,
        batch_size: int = 10,
    ):
        """
        Args:
            placement: LocalPlacement or CloudinaryPlacement
            fetcher: Image fetcher (default: 10s timeout, 3 attempts)
            placeholder_url: URL substituted for unresolvable descriptors
            batch_size: Concurrent fetches per batch
        """
        self.placement = placement
        self.fetcher = fetcher or ImageFetcher()
        self.placeholder_url = placeholder_url
        self.batch_size = max(1, batch_size)

    @classmethod
    def from_settings(cls, settings) -> "AttachmentPipeline":
        return cls(
            build_placement(settings),
            fetcher=ImageFetcher(
                timeout=settings.attachment_timeout,
                max_retries=settings.attachment_max_retries,
            ),
            placeholder_url=settings.placeholder_url,
            batch_size=settings.attachment_batch_size,
        )

    def close(self) -> None:
        self.fetcher.close()

    def resolve_one(self, descriptor: AttachmentDescriptor, environment: str, asset_class: str) -> str:
        """
        Resolve one descriptor to a durable URL.

        Raises:
            AttachmentError: If the payload could not be fetched or placed
        """
        filename = stable_filename(descriptor)
        existing = self.placement.lookup(environment, asset_class, filename)
        if existing:
            logger.debug("Reusing %s", filename)
            return existing

        payload = self.fetcher.fetch(descriptor.url)
        return self.placement.store(environment, asset_class, filename, payload)

    def resolve(
        self,
        descriptors: Sequence[AttachmentDescriptor],
        environment: str,
        asset_class: str,
        errors: Optional[List[str]] = None,
    ) -> List[str]:
        """
        Resolve a descriptor list.

        Args:
            descriptors: Descriptors for one product or one named asset
            environment: Environment namespace for placed assets
            asset_class: 'products' or 'webphotos'
            errors: List that receives one message per failed descriptor

        Returns:
            URLs positionally aligned with `descriptors`
        """
        if not descriptors:
            return []

        urls: List[str] = []
        with ThreadPoolExecutor(max_workers=min(self.batch_size, len(descriptors))) as pool:
            for start in range(0, len(descriptors), self.batch_size):
                batch = descriptors[start:start + self.batch_size]
                futures = [
                    pool.submit(self.resolve_one, descriptor, environment, asset_class)
                    for descriptor in batch
                ]
                # Wait for the whole batch before starting the next one
                for descriptor, future in zip(batch, futures):
                    try:
                        urls.append(future.result())
                    except (AttachmentError, OSError) as e:
                        logger.warning("Image unavailable, using placeholder: %s", e)
                        urls.append(self.placeholder_url)
                        if errors is not None:
                            errors.append(f"Image {descriptor.url}: {e}")
        return urls

    def resolve_fields(
        self,
        bag: Dict[str, Any],
        environment: str,
        asset_class: str,
        errors: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Replace every descriptor list in a normalized bag with resolved URLs (in place)."""
        for key in descriptor_fields(bag):
            bag[key] = self.resolve(bag[key], environment, asset_class, errors)
        return bag
