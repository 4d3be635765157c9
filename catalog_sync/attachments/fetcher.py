"""
Image Fetcher

Downloads attachment payloads over HTTP with a bounded timeout and a
fixed number of attempts.
"""

import logging
import time
from typing import Optional

import requests

from ..common.errors import AttachmentError

logger = logging.getLogger(__name__)


class ImageFetcher:
    """
    Fetches binary payloads, retrying failed attempts.

    A timed-out request is cancelled by requests and counts as one attempt.

    Usage:
        with ImageFetcher(timeout=10, max_retries=3) as fetcher:
            payload = fetcher.fetch("https://cdn.example.com/a.jpg")
    """

    USER_AGENT = "catalog-sync/1.0"

    def __init__(
        self,
        timeout: float = 10,
        max_retries: int = 3,
        backoff: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            timeout: Per-attempt timeout in seconds
            max_retries: Total attempts per URL
            backoff: Base delay between attempts (doubles each retry)
            session: Shared session (one is created if omitted)
        """
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", self.USER_AGENT)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.session.close()

    def close(self):
        self.session.close()

    def fetch(self, url: str) -> bytes:
        """
        Download one payload.

        Raises:
            AttachmentError: If every attempt failed
        """
        reason = "no attempts made"
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(url, timeout=self.timeout)
                if response.status_code == 200 and response.content:
                    return response.content
                reason = f"HTTP {response.status_code}" if response.status_code != 200 else "empty body"
            except requests.exceptions.Timeout:
                reason = "timeout"
            except requests.exceptions.RequestException as e:
                reason = str(e) or type(e).__name__

            if attempt < self.max_retries:
                delay = self.backoff * (2 ** (attempt - 1))
                logger.debug("Fetch %s failed (%s), retry %d/%d in %.1fs",
                             url, reason, attempt, self.max_retries, delay)
                if delay:
                    time.sleep(delay)

        logger.warning("Giving up on %s: %s", url, reason)
        raise AttachmentError(url, reason, attempts=self.max_retries)
