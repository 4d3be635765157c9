"""Tests for catalog_sync/attachments/fetcher.py"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from catalog_sync.attachments.fetcher import ImageFetcher
from catalog_sync.common.errors import AttachmentError

URL = "https://cdn.example.com/a.jpg"


def make_response(status_code=200, content=b"\x89PNG"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    return response


@pytest.fixture
def fetcher():
    return ImageFetcher(timeout=10, max_retries=3, backoff=0)


class TestFetch:
    def test_returns_content(self, fetcher):
        with patch.object(fetcher.session, "get", return_value=make_response()) as mock_get:
            assert fetcher.fetch(URL) == b"\x89PNG"
        assert mock_get.call_args.kwargs["timeout"] == 10

    def test_retries_after_timeout(self, fetcher):
        responses = [requests.exceptions.Timeout(), make_response(content=b"ok")]
        with patch.object(fetcher.session, "get", side_effect=responses) as mock_get:
            assert fetcher.fetch(URL) == b"ok"
        assert mock_get.call_count == 2

    def test_gives_up_after_max_retries(self, fetcher):
        with patch.object(fetcher.session, "get", return_value=make_response(500)) as mock_get:
            with pytest.raises(AttachmentError) as excinfo:
                fetcher.fetch(URL)
        assert mock_get.call_count == 3
        assert excinfo.value.attempts == 3
        assert excinfo.value.reason == "HTTP 500"

    def test_empty_body_counts_as_failure(self, fetcher):
        with patch.object(fetcher.session, "get", return_value=make_response(content=b"")):
            with pytest.raises(AttachmentError, match="empty body"):
                fetcher.fetch(URL)

    def test_connection_error(self, fetcher):
        with patch.object(fetcher.session, "get", side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(AttachmentError, match="refused"):
                fetcher.fetch(URL)

    def test_at_least_one_attempt(self):
        fetcher = ImageFetcher(max_retries=0, backoff=0)
        with patch.object(fetcher.session, "get", return_value=make_response()) as mock_get:
            fetcher.fetch(URL)
        assert mock_get.call_count == 1
