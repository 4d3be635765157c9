"""
Airtable API Client

Read-only client for the remote catalog provider.
Handles authentication, rate limiting, pagination and retries.
"""

import logging
import time
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

from ..models import FieldMeta, RemoteRecord

logger = logging.getLogger(__name__)


class AirtableClient:
    """
    Read-only client for one Airtable base.

    Handles:
    - Bearer authentication
    - Rate limiting (5 requests/second per base)
    - Retries on 429 and 5xx gateway errors
    - offset-cursor pagination

    Usage:
        client = AirtableClient(api_key="pat_xxx", base_id="appXXX")

        records = client.fetch_all_records()
        fields = client.fetch_field_metadata()
    """

    API_URL = "https://api.airtable.com/v0"
    MAX_RETRIES = 5
    RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
    PAGE_SIZE = 100

    def __init__(
        self,
        api_key: str,
        base_id: str,
        table_name: str = "Products",
        view: str = "Grid view",
        timeout: float = 30,
    ):
        """
        Initialize the API client.

        Args:
            api_key: Airtable personal access token
            base_id: Base identifier (appXXXXXXXXXXXXXX)
            table_name: Default table for record and metadata calls
            view: View used to order and filter records
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_id = base_id
        self.table_name = table_name
        self.view = view
        self.timeout = timeout

        self.base_url = f"{self.API_URL}/{base_id}"
        self.meta_url = f"{self.API_URL}/meta/bases/{base_id}/tables"

        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

        # Rate limiting
        self.requests_made = 0
        self.last_request_time = 0.0
        self.min_request_interval = 0.2  # 5 req/sec

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.session.close()

    def close(self):
        self.session.close()

    def _rate_limit(self):
        """Implement rate limiting (5 requests/second max)."""
        now = time.time()
        elapsed = now - self.last_request_time

        if elapsed < self.min_request_interval:
            time.sleep(self.min_request_interval - elapsed)

        self.last_request_time = time.time()
        self.requests_made += 1

    @staticmethod
    def _retry_delay(response, attempt: int) -> float:
        """Seconds to wait before the next attempt: Retry-After if numeric, else 2**attempt."""
        try:
            return max(0.0, float(response.headers.get("Retry-After")))
        except (TypeError, ValueError):
            return float(2 ** attempt)

    def _get(self, url: str, params: Optional[Dict] = None) -> Optional[Dict]:
        """
        GET with rate limiting and error handling.

        Args:
            url: Absolute endpoint URL
            params: Query parameters

        Returns:
            Response JSON or None on error
        """
        for attempt in range(self.MAX_RETRIES):
            self._rate_limit()

            try:
                response = self.session.get(url, params=params, timeout=self.timeout)

                # Retry on rate limiting or server errors
                if response.status_code in self.RETRYABLE_STATUS_CODES:
                    retry_after = self._retry_delay(response, attempt)
                    logger.warning("HTTP %d on %s, retry %d/%d in %.1fs...",
                                   response.status_code, url, attempt + 1,
                                   self.MAX_RETRIES, retry_after)
                    time.sleep(retry_after)
                    continue

                if response.status_code >= 400:
                    logger.error("API Error %d: %s", response.status_code, response.text[:200])
                    return None

                return response.json()

            except requests.exceptions.Timeout:
                logger.error("Request timeout: %s", url)
                return None
            except requests.exceptions.RequestException as e:
                logger.error("Request failed: %s", e)
                return None

        logger.error("Max retries (%d) exceeded for GET %s", self.MAX_RETRIES, url)
        return None

    def _table_url(self, table: Optional[str]) -> str:
        return f"{self.base_url}/{quote(table or self.table_name, safe='')}"

    def fetch_page(self, table: Optional[str] = None, offset: Optional[str] = None,
                   page_size: Optional[int] = None) -> Optional[Dict]:
        """
        Fetch one page of records.

        Returns:
            Raw page ({"records": [...], "offset": "..."}) or None on error
        """
        params = {"pageSize": page_size or self.PAGE_SIZE}
        if self.view:
            params["view"] = self.view
        if offset:
            params["offset"] = offset
        return self._get(self._table_url(table), params)

    def fetch_all_records(self, table: Optional[str] = None) -> List[RemoteRecord]:
        """
        Fetch the complete record set, following the offset cursor.

        Args:
            table: Table name (defaults to the client's table)

        Returns:
            All records in view order

        Raises:
            ConnectionError: If any page cannot be fetched
        """
        records: List[RemoteRecord] = []
        offset = None

        while True:
            page = self.fetch_page(table, offset)
            if page is None:
                raise ConnectionError(
                    f"Failed to fetch records from {table or self.table_name} "
                    f"after {len(records)} records"
                )

            for raw in page.get("records", []):
                records.append(RemoteRecord(
                    id=raw.get("id", ""),
                    fields=raw.get("fields") or {},
                    created_time=raw.get("createdTime", ""),
                ))

            offset = page.get("offset")
            if not offset:
                break

        logger.info("Fetched %d records from %s", len(records), table or self.table_name)
        return records

    def fetch_field_metadata(self, table: Optional[str] = None) -> List[FieldMeta]:
        """
        Fetch declared field names and types for a table.

        Falls back to the first table whose name contains "product" when
        the exact name is not found.

        Returns:
            Declared fields, or an empty list if metadata is unavailable
        """
        table_name = table or self.table_name
        result = self._get(self.meta_url)
        if not result:
            logger.warning("Field metadata unavailable for %s", table_name)
            return []

        tables = result.get("tables", [])
        match = next((t for t in tables if t.get("name") == table_name), None)
        if match is None:
            match = next((t for t in tables if "product" in t.get("name", "").lower()), None)
        if match is None:
            logger.warning("Table %s not found in base metadata", table_name)
            return []

        fields = [
            FieldMeta(name=f["name"], type=f.get("type", "unknown"))
            for f in match.get("fields", [])
            if f.get("name")
        ]
        logger.info("Found %d declared fields in %s", len(fields), match.get("name"))
        return fields

    def test_connection(self) -> bool:
        """
        Test API connection by fetching a single record.

        Returns:
            True if connection successful
        """
        if not self.api_key or not self.base_id:
            logger.error("Missing Airtable credentials")
            return False

        result = self.fetch_page(page_size=1)
        if result is not None and "records" in result:
            logger.info("Connected to base %s (table %s)", self.base_id, self.table_name)
            return True
        return False
