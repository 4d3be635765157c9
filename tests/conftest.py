"""Shared test fixtures."""

import threading
import time
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from catalog_sync.common.config_loader import SETTINGS_FILE, load_config, load_settings
from catalog_sync.common.errors import AttachmentError
from catalog_sync.models import RemoteRecord
from catalog_sync.store import ProductStore, dispose_engines

FIXED_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeFetcher:
    """Returns the URL as payload; URLs containing 'broken' fail."""

    def __init__(self, delay=0.0):
        self.delay = delay
        self.calls = []
        self.events = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def fetch(self, url):
        with self._lock:
            self.calls.append(url)
            self.events.append(("start", url))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if "broken" in url:
                raise AttachmentError(url, "HTTP 404", attempts=3)
            return url.encode("utf-8")
        finally:
            with self._lock:
                self.active -= 1
                self.events.append(("end", url))

    def close(self):
        pass


@pytest.fixture
def make_fetcher():
    """Factory for fake image fetchers (no network)."""
    return FakeFetcher


@pytest.fixture(autouse=True)
def _dispose_store_engines():
    """Close cached SQLite engines after every test."""
    yield
    dispose_engines()


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: FIXED_TIME


@pytest.fixture
def test_env(tmp_path):
    """Environment variables for a fully configured deployment."""
    return {
        "VIRTUAL_AIRTABLE_API_KEY": "pat_virtual",
        "VIRTUAL_AIRTABLE_BASE_ID": "appVirtual",
        "AIRTABLE_API_KEY": "pat_regular",
        "AIRTABLE_BASE_ID": "appRegular",
        "CATALOG_DATA_DIR": str(tmp_path / "data"),
    }


@pytest.fixture
def make_settings(test_env):
    """Build Settings from the repo config with test overrides."""
    config = load_config(SETTINGS_FILE)

    def _make(environment="virtual", **overrides):
        settings = load_settings(environment, config=config, env=test_env)
        return replace(settings, **overrides) if overrides else settings

    return _make


@pytest.fixture
def virtual_store(tmp_path):
    return ProductStore(tmp_path / "virtual-products.db", "virtual")


@pytest.fixture
def regular_store(tmp_path):
    return ProductStore(tmp_path / "products.db", "regular")


@pytest.fixture
def sample_records():
    """Three remote product records as the provider returns them."""
    return [
        RemoteRecord("rec001", {
            "Name": "Bolso Tote",
            "Brand": "Naranjo",
            "Category": ["Bolsos"],
            "SubCategory": ["Cuero"],
            "Price1": 120,
            "Material": "cuero",
        }),
        RemoteRecord("rec002", {
            "Name": "Morral Escolar",
            "Brand": "Naranjo",
            "Category": ["Morrales", "Escolar"],
            "SubCategory": ["Infantil"],
            "Price1": 80,
            "Price2": 95,
            "Quantity": 4,
        }),
        RemoteRecord("rec003", {
            "Name": "Billetera",
            "Category": "Accesorios",
            "price": 30,
            "Stock": 12,
        }),
    ]
