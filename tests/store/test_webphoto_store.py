"""Tests for catalog_sync/store/webphoto_store.py"""

import pytest

from catalog_sync.store import WebPhotoStore


@pytest.fixture
def webphotos(virtual_store):
    return WebPhotoStore(virtual_store.engine)


class TestWebPhotoStore:
    def test_upsert_and_get(self, webphotos):
        webphotos.upsert_webphoto("logo", "/api/images/virtual/webphotos/logo_abc.png")
        assert webphotos.get_webphoto("logo") == "/api/images/virtual/webphotos/logo_abc.png"

    def test_upsert_replaces_url(self, webphotos):
        webphotos.upsert_webphoto("logo", "/old.png")
        webphotos.upsert_webphoto("logo", "/new.png")
        assert webphotos.get_all_webphotos() == {"logo": "/new.png"}

    def test_get_all(self, webphotos):
        webphotos.upsert_webphoto("banner", "/b.png")
        webphotos.upsert_webphoto("logo", "/l.png")
        assert webphotos.get_all_webphotos() == {"banner": "/b.png", "logo": "/l.png"}

    def test_get_missing(self, webphotos):
        assert webphotos.get_webphoto("nada") is None

    def test_delete(self, webphotos):
        webphotos.upsert_webphoto("logo", "/l.png")
        assert webphotos.delete_webphoto("logo") is True
        assert webphotos.delete_webphoto("logo") is False

    def test_clear(self, webphotos):
        webphotos.upsert_webphoto("a", "/a.png")
        webphotos.upsert_webphoto("b", "/b.png")
        assert webphotos.clear_all_webphotos() == 2
        assert webphotos.get_all_webphotos() == {}

    def test_products_untouched(self, virtual_store, webphotos):
        virtual_store.create_product({"id": "rec1"})
        webphotos.clear_all_webphotos()
        assert virtual_store.count_products() == 1
