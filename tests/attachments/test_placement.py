"""Tests for catalog_sync/attachments/placement.py"""

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from unittest.mock import MagicMock, patch

import pytest
import requests

from catalog_sync.attachments.placement import CloudinaryPlacement, LocalPlacement, build_placement
from catalog_sync.common.errors import AttachmentError


@pytest.fixture
def local(tmp_path):
    return LocalPlacement(tmp_path / "images", url_prefix="/api/images/")


@pytest.fixture
def cloudinary():
    return CloudinaryPlacement("demo", "key123", "secret456")


class TestLocalPlacement:
    def test_store_writes_file(self, local, tmp_path):
        url = local.store("virtual", "products", "bolso_abc.jpg", b"data")

        assert url == "/api/images/virtual/products/bolso_abc.jpg"
        assert (tmp_path / "images" / "virtual" / "products" / "bolso_abc.jpg").read_bytes() == b"data"

    def test_lookup(self, local):
        assert local.lookup("virtual", "products", "bolso_abc.jpg") is None
        local.store("virtual", "products", "bolso_abc.jpg", b"data")
        assert local.lookup("virtual", "products", "bolso_abc.jpg") == "/api/images/virtual/products/bolso_abc.jpg"

    def test_namespaced_by_environment_and_class(self, local):
        local.store("virtual", "products", "a.jpg", b"1")
        assert local.lookup("regular", "products", "a.jpg") is None
        assert local.lookup("virtual", "webphotos", "a.jpg") is None

    def test_empty_file_not_reused(self, local, tmp_path):
        directory = tmp_path / "images" / "virtual" / "products"
        directory.mkdir(parents=True)
        (directory / "a.jpg").write_bytes(b"")
        assert local.lookup("virtual", "products", "a.jpg") is None

    def test_no_temp_files_left(self, local, tmp_path):
        local.store("virtual", "products", "a.jpg", b"1")
        names = [p.name for p in (tmp_path / "images" / "virtual" / "products").iterdir()]
        assert names == ["a.jpg"]

    def test_concurrent_writes_of_same_file(self, local, tmp_path):
        with ThreadPoolExecutor(max_workers=8) as pool:
            urls = list(pool.map(
                lambda i: local.store("virtual", "products", "dup.jpg", b"payload"), range(16)
            ))

        assert set(urls) == {"/api/images/virtual/products/dup.jpg"}
        names = [p.name for p in (tmp_path / "images" / "virtual" / "products").iterdir()]
        assert names == ["dup.jpg"]

    def test_cleanup_unused(self, local):
        local.store("virtual", "products", "keep.jpg", b"1")
        local.store("virtual", "products", "drop.jpg", b"2")

        removed = local.cleanup_unused("virtual", "products", ["/api/images/virtual/products/keep.jpg"])

        assert removed == 1
        assert local.lookup("virtual", "products", "keep.jpg")
        assert local.lookup("virtual", "products", "drop.jpg") is None

    def test_cleanup_missing_directory(self, local):
        assert local.cleanup_unused("regular", "products", []) == 0


class TestCloudinaryPlacement:
    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            CloudinaryPlacement("demo", "", "secret")

    def test_signature(self, cloudinary):
        params = {"timestamp": "100", "folder": "virtual-products"}
        expected = hashlib.sha1(b"folder=virtual-products&timestamp=100secret456").hexdigest()
        assert cloudinary.sign(params) == expected

    def test_lookup_always_uploads(self, cloudinary):
        assert cloudinary.lookup("virtual", "products", "a.jpg") is None

    def test_store_uploads_to_namespaced_folder(self, cloudinary):
        response = MagicMock(status_code=200)
        response.json.return_value = {"secure_url": "https://res.cloudinary.com/demo/a.jpg"}

        with patch.object(cloudinary.session, "post", return_value=response) as mock_post:
            url = cloudinary.store("regular", "webphotos", "logo_abc.png", b"data")

        assert url == "https://res.cloudinary.com/demo/a.jpg"
        assert mock_post.call_args.args[0] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        data = mock_post.call_args.kwargs["data"]
        assert data["folder"] == "regular-webphotos"
        assert data["public_id"] == "logo_abc"
        assert data["api_key"] == "key123"
        assert "signature" in data

    def test_http_error(self, cloudinary):
        response = MagicMock(status_code=401, text="Invalid signature")
        with patch.object(cloudinary.session, "post", return_value=response):
            with pytest.raises(AttachmentError, match="401"):
                cloudinary.store("virtual", "products", "a.jpg", b"data")

    def test_missing_secure_url(self, cloudinary):
        response = MagicMock(status_code=200)
        response.json.return_value = {}
        with patch.object(cloudinary.session, "post", return_value=response):
            with pytest.raises(AttachmentError, match="secure_url"):
                cloudinary.store("virtual", "products", "a.jpg", b"data")

    def test_transport_error(self, cloudinary):
        with patch.object(cloudinary.session, "post", side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(AttachmentError, match="upload failed"):
                cloudinary.store("virtual", "products", "a.jpg", b"data")


class TestBuildPlacement:
    def test_local(self, make_settings):
        placement = build_placement(make_settings("virtual"))
        assert isinstance(placement, LocalPlacement)
        assert placement.url_prefix == "/api/images"

    def test_cdn(self, make_settings):
        settings = make_settings(
            "virtual", placement_mode="cdn",
            cloudinary_cloud_name="demo", cloudinary_api_key="k", cloudinary_api_secret="s",
        )
        assert isinstance(build_placement(settings), CloudinaryPlacement)

    def test_unknown_mode(self, make_settings):
        with pytest.raises(ValueError, match="placement mode"):
            build_placement(replace(make_settings("virtual"), placement_mode="s3"))
