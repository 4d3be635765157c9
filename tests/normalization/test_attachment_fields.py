"""Tests for catalog_sync/normalization/attachments.py"""

import pytest

from catalog_sync.models import AttachmentDescriptor
from catalog_sync.normalization.attachments import (
    descriptor_fields,
    is_attachment_field,
    to_attachment_descriptors,
)


class TestIsAttachmentField:
    @pytest.mark.parametrize("name", ["imageURL", "Product Photos", "Attachments", "Video url"])
    def test_name_heuristic(self, name):
        assert is_attachment_field(name) is True

    @pytest.mark.parametrize("name", ["Name", "Price1", "Materials"])
    def test_plain_fields(self, name):
        assert is_attachment_field(name) is False

    def test_declared_attachment_without_marker(self):
        assert is_attachment_field("Gallery", {"Gallery": "multipleAttachments"}) is True

    def test_declared_other_type_beats_name(self):
        assert is_attachment_field("Website URL", {"Website URL": "url"}) is False

    def test_unknown_type_falls_back_to_name(self):
        assert is_attachment_field("Photos", {"Photos": "unknown"}) is True

    def test_undeclared_field_falls_back_to_name(self):
        assert is_attachment_field("Photos", {"Name": "singleLineText"}) is True

    def test_lookup_of_attachments(self):
        value = [{"id": "attABCDEFGHIJKLMN", "url": "https://x.example/a.jpg", "filename": "a.jpg"}]
        assert is_attachment_field("Photos", {"Photos": "multipleLookupValues"}, value) is True

    def test_rollup_of_attachments_without_marker(self):
        value = [{"url": "https://x.example/a.jpg"}]
        assert is_attachment_field("Fotos proveedor", {"Fotos proveedor": "rollup"}, value) is True

    @pytest.mark.parametrize("value", [["Naranjo"], [], None, [{"name": "sin url"}]])
    def test_lookup_of_plain_values(self, value):
        assert is_attachment_field("Photos", {"Photos": "multipleLookupValues"}, value) is False


class TestToAttachmentDescriptors:
    def test_string(self):
        assert to_attachment_descriptors("https://x.example/a.jpg") == [
            AttachmentDescriptor("https://x.example/a.jpg")
        ]

    def test_single_object(self):
        result = to_attachment_descriptors({"url": "https://x.example/a.jpg", "filename": "a.jpg",
                                            "id": "attABCDEFGHIJKLMN"})
        assert result == [AttachmentDescriptor("https://x.example/a.jpg", "a.jpg", "attABCDEFGHIJKLMN")]

    def test_list_filters_invalid_items(self):
        result = to_attachment_descriptors([
            {"url": "https://x.example/a.jpg"},
            "https://x.example/b.jpg",
            {"filename": "no-url.jpg"},
            42,
            "   ",
        ])
        assert [d.url for d in result] == ["https://x.example/a.jpg", "https://x.example/b.jpg"]

    def test_none(self):
        assert to_attachment_descriptors(None) == []

    def test_existing_descriptors_kept(self):
        descriptor = AttachmentDescriptor("https://x.example/a.jpg")
        assert to_attachment_descriptors([descriptor]) == [descriptor]


class TestDescriptorFields:
    def test_finds_descriptor_lists(self):
        bag = {
            "id": "rec1",
            "imageURL": [AttachmentDescriptor("https://x.example/a.jpg")],
            "colors": ["rojo"],
            "Photos": [],
        }
        assert descriptor_fields(bag) == ["imageURL"]
