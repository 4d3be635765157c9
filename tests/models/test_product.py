"""Tests for catalog_sync/models/product.py"""

import dataclasses

import pytest

from catalog_sync.models import AttachmentDescriptor, CategoryRelation, FieldMeta, RemoteRecord, SyncResult


class TestRemoteRecord:
    def test_defaults(self):
        record = RemoteRecord("rec1")
        assert record.fields == {}
        assert record.created_time == ""

    def test_fields_not_shared_between_instances(self):
        a, b = RemoteRecord("a"), RemoteRecord("b")
        a.fields["x"] = 1
        assert b.fields == {}


class TestFrozenModels:
    def test_field_meta_default_type(self):
        assert FieldMeta("Photos").type == "unknown"

    def test_descriptor_is_hashable_and_frozen(self):
        descriptor = AttachmentDescriptor("https://x.example/a.jpg")
        assert hash(descriptor) == hash(AttachmentDescriptor("https://x.example/a.jpg"))
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.url = "other"


class TestCategoryRelation:
    def test_to_dict_uses_camel_case(self):
        relation = CategoryRelation("cat_bolsos", "Bolsos", is_active=False)
        assert relation.to_dict() == {
            "id": "cat_bolsos",
            "category": "Bolsos",
            "subcategory": "",
            "isActive": False,
            "createdAt": "",
            "updatedAt": "",
        }


class TestSyncResult:
    def test_defaults_to_unsuccessful(self):
        assert SyncResult("virtual").success is False

    def test_to_dict_keys(self):
        result = SyncResult("regular", success=True, synced_count=2, total_records=3,
                            final_database_count=2, errors=["Record rec3: boom"])
        data = result.to_dict()
        assert data["success"] is True
        assert data["syncedCount"] == 2
        assert data["totalRecords"] == 3
        assert data["finalDatabaseCount"] == 2
        assert data["errors"] == ["Record rec3: boom"]
        assert set(data) == {
            "success", "environment", "syncedCount", "totalRecords", "finalDatabaseCount",
            "categoryRelations", "errors", "startedAt", "finishedAt",
        }

    def test_to_dict_copies_errors(self):
        result = SyncResult("virtual", errors=["a"])
        result.to_dict()["errors"].append("b")
        assert result.errors == ["a"]
