"""Tests for catalog_sync/store/relations.py"""

import pytest

from catalog_sync.store import category_relation_id


@pytest.fixture
def catalog_store(virtual_store):
    virtual_store.create_product({"id": "rec1", "category": ["Bolsos"], "subCategory": ["Cuero"]})
    virtual_store.create_product({"id": "rec2", "category": ["Morrales", "Escolar"], "subCategory": ["Infantil"]})
    virtual_store.create_product({"id": "rec3", "category": "Accesorios"})
    virtual_store.create_product({"id": "rec4", "category": ["Bolsos"], "subCategory": ["Cuero", "Lona"]})
    return virtual_store


class TestRelationIds:
    def test_category_id(self):
        assert category_relation_id("Papelería") == "cat_papeleria"

    def test_pair_id_includes_category(self):
        assert category_relation_id("Bolsos", "Cuero") != category_relation_id("Morrales", "Cuero")


class TestPopulateCategoryRelations:
    def test_one_row_per_category_and_pair(self, catalog_store):
        count = catalog_store.populate_category_relations()

        ids = {relation.id for relation in catalog_store.get_category_relations()}
        assert ids == {
            "cat_bolsos", "cat_morrales", "cat_escolar", "cat_accesorios",
            "sub_bolsos_cuero", "sub_bolsos_lona", "sub_morrales_infantil",
        }
        assert count == 7

    def test_subcategory_goes_to_first_category_only(self, catalog_store):
        catalog_store.populate_category_relations()
        assert catalog_store.get_category_relation("sub_morrales_infantil") is not None
        assert catalog_store.get_category_relation("sub_escolar_infantil") is None

    def test_uncategorized_subcategory(self, virtual_store):
        virtual_store.create_product({"id": "rec1", "subCategory": ["Llaveros"]})
        virtual_store.populate_category_relations()

        relation = virtual_store.get_category_relation("sub_sin_categoria_llaveros")
        assert relation.category == "Sin Categoría"
        assert relation.subcategory == "Llaveros"

    def test_rebuild_replaces_previous_rows(self, catalog_store):
        catalog_store.populate_category_relations()
        catalog_store.delete_product("rec2")
        catalog_store.populate_category_relations()

        assert catalog_store.get_category_relation("cat_morrales") is None
        assert len(catalog_store.get_category_relations()) == 4

    def test_rebuild_reactivates_toggled_rows(self, catalog_store):
        catalog_store.populate_category_relations()
        catalog_store.toggle_category_relation("cat_bolsos")
        catalog_store.populate_category_relations()
        assert catalog_store.get_category_relation("cat_bolsos").is_active is True

    def test_empty_store(self, virtual_store):
        assert virtual_store.populate_category_relations() == 0


class TestRelationCrud:
    def test_create_and_get(self, virtual_store):
        relation = virtual_store.create_category_relation("Bolsos", "Cuero")
        assert relation.id == "sub_bolsos_cuero"
        assert relation.is_active is True
        assert virtual_store.get_category_relation(relation.id) == relation

    def test_duplicate_returns_none(self, virtual_store):
        virtual_store.create_category_relation("Bolsos")
        assert virtual_store.create_category_relation("Bolsos") is None

    def test_toggle(self, virtual_store):
        virtual_store.create_category_relation("Bolsos")
        assert virtual_store.toggle_category_relation("cat_bolsos").is_active is False
        assert virtual_store.toggle_category_relation("cat_bolsos").is_active is True

    def test_toggle_missing(self, virtual_store):
        assert virtual_store.toggle_category_relation("cat_nada") is None

    def test_active_list(self, virtual_store):
        virtual_store.create_category_relation("Bolsos")
        virtual_store.create_category_relation("Morrales", is_active=False)
        assert [r.category for r in virtual_store.get_active_category_relations()] == ["Bolsos"]

    def test_update(self, virtual_store):
        virtual_store.create_category_relation("Bolsos", "Cuero")
        relation = virtual_store.update_category_relation("sub_bolsos_cuero", subcategory="Cuero Fino")
        assert relation.subcategory == "Cuero Fino"
        assert relation.category == "Bolsos"

    def test_update_missing(self, virtual_store):
        assert virtual_store.update_category_relation("cat_nada", category="X") is None

    def test_delete(self, virtual_store):
        virtual_store.create_category_relation("Bolsos")
        assert virtual_store.delete_category_relation("cat_bolsos") is True
        assert virtual_store.delete_category_relation("cat_bolsos") is False

    def test_to_dict(self, virtual_store):
        data = virtual_store.create_category_relation("Bolsos").to_dict()
        assert data["isActive"] is True
        assert data["subcategory"] == ""
