"""Tests for catalog_sync/store/schema.py"""

from catalog_sync.store.schema import PROFILES, SchemaProfile, baseline_columns


class TestSchemaProfile:
    def test_single_price(self):
        assert SchemaProfile(1, "stock").price_fields == ("price",)

    def test_two_prices(self):
        assert SchemaProfile(2, "quantity").price_fields == ("price1", "price2")

    def test_stock_kept_alongside_quantity(self):
        assert SchemaProfile(2, "quantity").stock_fields == ("quantity", "stock")

    def test_profiles(self):
        assert PROFILES["virtual"].price_field_count == 1
        assert PROFILES["regular"].stock_field_name == "quantity"


class TestBaselineColumns:
    def test_shared_core(self):
        for profile in PROFILES.values():
            columns = baseline_columns(profile)
            for name in ("id", "name", "brand", "category", "subCategory", "colors", "imageURL",
                         "createdAt", "updatedAt"):
                assert name in columns

    def test_environment_differences(self):
        virtual = set(baseline_columns(PROFILES["virtual"]))
        regular = set(baseline_columns(PROFILES["regular"]))
        assert virtual - regular == {"price"}
        assert regular - virtual == {"price1", "price2", "quantity"}
