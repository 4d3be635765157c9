"""
Store Schema

Baseline table definitions for an environment store. The products table
differs between environments only in its price and stock columns, so a
single builder takes a SchemaProfile instead of one DDL per environment.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    text,
)

from ..common.constants import ENV_REGULAR, ENV_VIRTUAL

PRODUCTS_TABLE = "products"
RELATIONS_TABLE = "category_subcategory_relations"
WEBPHOTOS_TABLE = "webphotos"


@dataclass(frozen=True)
class SchemaProfile:
    """Environment-specific shape of the products table."""
    price_field_count: int
    stock_field_name: str

    @property
    def price_fields(self) -> tuple[str, ...]:
        if self.price_field_count == 1:
            return ("price",)
        return tuple(f"price{i}" for i in range(1, self.price_field_count + 1))

    @property
    def stock_fields(self) -> tuple[str, ...]:
        # `stock` is always present so older readers keep working
        if self.stock_field_name == "stock":
            return ("stock",)
        return (self.stock_field_name, "stock")


PROFILES = {
    ENV_VIRTUAL: SchemaProfile(price_field_count=1, stock_field_name="stock"),
    ENV_REGULAR: SchemaProfile(price_field_count=2, stock_field_name="quantity"),
}


def _timestamps() -> list[Column]:
    return [
        Column("createdAt", Text, server_default=text("CURRENT_TIMESTAMP")),
        Column("updatedAt", Text, server_default=text("CURRENT_TIMESTAMP")),
    ]


def build_products_table(metadata: MetaData, profile: SchemaProfile) -> Table:
    """
    Build the baseline products table for a profile.

    Dynamic columns added later are untyped so values keep their stored type.
    """
    columns = [
        Column("id", Text, primary_key=True),
        Column("name", Text, nullable=False, server_default=""),
        Column("brand", Text, nullable=False, server_default=""),
        Column("type", Text),
        Column("category", Text),
        Column("subCategory", Text),
        Column("colors", Text),
    ]
    columns += [
        Column(name, Float, nullable=False, server_default="0")
        for name in profile.price_fields
    ]
    columns += [
        Column(name, Integer, server_default="0")
        for name in profile.stock_fields
    ]
    columns += [
        Column("isProductStarred", Boolean, server_default="0"),
        Column("materials", Text),
        Column("dimensions", Text),
        Column("capacity", Text),
        Column("imageURL", Text),
        Column("lastUpdated", Text),
    ]
    columns += _timestamps()
    return Table(PRODUCTS_TABLE, metadata, *columns)


def build_relations_table(metadata: MetaData) -> Table:
    return Table(
        RELATIONS_TABLE,
        metadata,
        Column("id", Text, primary_key=True),
        Column("category", Text, nullable=False),
        Column("subcategory", Text, nullable=False, server_default=""),
        Column("isActive", Boolean, nullable=False, server_default="1"),
        *_timestamps(),
        UniqueConstraint("category", "subcategory"),
    )


def build_webphotos_table(metadata: MetaData) -> Table:
    return Table(
        WEBPHOTOS_TABLE,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", Text, nullable=False, unique=True),
        Column("imageUrl", Text, nullable=False),
        *_timestamps(),
    )


def baseline_columns(profile: SchemaProfile) -> list[str]:
    """Column names of the baseline products table, in DDL order."""
    return [column.name for column in build_products_table(MetaData(), profile).columns]
