"""
Schema-Evolving Product Store

One SQLite file per environment. The products table starts from the
environment's baseline schema and grows a column for every attribute
name it has not seen before, so any remote field can be persisted
without a migration.

Column names are matched case-insensitively (SQLite treats `Name` and
`name` as the same column). A registry of existing columns is read at
startup and updated after every ADD COLUMN, so the write path does not
introspect the table on each call.

Usage:
    store = ProductStore("data/virtual-products.db", "virtual")
    store.create_product({"id": "rec1", "name": "Bolso", "Material": "cuero"})
    store.get_product("rec1")["Material"]   # 'cuero'
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import MetaData, func, inspect, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from ..common.constants import (
    BOOLEAN_FIELDS,
    ENV_VIRTUAL,
    ENVIRONMENTS,
    FLOAT_FIELDS,
    INT_FIELDS,
)
from ..common.errors import VerificationError
from ..models import AttachmentDescriptor
from ..normalization.field_mapper import LIST_DEFAULTS, parse_float, parse_int
from .database import get_engine
from .relations import CategoryRelationsMixin
from .schema import (
    PRODUCTS_TABLE,
    PROFILES,
    build_products_table,
    build_relations_table,
    build_webphotos_table,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_product_id() -> str:
    """Id for products created without a remote id: prod_<ms>_<9 chars>."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"prod_{int(time.time() * 1000)}_{suffix}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_default(value: Any) -> Any:
    if isinstance(value, AttachmentDescriptor):
        return value.url
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


class ProductStore(CategoryRelationsMixin):
    """Persistent product store for one environment."""

    def __init__(
        self,
        db_path: str | Path,
        environment: str,
        compact_after_update: bool = False,
        engine: Optional[Engine] = None,
    ):
        """
        Args:
            db_path: SQLite file for this environment
            environment: 'virtual' or 'regular'
            compact_after_update: Checkpoint and vacuum after each update
            engine: Pre-built engine (defaults to the cached engine for db_path)
        """
        if environment not in ENVIRONMENTS:
            raise ValueError(f"Unknown environment: {environment}")

        self.environment = environment
        self.db_path = Path(db_path)
        self.compact_after_update = compact_after_update
        self.engine = engine or get_engine(self.db_path)
        self.profile = PROFILES[environment]

        self.metadata = MetaData()
        self.products_table = build_products_table(self.metadata, self.profile)
        self.relations_table = build_relations_table(self.metadata)
        self.webphotos_table = build_webphotos_table(self.metadata)

        self._preparer = self.engine.dialect.identifier_preparer
        self._lock = threading.RLock()
        self._columns: Dict[str, str] = {}

        self.metadata.create_all(self.engine)
        self.refresh_columns()

    @classmethod
    def from_settings(cls, settings) -> "ProductStore":
        return cls(
            settings.store_path,
            settings.environment,
            compact_after_update=settings.compact_after_update,
        )

    def _quote(self, name: str) -> str:
        """Quote an identifier for use inside text() SQL."""
        # A bare colon would be parsed as a bind parameter
        return self._preparer.quote_identifier(name).replace(":", "\\:")

    # ── Column registry ───────────────────────────────────────────────────

    def refresh_columns(self) -> None:
        """Reload the column registry from the live table."""
        columns = inspect(self.engine).get_columns(PRODUCTS_TABLE)
        with self._lock:
            self._columns = {col["name"].lower(): col["name"] for col in columns}

    def get_columns(self) -> List[str]:
        """Actual column names of the products table."""
        with self._lock:
            return list(self._columns.values())

    def has_column(self, name: str) -> bool:
        with self._lock:
            return name.lower() in self._columns

    def ensure_columns_exist(self, names: Iterable[str]) -> List[str]:
        """
        Add every column in `names` that does not exist yet.

        Names differing only in case count as the same column. New columns
        are untyped so stored values keep their own type.

        Returns:
            Names of the columns that were added
        """
        with self._lock:
            missing: Dict[str, str] = {}
            for name in names:
                lowered = name.lower()
                if lowered not in self._columns and lowered not in missing:
                    missing[lowered] = name

            if not missing:
                return []

            table = self._quote(PRODUCTS_TABLE)
            try:
                with self.engine.begin() as conn:
                    for name in missing.values():
                        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {self._quote(name)}"))
            except OperationalError:
                # Added by another writer since startup; resync and re-check
                self.refresh_columns()
                still_missing = [n for n in missing.values() if n.lower() not in self._columns]
                if still_missing:
                    raise
                return []

            self._columns.update(missing)

        logger.info("Added %d column(s) to %s: %s",
                    len(missing), PRODUCTS_TABLE, ", ".join(missing.values()))
        return list(missing.values())

    def ensure_column_exists(self, name: str) -> bool:
        """Add one column if absent. Returns True if it was added."""
        return bool(self.ensure_columns_exist([name]))

    # ── Value conversion ──────────────────────────────────────────────────

    def _to_db_value(self, key: str, value: Any) -> Any:
        if key in BOOLEAN_FIELDS:
            return 1 if value in (True, 1, "1", "true", "True") else 0
        if key in FLOAT_FIELDS:
            return parse_float(value)
        if key in INT_FIELDS:
            return parse_int(value)
        if isinstance(value, AttachmentDescriptor):
            return value.url
        if isinstance(value, (list, tuple, dict)):
            return json.dumps(value, ensure_ascii=False, default=_json_default)
        if isinstance(value, (str, int, float)):
            return value
        return json.dumps(value, ensure_ascii=False, default=_json_default)

    def _prepare_values(self, attributes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Convert an attribute bag to column values.

        None values and the id are skipped. Values that cannot be encoded
        are logged and dropped. Keys colliding case-insensitively collapse
        onto the first spelling seen, keeping the last value.
        """
        values: Dict[str, Any] = {}
        seen: Dict[str, str] = {}
        for key, value in attributes.items():
            lowered = key.lower()
            if lowered == "id" or value is None:
                continue
            try:
                converted = self._to_db_value(key, value)
            except (TypeError, ValueError) as e:
                logger.error("Dropping field %s: %s", key, e)
                continue
            if lowered in seen:
                logger.warning("Field %s collides with %s; keeping the later value", key, seen[lowered])
                values[seen[lowered]] = converted
                continue
            seen[lowered] = key
            values[key] = converted
        return values

    def _bind_columns(self, values: Mapping[str, Any]) -> List[tuple[str, str, Any]]:
        """Ensure columns exist, returning (quoted column, param name, value) triples."""
        self.ensure_columns_exist(values.keys())
        bound = []
        with self._lock:
            for i, (key, value) in enumerate(values.items()):
                column = self._columns[key.lower()]
                bound.append((self._quote(column), f"p{i}", value))
        return bound

    def _row_to_product(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        product: Dict[str, Any] = {}
        for key, value in row.items():
            if isinstance(value, str) and value[:1] in ("[", "{"):
                try:
                    value = json.loads(value)
                except ValueError:
                    pass
            if key in BOOLEAN_FIELDS:
                value = bool(value)
            product[key] = value

        for key in LIST_DEFAULTS:
            if product.get(key) is None:
                product[key] = []

        # Numeric coercion follows the store's environment, not the row
        if self.environment == ENV_VIRTUAL:
            product["price"] = parse_float(product.get("price"))
            product["stock"] = parse_int(product.get("stock"))
        else:
            product["price1"] = parse_float(product.get("price1"))
            product["price2"] = parse_float(product.get("price2"))
            product["quantity"] = parse_int(product.get("quantity"))
            product["stock"] = parse_int(product.get("stock"))
        return product

    # ── Products ──────────────────────────────────────────────────────────

    def create_product(self, attributes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Insert a product, adding columns for unseen attribute names.

        Args:
            attributes: Attribute bag; `id` defaults to a generated one

        Returns:
            The stored product as read back from the table
        """
        product_id = attributes.get("id") or generate_product_id()
        values = self._prepare_values(attributes)
        bound = self._bind_columns(values)

        columns = ", ".join([self._quote("id")] + [col for col, _, _ in bound])
        placeholders = ", ".join([":id"] + [f":{param}" for _, param, _ in bound])
        params = {"id": product_id, **{param: value for _, param, value in bound}}

        with self.engine.begin() as conn:
            conn.execute(
                text(f"INSERT INTO {self._quote(PRODUCTS_TABLE)} ({columns}) VALUES ({placeholders})"),
                params,
            )
        return self.get_product(product_id)

    def update_product(self, product_id: str, attributes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update a product in place. None values leave columns untouched.

        Returns:
            The updated product, or None if no product has this id
        """
        if not self.product_exists(product_id):
            logger.warning("Update skipped, product not found: %s", product_id)
            return None

        values = self._prepare_values(attributes)
        values.pop("updatedAt", None)
        bound = self._bind_columns(values)

        assignments = [f"{col} = :{param}" for col, param, _ in bound]
        assignments.append(f"{self._quote('updatedAt')} = :updated_at")
        params = {param: value for _, param, value in bound}
        params.update({"updated_at": _now(), "id": product_id})

        with self.engine.begin() as conn:
            result = conn.execute(
                text(
                    f"UPDATE {self._quote(PRODUCTS_TABLE)} SET {', '.join(assignments)} "
                    f"WHERE {self._quote('id')} = :id"
                ),
                params,
            )
            if result.rowcount == 0:
                logger.warning("Update touched no rows: %s", product_id)
                return None

        if self.compact_after_update:
            self.compact()
        return self.get_product(product_id)

    def upsert_product(self, attributes: Mapping[str, Any]) -> Dict[str, Any]:
        """Update the product with this id if it exists, otherwise create it."""
        product_id = attributes.get("id")
        if product_id and self.product_exists(product_id):
            return self.update_product(product_id, attributes)
        return self.create_product(attributes)

    def product_exists(self, product_id: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(self.products_table.c.id).where(self.products_table.c.id == product_id)
            ).first()
        return row is not None

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT * FROM {self._quote(PRODUCTS_TABLE)} WHERE {self._quote('id')} = :id"),
                {"id": product_id},
            ).mappings().first()
        return self._row_to_product(row) if row is not None else None

    def get_all_products(self) -> List[Dict[str, Any]]:
        """All products ordered by name. Rows that fail to decode are skipped."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT * FROM {self._quote(PRODUCTS_TABLE)} ORDER BY {self._quote('name')}")
            ).mappings().all()

        products = []
        for row in rows:
            try:
                products.append(self._row_to_product(row))
            except (TypeError, ValueError) as e:
                logger.error("Skipping unreadable product %s: %s", row.get("id"), e)
        return products

    def search_products(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on name, brand, type and category."""
        pattern = f"%{query.lower()}%"
        table = self.products_table
        stmt = (
            select(table.c.id)
            .where(
                func.lower(table.c.name).like(pattern)
                | func.lower(table.c.brand).like(pattern)
                | func.lower(table.c.type).like(pattern)
                | func.lower(table.c.category).like(pattern)
            )
            .order_by(table.c.name)
        )
        with self.engine.connect() as conn:
            ids = [row.id for row in conn.execute(stmt)]
        return [product for product in map(self.get_product, ids) if product is not None]

    def get_unique_values(self, field: str) -> List[Any]:
        """
        Distinct values of one column, flattening array-encoded values.

        Raises:
            ValueError: If the column does not exist
        """
        with self._lock:
            column = self._columns.get(field.lower())
        if column is None:
            raise ValueError(f"Unknown column: {field}")

        quoted = self._quote(column)
        with self.engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT DISTINCT {quoted} FROM {self._quote(PRODUCTS_TABLE)} "
                     f"WHERE {quoted} IS NOT NULL")
            ).all()

        values: List[Any] = []
        for (value,) in rows:
            if isinstance(value, str) and value.startswith("["):
                try:
                    items = json.loads(value)
                except ValueError:
                    items = [value]
            else:
                items = [value]
            for item in items:
                if item not in values and item not in ("", None):
                    values.append(item)
        return sorted(values, key=str)

    def count_products(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(self.products_table)).scalar_one()

    def delete_product(self, product_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                self.products_table.delete().where(self.products_table.c.id == product_id)
            )
        return result.rowcount > 0

    def clear_all_products(self) -> int:
        """
        Delete every product and verify the table is empty.

        Returns:
            Number of rows deleted

        Raises:
            VerificationError: If rows remain after the delete (rolled back)
        """
        with self.engine.begin() as conn:
            deleted = conn.execute(self.products_table.delete()).rowcount
            remaining = conn.execute(
                select(func.count()).select_from(self.products_table)
            ).scalar_one()
            if remaining:
                raise VerificationError(
                    f"{remaining} product(s) remain after clearing {self.environment} store"
                )
        logger.info("Cleared %d product(s) from %s store", deleted, self.environment)
        return deleted

    def reset_database_schema(self) -> bool:
        """Drop the products table and recreate the baseline schema."""
        with self.engine.begin() as conn:
            conn.execute(text(f"DROP TABLE IF EXISTS {self._quote(PRODUCTS_TABLE)}"))
        self.products_table.create(self.engine)
        self.refresh_columns()
        logger.info("Reset %s products table to baseline schema (%d columns)",
                    self.environment, len(self._columns))
        return True

    def compact(self) -> None:
        """Checkpoint the write-ahead log and vacuum the file."""
        with self.engine.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
            conn.execute(text("PRAGMA wal_checkpoint(TRUNCATE)"))
            conn.execute(text("VACUUM"))
        logger.debug("Compacted %s", self.db_path)
