"""
Category/subcategory relations.

Derived from the product set after each sync: one row per distinct
category and one row per distinct (category, subcategory) pair. A
subcategory is attributed to the product's FIRST category only.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..common.constants import DEFAULT_CATEGORY
from ..common.text_utils import slugify
from ..models import CategoryRelation

logger = logging.getLogger(__name__)


def category_relation_id(category: str, subcategory: str = "") -> str:
    """
    Stable relation id.

    Example:
        >>> category_relation_id("Bolsos")
        'cat_bolsos'
        >>> category_relation_id("Bolsos", "Cuero Fino")
        'sub_bolsos_cuero_fino'
    """
    if subcategory:
        return f"sub_{slugify(category)}_{slugify(subcategory)}"
    return f"cat_{slugify(category)}"


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CategoryRelationsMixin:
    """Relation CRUD for ProductStore (expects `engine` and `relations_table`)."""

    def _row_to_relation(self, row) -> CategoryRelation:
        return CategoryRelation(
            id=row.id,
            category=row.category,
            subcategory=row.subcategory or "",
            is_active=bool(row.isActive),
            created_at=row.createdAt or "",
            updated_at=row.updatedAt or "",
        )

    def create_category_relation(
        self,
        category: str,
        subcategory: str = "",
        is_active: bool = True,
    ) -> Optional[CategoryRelation]:
        """Insert a relation. Returns None if the pair already exists."""
        now = _now()
        row = {
            "id": category_relation_id(category, subcategory),
            "category": category,
            "subcategory": subcategory,
            "isActive": is_active,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(self.relations_table.insert().values(**row))
        except IntegrityError:
            logger.warning("Category relation already exists: %s / %s", category, subcategory)
            return None
        return self.get_category_relation(row["id"])

    def get_category_relation(self, relation_id: str) -> Optional[CategoryRelation]:
        table = self.relations_table
        with self.engine.connect() as conn:
            row = conn.execute(select(table).where(table.c.id == relation_id)).first()
        return self._row_to_relation(row) if row is not None else None

    def get_category_relations(self, active_only: bool = False) -> List[CategoryRelation]:
        table = self.relations_table
        stmt = select(table).order_by(table.c.category, table.c.subcategory)
        if active_only:
            stmt = stmt.where(table.c.isActive.is_(True))
        with self.engine.connect() as conn:
            return [self._row_to_relation(row) for row in conn.execute(stmt)]

    def get_active_category_relations(self) -> List[CategoryRelation]:
        return self.get_category_relations(active_only=True)

    def update_category_relation(self, relation_id: str, **changes: Any) -> Optional[CategoryRelation]:
        """
        Update category, subcategory and/or is_active of one relation.

        Returns:
            The updated relation, or None if it does not exist
        """
        columns = {"category": "category", "subcategory": "subcategory", "is_active": "isActive"}
        values: Dict[str, Any] = {
            columns[key]: value for key, value in changes.items()
            if key in columns and value is not None
        }
        values["updatedAt"] = _now()

        table = self.relations_table
        with self.engine.begin() as conn:
            result = conn.execute(table.update().where(table.c.id == relation_id).values(**values))
        if result.rowcount == 0:
            return None
        return self.get_category_relation(relation_id)

    def toggle_category_relation(self, relation_id: str) -> Optional[CategoryRelation]:
        relation = self.get_category_relation(relation_id)
        if relation is None:
            return None
        return self.update_category_relation(relation_id, is_active=not relation.is_active)

    def delete_category_relation(self, relation_id: str) -> bool:
        table = self.relations_table
        with self.engine.begin() as conn:
            result = conn.execute(table.delete().where(table.c.id == relation_id))
        return result.rowcount > 0

    def populate_category_relations(self) -> int:
        """
        Rebuild all relations from the current products.

        Existing relations are replaced, so activation flags reset to active.

        Returns:
            Number of relations written
        """
        relations: Dict[str, Dict[str, Any]] = {}
        now = _now()

        def add(category: str, subcategory: str = "") -> None:
            relation_id = category_relation_id(category, subcategory)
            if relation_id in relations:
                return
            relations[relation_id] = {
                "id": relation_id,
                "category": category,
                "subcategory": subcategory,
                "isActive": True,
                "createdAt": now,
                "updatedAt": now,
            }

        for product in self.get_all_products():
            categories = _as_list(product.get("category"))
            for category in categories:
                add(category)
            # Subcategories belong to the first category only
            owner = categories[0] if categories else DEFAULT_CATEGORY
            for subcategory in _as_list(product.get("subCategory")):
                if not categories:
                    add(owner)
                add(owner, subcategory)

        table = self.relations_table
        with self.engine.begin() as conn:
            conn.execute(table.delete())
            if relations:
                conn.execute(table.insert(), list(relations.values()))

        logger.info("Populated %d category relation(s) for %s store",
                    len(relations), self.environment)
        return len(relations)
