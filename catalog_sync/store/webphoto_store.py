"""
Web photo store.

Site imagery (logos, banners) keyed by unique name, kept in the same
file as the products of its environment.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import MetaData, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import Engine

from .schema import build_webphotos_table

logger = logging.getLogger(__name__)


class WebPhotoStore:
    """name -> imageUrl mapping with upsert semantics."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.table = build_webphotos_table(MetaData())
        self.table.create(self.engine, checkfirst=True)

    def upsert_webphoto(self, name: str, image_url: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        stmt = insert(self.table).values(name=name, imageUrl=image_url, createdAt=now, updatedAt=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.name],
            set_={"imageUrl": stmt.excluded.imageUrl, "updatedAt": stmt.excluded.updatedAt},
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)
        logger.debug("Stored web photo %s", name)

    def get_webphoto(self, name: str) -> Optional[str]:
        with self.engine.connect() as conn:
            return conn.execute(
                select(self.table.c.imageUrl).where(self.table.c.name == name)
            ).scalar_one_or_none()

    def get_all_webphotos(self) -> Dict[str, str]:
        """All web photos as {name: imageUrl}."""
        with self.engine.connect() as conn:
            rows = conn.execute(select(self.table.c.name, self.table.c.imageUrl).order_by(self.table.c.name))
            return {row.name: row.imageUrl for row in rows}

    def delete_webphoto(self, name: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(self.table.delete().where(self.table.c.name == name))
        return result.rowcount > 0

    def clear_all_webphotos(self) -> int:
        with self.engine.begin() as conn:
            return conn.execute(self.table.delete()).rowcount
