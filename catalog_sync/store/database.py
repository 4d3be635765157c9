"""
Store engines.

One SQLite file per environment. Engines are cached per resolved path so
every store object for the same file shares one connection pool.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_engines: Dict[str, Engine] = {}


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def get_engine(path: str | Path) -> Engine:
    """
    Get (or create) the engine for a store file.

    The parent directory is created on demand.
    """
    path = Path(path).resolve()
    key = str(path)
    engine = _engines.get(key)
    if engine is None:
        path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{path}")
        event.listen(engine, "connect", _enable_wal)
        _engines[key] = engine
        logger.debug("Opened store %s", path)
    return engine


def dispose_engines() -> None:
    """Close every cached engine (used on shutdown and between tests)."""
    for key, engine in list(_engines.items()):
        engine.dispose()
        del _engines[key]
