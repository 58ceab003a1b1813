"""JSON blobs persisted under string keys."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import Column, MetaData, Table, Text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql import text

logger = logging.getLogger(__name__)

metadata = MetaData()

kv_store = Table(
    "kv_store",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
)

UPSERT_SQL = text(
    """
    INSERT INTO kv_store (key, value)
    VALUES (:key, :value)
    ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
    """
)


def ensure_schema(engine: Engine) -> None:
    """Create the key-value table if the database does not have it yet."""
    metadata.create_all(engine, checkfirst=True)


class KeyValueStore:
    """Whole-collection reads and writes of JSON values."""

    def __init__(self, engine: Engine, *, namespace: str = "") -> None:
        self.engine = engine
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get_json(self, key: str, default: Any = None) -> Any:
        with self.engine.connect() as conn:
            raw = conn.execute(
                text("SELECT value FROM kv_store WHERE key = :key"), {"key": self._key(key)}
            ).scalar_one_or_none()
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON stored under %s; ignoring", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, Any]) -> None:
        """Write several keys in one transaction."""
        with self.engine.begin() as conn:
            for key, value in values.items():
                self._upsert(conn, key, value)

    def get_set(self, key: str) -> set[str]:
        return set(self.get_json(key, []))

    def set_set(self, key: str, values: Iterable[str]) -> None:
        self.set_json(key, sorted(values))

    def delete(self, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM kv_store WHERE key = :key"), {"key": self._key(key)})

    def _upsert(self, conn: Connection, key: str, value: Any) -> None:
        if isinstance(value, (set, frozenset)):
            value = sorted(value)
        conn.execute(UPSERT_SQL, {"key": self._key(key), "value": json.dumps(value)})
