from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from .base import ALL_KEYS, KeyValueStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class SQLiteStore(KeyValueStore):
    """Key-value table in a single SQLite file; one row per collection key."""

    def __init__(self, db_path: str = "ledger.db") -> None:
        self._db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA journal_mode = WAL;")
        self._conn.execute(SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def backup_to(self, target_path: str) -> bool:
        """Copy the live database, WAL contents included, into ``target_path``."""
        try:
            target = sqlite3.connect(target_path)
            try:
                self._conn.backup(target)
            finally:
                target.close()
            return True
        except sqlite3.Error:
            logger.exception("Failed to back up %s to %s", self._db_path, target_path)
            return False

    def save(self, key: str, value: Any) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False)
            self._conn.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (str(key), payload),
            )
            self._conn.commit()
            return True
        except (sqlite3.Error, TypeError, ValueError):
            logger.exception("Failed to save key %s to %s", key, self._db_path)
            return False

    def load(self, key: str, default: Any = None) -> Any:
        try:
            row = self._conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (str(key),)
            ).fetchone()
        except sqlite3.Error:
            logger.exception("Failed to read key %s from %s", key, self._db_path)
            return default
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Stored value for key %s is not valid JSON, using default", key)
            return default

    def remove(self, key: str) -> bool:
        try:
            self._conn.execute("DELETE FROM kv_store WHERE key = ?", (str(key),))
            self._conn.commit()
            return True
        except sqlite3.Error:
            logger.exception("Failed to remove key %s from %s", key, self._db_path)
            return False

    def clear_all(self) -> bool:
        try:
            self._conn.executemany(
                "DELETE FROM kv_store WHERE key = ?", [(key,) for key in ALL_KEYS]
            )
            self._conn.commit()
            return True
        except sqlite3.Error:
            logger.exception("Failed to clear %s", self._db_path)
            return False
