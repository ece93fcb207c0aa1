"""SQLite-backed key-value store holding the relay's durable state."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Optional


class SQLiteKeyValueStore:
    """Simple key-value store; every operation is a single atomic statement."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def set(self, key: str, value: Any) -> None:
        if not key:
            raise ValueError("Key must be a non-empty string")

        value_json = json.dumps(value)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_entries (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value_json),
            )

    def get(self, key: str) -> Optional[Any]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE key = ?",
                (key,),
            ).fetchone()
        if not row:
            return None
        return json.loads(row["value"])

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))


__all__ = ["SQLiteKeyValueStore"]
