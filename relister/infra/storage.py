"""SQLite-backed processing-record store for local and dev runs."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable

from .records import UpsertRequest


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._connections[path] = conn
                self._ensure_schema(conn)
            return self._connections[path]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS processing_records (
                id TEXT PRIMARY KEY,
                attributes TEXT NOT NULL
            )
            """
        )
        conn.commit()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


class SQLiteRecordStore:
    """Same contract as the DynamoDB store, one JSON document per key."""

    def __init__(
        self,
        manager: SQLiteManager,
        db_path: Path,
        batch_read_limit: int = 100,
    ) -> None:
        self.manager = manager
        self.db_path = db_path
        self.batch_read_limit = batch_read_limit
        self._lock = Lock()
        self._conn = self.manager.connect(db_path)

    def batch_get(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        unique = list(dict.fromkeys(keys))
        if len(unique) > self.batch_read_limit:
            raise ValueError(
                f"batch_get accepts at most {self.batch_read_limit} keys, got {len(unique)}"
            )
        if not unique:
            return {}
        placeholders = ", ".join("?" for _ in unique)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT id, attributes FROM processing_records WHERE id IN ({placeholders})",
                unique,
            ).fetchall()
        return {row["id"]: {**json.loads(row["attributes"]), "id": row["id"]} for row in rows}

    def upsert(self, request: UpsertRequest) -> None:
        with self._lock, self._conn:
            row = self._conn.execute(
                "SELECT attributes FROM processing_records WHERE id = ?", (request.key,)
            ).fetchone()
            current: dict[str, Any] = json.loads(row["attributes"]) if row else {}
            for name, value in request.create_only.items():
                current.setdefault(name, value)
            current.update(request.overwrite)
            self._conn.execute(
                "INSERT OR REPLACE INTO processing_records(id, attributes) VALUES (?, ?)",
                (request.key, json.dumps(current, ensure_ascii=False)),
            )


__all__ = ["SQLiteManager", "SQLiteRecordStore"]
