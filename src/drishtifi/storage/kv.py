from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..errors import StorageError
from ..logging import get_logger
from ..paths import find_project_root, var_dir


LOG = get_logger("storage-kv")

DEFAULT_DB_FOLDER = "drishtifi"
DEFAULT_DB_FILENAME = "storage.sqlite3"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv (
  key        TEXT PRIMARY KEY,
  value      TEXT NOT NULL,
  updated_at TEXT DEFAULT (datetime('now'))
);
"""


class KeyValueStorage:
    """String-to-string storage with whole-value overwrite semantics.

    Mirrors browser local storage: no partial updates, no transactions across
    keys. Implementations raise StorageError when the backend fails.
    """

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        """Delete key; a missing key is not an error."""
        raise NotImplementedError


class InMemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"value for {key!r} must be a string")
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteStorage(KeyValueStorage):
    """SQLite-backed key-value table.

    - Places DB under `<project-root>/var/drishtifi/storage.sqlite3` unless
      db_path is given.
    - Ensures schema on first use.
    """

    def __init__(self, root_dir: Optional[str] = None, *, db_path: Optional[str] = None) -> None:
        if db_path is None:
            root = find_project_root(root_dir)
            folder = os.path.join(var_dir(root), DEFAULT_DB_FOLDER)
            db_path = os.path.join(folder, DEFAULT_DB_FILENAME)
        folder = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(folder, exist_ok=True)
        self.db_path = os.path.abspath(db_path)
        LOG.info(f"Key-value storage path: {self.db_path}")
        self._ensure_schema()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot open {self.db_path}: {exc}") from exc
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            except sqlite3.Error:
                # Non-fatal; continue with schema creation
                pass
            try:
                cur.executescript(SCHEMA_SQL)
                conn.commit()
            except sqlite3.Error as exc:
                raise StorageError(f"cannot create kv schema: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?;", (key,)).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"read {key!r} failed: {exc}") from exc
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"value for {key!r} must be a string")
        with self.connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO kv (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = datetime('now');
                    """,
                    (key, value),
                )
                conn.commit()
            except sqlite3.Error as exc:
                raise StorageError(f"write {key!r} failed: {exc}") from exc


    def remove_item(self, key: str) -> None:
        with self.connect() as conn:
            try:
                conn.execute("DELETE FROM kv WHERE key = ?;", (key,))
                conn.commit()
            except sqlite3.Error as exc:
                raise StorageError(f"delete {key!r} failed: {exc}") from exc
