"""Key-value storage slots for the serialized history ledger."""

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .errors import PersistenceError

logger = logging.getLogger(__name__)

HISTORY_KEY = "mathGameHistory"
SCHEMA_VERSION = 1
STORAGE_KINDS = ("sqlite", "file", "memory")


class HistoryStorage(Protocol):
    """One durable slot holding raw bytes."""

    def load(self) -> bytes | None: ...

    def save(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class MemoryStorage:
    """In-process slot, lost when the process exits."""

    def __init__(self, data: bytes | None = None) -> None:
        self.data = data

    def load(self) -> bytes | None:
        return self.data

    def save(self, data: bytes) -> None:
        self.data = bytes(data)

    def close(self) -> None:
        return None


class FileStorage:
    """Slot stored as one JSON file per key inside a directory."""

    def __init__(self, directory: Path | str, key: str = HISTORY_KEY) -> None:
        self.path = Path(directory) / f"{key}.json"

    def load(self) -> bytes | None:
        """Return file contents, or None when nothing was saved yet."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc

    def save(self, data: bytes) -> None:
        """Replace file contents atomically."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc

    def close(self) -> None:
        return None


class SqliteStorage:
    """Slot stored as one row of a SQLite key-value table."""

    def __init__(self, db_path: Path | str, key: str = HISTORY_KEY) -> None:
        """Open the database and bring its schema up to date."""
        target = str(db_path)
        self.key = key
        try:
            if isinstance(db_path, Path):
                db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(target)
            self._conn.row_factory = sqlite3.Row
            self._apply_migrations()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(f"Could not open history database {target}: {exc}") from exc
        logger.debug("Opened history database %s", target)

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise PersistenceError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )
            logger.info("Migrated history database to schema version %d", version)

    def _migrate_to_v1(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def load(self) -> bytes | None:
        """Return the stored value, or None when the key is absent."""
        try:
            row = self._conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read key {self.key!r}: {exc}") from exc
        if row is None:
            return None
        value = row["value"]
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    def save(self, data: bytes) -> None:
        """Insert or replace the stored value."""
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (self.key, sqlite3.Binary(data), datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not write key {self.key!r}: {exc}") from exc

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def open_storage(kind: str, data_dir: Path) -> HistoryStorage:
    """Build the storage backend named by ``kind``."""
    if kind == "sqlite":
        return SqliteStorage(data_dir / "quiz.db")
    if kind == "file":
        return FileStorage(data_dir)
    if kind == "memory":
        return MemoryStorage()
    raise ValueError(f"Unknown storage kind {kind!r}; expected one of {', '.join(STORAGE_KINDS)}.")
