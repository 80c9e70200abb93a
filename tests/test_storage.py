import sqlite3
from pathlib import Path

import pytest

from mathquiz.errors import PersistenceError
from mathquiz.storage import FileStorage, MemoryStorage, SqliteStorage, open_storage


def test_memory_storage_round_trip() -> None:
    storage = MemoryStorage()
    assert storage.load() is None
    storage.save(b"[]")
    assert storage.load() == b"[]"


def test_file_storage_missing_then_saved(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path / "nested")
    assert storage.load() is None
    storage.save(b'[{"id": 1}]')
    assert storage.load() == b'[{"id": 1}]'
    assert storage.path == tmp_path / "nested" / "mathGameHistory.json"
    assert [item.name for item in storage.path.parent.iterdir()] == ["mathGameHistory.json"]


def test_file_storage_read_failure_is_persistence_error(tmp_path: Path) -> None:
    (tmp_path / "mathGameHistory.json").mkdir()
    storage = FileStorage(tmp_path)
    with pytest.raises(PersistenceError):
        storage.load()
    with pytest.raises(PersistenceError):
        storage.save(b"[]")


def test_sqlite_storage_round_trip_and_overwrite() -> None:
    storage = SqliteStorage(":memory:")
    assert storage.load() is None
    storage.save(b"[1]")
    storage.save(b"[1, 2]")
    assert storage.load() == b"[1, 2]"
    rows = storage._conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()  # noqa: SLF001
    assert int(rows[0]) == 1


def test_sqlite_migration_sets_user_version_and_history() -> None:
    storage = SqliteStorage(":memory:")
    version = int(storage._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == 1
    rows = storage._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()  # noqa: SLF001
    assert [int(row["version"]) for row in rows] == [1]


def test_sqlite_storage_persists_across_reopen(tmp_path: Path) -> None:
    db_path = tmp_path / "data" / "quiz.db"
    first = SqliteStorage(db_path)
    first.save("[\"ñ\"]".encode())
    first.close()

    second = SqliteStorage(db_path)
    assert second.load() == "[\"ñ\"]".encode()
    second.close()


def test_sqlite_rejects_newer_schema(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("PRAGMA user_version = 7")
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(PersistenceError):
        SqliteStorage(db_path)


def test_sqlite_keys_are_independent(tmp_path: Path) -> None:
    db_path = tmp_path / "quiz.db"
    storage = SqliteStorage(db_path)
    storage.save(b"[]")
    other = SqliteStorage(db_path, key="otherKey")
    assert other.load() is None
    assert storage.load() == b"[]"
    other.close()
    storage.close()


def test_open_storage_kinds(tmp_path: Path) -> None:
    assert isinstance(open_storage("memory", tmp_path), MemoryStorage)
    assert isinstance(open_storage("file", tmp_path), FileStorage)
    sqlite_storage = open_storage("sqlite", tmp_path)
    assert isinstance(sqlite_storage, SqliteStorage)
    sqlite_storage.close()
    assert (tmp_path / "quiz.db").exists()
    with pytest.raises(ValueError):
        open_storage("cloud", tmp_path)


def test_sqlite_uncreatable_directory_is_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(PersistenceError):
        SqliteStorage(blocker / "sub" / "quiz.db")
