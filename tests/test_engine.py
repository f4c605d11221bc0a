"""Tests for the SQLite-backed key-value engine."""

import os
import sqlite3
import subprocess
import sys
from pathlib import Path

import pytest

from libai.errors import StoreError
from libai.storage import KVEngine
from libai.storage.schema import STORE_FILENAME


@pytest.fixture
def engine(store_dir: Path):
    kv = KVEngine.open(store_dir)
    yield kv
    kv.close()


def test_open_creates_store_file(engine: KVEngine, store_dir: Path) -> None:
    assert (store_dir / STORE_FILENAME).is_file()
    assert not engine.closed


def test_put_get_delete(engine: KVEngine) -> None:
    tree = engine.open_namespace("things")
    assert tree.get(b"k") is None
    tree.put(b"k", b"v1")
    assert tree.get(b"k") == b"v1"
    tree.put(b"k", b"v2")
    assert tree.get(b"k") == b"v2"
    tree.delete(b"k")
    assert tree.get(b"k") is None
    tree.delete(b"missing")


def test_namespaces_are_isolated(engine: KVEngine) -> None:
    a = engine.open_namespace("a")
    b = engine.open_namespace("b")
    a.put(b"key", b"from-a")
    assert b.get(b"key") is None
    assert engine.namespaces() == ["a", "b"]


def test_iterate_yields_all_pairs(engine: KVEngine) -> None:
    tree = engine.open_namespace("things")
    for i in range(5):
        tree.put(f"k{i}".encode(), f"v{i}".encode())
    tree.flush()
    assert dict(tree.iterate()) == {f"k{i}".encode(): f"v{i}".encode() for i in range(5)}
    assert tree.count() == 5


def test_rollback_discards_unflushed_writes(engine: KVEngine) -> None:
    tree = engine.open_namespace("things")
    tree.put(b"kept", b"1")
    tree.flush()
    tree.put(b"dropped", b"2")
    tree.delete(b"kept")
    engine.rollback()
    assert tree.get(b"kept") == b"1"
    assert tree.get(b"dropped") is None
    # The namespace stays usable after a rollback
    tree.put(b"again", b"3")
    tree.flush()
    assert tree.get(b"again") == b"3"


def test_flushed_writes_survive_reopen(store_dir: Path) -> None:
    kv = KVEngine.open(store_dir)
    tree = kv.open_namespace("things")
    tree.put(b"key1", b"value1")
    tree.put(b"key2", b"value2")
    tree.flush()
    kv.close()

    kv = KVEngine.open(store_dir)
    try:
        tree = kv.open_namespace("things")
        assert tree.get(b"key1") == b"value1"
        assert tree.get(b"key2") == b"value2"
    finally:
        kv.close()


def test_second_engine_on_same_file_fails_fast(engine: KVEngine, store_dir: Path) -> None:
    with pytest.raises(StoreError, match="locked"):
        KVEngine.open(store_dir)


def test_second_process_cannot_open_locked_store(engine: KVEngine, store_dir: Path) -> None:
    script = (
        "import sys\n"
        "from libai.errors import StoreError\n"
        "from libai.storage import KVEngine\n"
        "try:\n"
        "    KVEngine.open(sys.argv[1])\n"
        "except StoreError:\n"
        "    print('locked')\n"
        "else:\n"
        "    print('opened')\n"
    )
    src = str(Path(__file__).resolve().parents[1] / "src")
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src, env.get("PYTHONPATH")) if p)
    result = subprocess.run(
        [sys.executable, "-c", script, str(store_dir)],
        capture_output=True,
        text=True,
        env=env,
        timeout=60,
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "locked"


def test_lock_is_released_on_close(store_dir: Path) -> None:
    first = KVEngine.open(store_dir)
    first.close()
    second = KVEngine.open(store_dir)
    second.close()


def test_corrupt_store_file_is_reported(store_dir: Path) -> None:
    (store_dir / STORE_FILENAME).write_bytes(b"definitely not sqlite " * 64)
    with pytest.raises(StoreError):
        KVEngine.open(store_dir)


def test_missing_directory_is_reported(tmp_path: Path) -> None:
    with pytest.raises(StoreError):
        KVEngine.open(tmp_path / "does" / "not" / "exist")


def test_closed_engine_rejects_operations(store_dir: Path) -> None:
    kv = KVEngine.open(store_dir)
    tree = kv.open_namespace("things")
    kv.close()
    kv.close()
    assert kv.closed
    with pytest.raises(StoreError):
        tree.get(b"k")
    with pytest.raises(StoreError):
        kv.open_namespace("other")


def test_empty_namespace_name_is_rejected(engine: KVEngine) -> None:
    with pytest.raises(StoreError):
        engine.open_namespace("")


def test_write_block_commits_on_exit(engine: KVEngine) -> None:
    tree = engine.open_namespace("things")
    with engine.write():
        tree.put(b"k", b"v")
    engine.rollback()
    assert tree.get(b"k") == b"v"


def test_failed_write_block_undoes_only_its_own_writes(engine: KVEngine) -> None:
    tree = engine.open_namespace("things")
    tree.put(b"pending", b"1")

    with pytest.raises(RuntimeError):
        with engine.write():
            tree.put(b"inside", b"2")
            raise RuntimeError("boom")

    assert tree.get(b"inside") is None
    assert tree.get(b"pending") == b"1"
    tree.flush()
    assert tree.get(b"pending") == b"1"


class _RollbackFailingConnection:
    """Connection wrapper whose ROLLBACK statements fail."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    def execute(self, sql: str, *args):
        if sql.startswith("ROLLBACK"):
            raise sqlite3.OperationalError("disk I/O error")
        return self._conn.execute(sql, *args)

    def close(self) -> None:
        self._conn.close()


def test_failed_rollback_raises_store_error(engine: KVEngine) -> None:
    tree = engine.open_namespace("things")
    tree.put(b"k", b"v")
    real_conn = engine._conn
    engine._conn = _RollbackFailingConnection(real_conn)
    try:
        with pytest.raises(StoreError, match="rollback failed"):
            engine.rollback()
    finally:
        engine._conn = real_conn
    engine.rollback()
    assert tree.get(b"k") is None
