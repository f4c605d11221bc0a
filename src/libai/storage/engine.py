"""Embedded key-value engine backed by a single SQLite file.

The engine behaves as an ordered byte map split into named namespaces.
Writes are buffered in an open transaction until ``flush()`` commits them;
reads through the same engine always see buffered writes. Only one engine
may hold a given file: the first open takes an exclusive file lock and
keeps it until ``close()``.
"""

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from libai.errors import StoreError
from libai.storage.schema import FORMAT_VERSION, PRAGMAS, SCHEMA, STORE_FILENAME

logger = logging.getLogger(__name__)


class Namespace:
    """A named partition ("tree") of the store."""

    def __init__(self, engine: "KVEngine", name: str):
        self._engine = engine
        self.name = name

    def put(self, key: bytes, value: bytes) -> None:
        self._engine._put(self.name, key, value)

    def get(self, key: bytes) -> Optional[bytes]:
        return self._engine._get(self.name, key)

    def delete(self, key: bytes) -> None:
        self._engine._delete(self.name, key)

    def iterate(self) -> Iterator[tuple[bytes, bytes]]:
        """Yield (key, value) pairs in key order, as of the call."""
        return self._engine._iterate(self.name)

    def count(self) -> int:
        return self._engine._count(self.name)

    def flush(self) -> None:
        self._engine.flush()

    def __repr__(self) -> str:
        return f"Namespace({self.name!r})"


class KVEngine:
    """SQLite-backed key-value engine for one store directory.

    A single connection is shared by all threads; every operation runs
    under one re-entrant lock.
    """

    def __init__(self, path: Path, conn: sqlite3.Connection):
        self.path = Path(path)
        self._conn: Optional[sqlite3.Connection] = conn
        self._lock = threading.RLock()
        self._known_namespaces: set[str] = set()

    @classmethod
    def open(cls, path: Path | str) -> "KVEngine":
        """Open or create the store inside directory ``path``.

        Raises:
            StoreError: If the file is locked by another engine, is not a
                valid store, or cannot be created.
        """
        path = Path(path)
        db_file = path / STORE_FILENAME
        try:
            conn = sqlite3.connect(
                db_file,
                timeout=0,  # fail fast when another process holds the lock
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StoreError(f"failed to open store at {path}: {e}") from e

        try:
            for pragma in PRAGMAS:
                conn.execute(pragma)
            conn.executescript(SCHEMA)
            # A real write acquires the exclusive lock even for an existing file
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(
                "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
                ("opened_at", str(int(time.time()))),
            )
            conn.execute(
                "INSERT OR IGNORE INTO meta (key, value) VALUES (?, ?)",
                ("format_version", FORMAT_VERSION),
            )
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.close()
            if "locked" in str(e):
                raise StoreError(f"store at {path} is locked by another process") from e
            raise StoreError(f"failed to open store at {path}: {e}") from e

        logger.info(f"Opened store at {db_file}")
        return cls(path, conn)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"store at {self.path} is closed")
        return self._conn

    def _begin_write(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            conn.execute("BEGIN IMMEDIATE")

    def open_namespace(self, name: str) -> Namespace:
        """Return the namespace called ``name``, registering it if new."""
        if not name:
            raise StoreError("namespace name must not be empty")
        with self._lock:
            conn = self._connection()
            if name not in self._known_namespaces:
                started = not conn.in_transaction
                try:
                    self._begin_write(conn)
                    conn.execute(
                        "INSERT OR IGNORE INTO namespaces (name) VALUES (?)", (name,)
                    )
                    if started:
                        conn.execute("COMMIT")
                except sqlite3.Error as e:
                    if started and conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise StoreError(f"failed to open namespace {name!r}: {e}") from e
                self._known_namespaces.add(name)
        return Namespace(self, name)

    def namespaces(self) -> list[str]:
        """List the registered namespace names."""
        with self._lock:
            conn = self._connection()
            try:
                rows = conn.execute("SELECT name FROM namespaces ORDER BY name").fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"failed to list namespaces: {e}") from e
        return [row[0] for row in rows]

    def _put(self, namespace: str, key: bytes, value: bytes) -> None:
        with self._lock:
            conn = self._connection()
            try:
                self._begin_write(conn)
                conn.execute(
                    """INSERT OR REPLACE INTO entries (namespace, key, value)
                       VALUES (?, ?, ?)""",
                    (namespace, key, value),
                )
            except sqlite3.Error as e:
                raise StoreError(f"put failed in {namespace!r}: {e}") from e

    def _get(self, namespace: str, key: bytes) -> Optional[bytes]:
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT value FROM entries WHERE namespace = ? AND key = ?",
                    (namespace, key),
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"get failed in {namespace!r}: {e}") from e
        return bytes(row[0]) if row else None

    def _delete(self, namespace: str, key: bytes) -> None:
        with self._lock:
            conn = self._connection()
            try:
                self._begin_write(conn)
                conn.execute(
                    "DELETE FROM entries WHERE namespace = ? AND key = ?",
                    (namespace, key),
                )
            except sqlite3.Error as e:
                raise StoreError(f"delete failed in {namespace!r}: {e}") from e

    def _iterate(self, namespace: str) -> Iterator[tuple[bytes, bytes]]:
        with self._lock:
            conn = self._connection()
            try:
                rows = conn.execute(
                    "SELECT key, value FROM entries WHERE namespace = ? ORDER BY key",
                    (namespace,),
                ).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"iterate failed in {namespace!r}: {e}") from e
        for key, value in rows:
            yield bytes(key), bytes(value)

    def _count(self, namespace: str) -> int:
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT COUNT(*) FROM entries WHERE namespace = ?", (namespace,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreError(f"count failed in {namespace!r}: {e}") from e
        return row[0]

    @contextmanager
    def write(self) -> Iterator[None]:
        """Run a group of writes atomically and flush them.

        The engine lock is held from the first statement to the commit, so
        no other thread can interleave. If the block raises, only its own
        writes are undone; writes buffered earlier by other callers stay
        pending.
        """
        with self._lock:
            conn = self._connection()
            nested = conn.in_transaction
            try:
                conn.execute("SAVEPOINT kv_write" if nested else "BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StoreError(f"failed to start write: {e}") from e

            try:
                yield
                if nested:
                    conn.execute("RELEASE kv_write")
            except sqlite3.Error as e:
                self._undo_write(conn, nested)
                raise StoreError(f"write failed: {e}") from e
            except BaseException:
                self._undo_write(conn, nested)
                raise
            self.flush()

    def _undo_write(self, conn: sqlite3.Connection, nested: bool) -> None:
        if not nested:
            self._rollback(conn)
            return
        try:
            conn.execute("ROLLBACK TO kv_write")
            conn.execute("RELEASE kv_write")
        except sqlite3.Error as e:
            raise StoreError(f"rollback failed: {e}") from e

    def _commit(self, conn: sqlite3.Connection) -> None:
        conn.execute("COMMIT")

    def _rollback(self, conn: sqlite3.Connection) -> None:
        # Registrations made in the discarded transaction are gone too
        self._known_namespaces.clear()
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            raise StoreError(f"rollback failed: {e}") from e

    def flush(self) -> None:
        """Commit buffered writes to durable storage.

        On failure the buffered writes are discarded so the store keeps
        its last flushed state.
        """
        with self._lock:
            conn = self._connection()
            if not conn.in_transaction:
                return
            try:
                self._commit(conn)
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StoreError(f"flush failed: {e}") from e

    def rollback(self) -> None:
        """Discard writes made since the last flush."""
        with self._lock:
            self._rollback(self._connection())

    def close(self) -> None:
        """Flush pending writes and release the file lock."""
        with self._lock:
            if self._conn is None:
                return
            try:
                self.flush()
            finally:
                self._conn.close()
                self._conn = None
        logger.info(f"Closed store at {self.path}")

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"KVEngine({str(self.path)!r}, {state})"
