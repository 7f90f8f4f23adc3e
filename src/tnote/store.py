"""
Storage module for tnote.

sqlite used as a two-namespace key/value store:
- notes: 8-byte big-endian note ID -> JSON note record
- meta:  "id_seq" -> 8-byte big-endian last issued note ID

Every mutation runs in one BEGIN IMMEDIATE transaction, so allocating an
ID and writing the note either both happen or neither does.
"""

import fcntl
import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from tnote.config import get_db_path
from tnote.errors import NotFoundError, StorageIOError
from tnote.models import Note, decode_id, encode_id

logger = logging.getLogger(__name__)

ID_SEQ_KEY = "id_seq"
DEFAULT_LOCK_TIMEOUT = 1.0
LOCK_POLL_INTERVAL = 0.05

# BLOB keys compare bytewise, so iteration order is ascending ID
SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS notes (
        key BLOB PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS meta (
        key TEXT PRIMARY KEY,
        value BLOB NOT NULL
    )
    """,
)


def acquire_file_lock(lock_path: Path, timeout: float) -> int:
    """
    Take an exclusive advisory lock on lock_path.

    Waits at most `timeout` seconds for another process to let go, then
    raises StorageIOError instead of hanging. Returns the locked fd.
    """
    try:
        fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o600)
    except OSError as e:
        raise StorageIOError(f"cannot open lock file {lock_path}: {e}") from e
    deadline = time.monotonic() + max(timeout, 0)
    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            return fd
        except BlockingIOError:
            if time.monotonic() >= deadline:
                os.close(fd)
                raise StorageIOError(
                    f"timed out after {timeout:g}s waiting for lock on {lock_path}; "
                    "is another tnote running?"
                )
            time.sleep(LOCK_POLL_INTERVAL)
        except OSError as e:
            os.close(fd)
            raise StorageIOError(f"cannot lock {lock_path}: {e}") from e


def release_file_lock(fd: int) -> None:
    """Release and close a lock taken by acquire_file_lock."""
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


class Store:
    """Durable note store backed by a single sqlite file."""

    def __init__(self, db_path: Path | None = None, lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.db_path = Path(db_path) if db_path else get_db_path()
        self.lock_path = self.db_path.with_name(self.db_path.name + ".lock")
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self._lock_fd: int | None = None
        self._open(lock_timeout)

    def _open(self, lock_timeout: float) -> None:
        """Lock the database file, connect, and ensure the schema exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"cannot create {self.db_path.parent}: {e}") from e

        self._lock_fd = acquire_file_lock(self.lock_path, lock_timeout)
        try:
            # Explicit BEGIN/COMMIT below, so no implicit transactions
            self._conn = sqlite3.connect(
                self.db_path,
                timeout=lock_timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            with self.transaction(write=True) as conn:
                self._create_schema(conn)
        except sqlite3.Error as e:
            self.close()
            raise StorageIOError(f"cannot open {self.db_path}: {e}") from e
        except StorageIOError:
            self.close()
            raise
        logger.debug("Opened note store at %s", self.db_path)

    @staticmethod
    def _create_schema(conn: sqlite3.Connection) -> None:
        for statement in SCHEMA:
            conn.execute(statement)

    def close(self) -> None:
        """Close the connection and release the file lock."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self._lock_fd is not None:
            release_file_lock(self._lock_fd)
            self._lock_fd = None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def transaction(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Unit of work around the connection.

        Writes take sqlite's single writer slot up front (BEGIN IMMEDIATE);
        reads use a deferred transaction. The connection is shared, so every
        transaction holds the in-process lock. Commits on success, rolls back
        on any exception.
        """
        if self._conn is None:
            raise StorageIOError("store is closed")

        with self._lock:
            conn = self._conn
            try:
                conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            except sqlite3.Error as e:
                raise StorageIOError(f"cannot begin transaction: {e}") from e
            try:
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StorageIOError(f"storage error: {e}") from e
            except BaseException:
                self._rollback(conn)
                raise

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        # sqlite already rolled back on IOERR, FULL and BUSY
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def _next_id(self, conn: sqlite3.Connection) -> int:
        """Bump and persist the ID sequence. Caller holds a write transaction."""
        row = conn.execute("SELECT value FROM meta WHERE key = ?", (ID_SEQ_KEY,)).fetchone()
        note_id = 1 if row is None else decode_id(row[0]) + 1
        conn.execute(
            "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
            (ID_SEQ_KEY, encode_id(note_id)),
        )
        return note_id

    def add(self, title: str, body: str) -> Note:
        """Create a note. Returns it with its assigned ID."""
        with self.transaction(write=True) as conn:
            note = Note(
                id=self._next_id(conn),
                title=title,
                body=body,
                created_at=datetime.now(timezone.utc),
            )
            conn.execute(
                "INSERT INTO notes (key, value) VALUES (?, ?)",
                (encode_id(note.id), note.to_json()),
            )
        logger.info("Added note %d", note.id)
        return note

    def list(self) -> list[Note]:
        """Get all notes. Order is not part of the contract; sort as needed."""
        with self.transaction() as conn:
            rows = conn.execute("SELECT value FROM notes ORDER BY key").fetchall()
        return [Note.from_json(row[0]) for row in rows]

    def get(self, note_id: int) -> Note:
        """Get a single note by ID."""
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM notes WHERE key = ?", (encode_id(note_id),)
            ).fetchone()
        if row is None:
            raise NotFoundError(note_id)
        return Note.from_json(row[0])

    def update(self, note: Note) -> None:
        """
        Overwrite the stored note with the same ID.

        Raises NotFoundError if no such note exists. created_at is kept
        from the stored record.
        """
        key = encode_id(note.id)
        with self.transaction(write=True) as conn:
            row = conn.execute("SELECT value FROM notes WHERE key = ?", (key,)).fetchone()
            if row is None:
                raise NotFoundError(note.id)
            stored = Note.from_json(row[0])
            record = note.model_copy(update={"created_at": stored.created_at})
            conn.execute("UPDATE notes SET value = ? WHERE key = ?", (record.to_json(), key))
        logger.info("Updated note %d", note.id)

    def delete(self, note_id: int) -> None:
        """Delete a note. Unknown IDs are ignored."""
        with self.transaction(write=True) as conn:
            cursor = conn.execute("DELETE FROM notes WHERE key = ?", (encode_id(note_id),))
        if cursor.rowcount:
            logger.info("Deleted note %d", note_id)

    def count(self) -> int:
        """Number of stored notes."""
        with self.transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]

    def last_id(self) -> int:
        """Last issued note ID (0 if none has been issued)."""
        with self.transaction() as conn:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (ID_SEQ_KEY,)).fetchone()
        return 0 if row is None else decode_id(row[0])

