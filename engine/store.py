# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
SQLite base for every engine store.

Lazy connection, WAL mode, row_factory, schema bootstrap on first use.
One connection per store instance, shared across threads behind a lock;
separate instances (or processes) on the same file coordinate through
SQLite's own locking.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

_BUSY_TIMEOUT_S = 10.0


class SQLiteStore:
    """Subclasses set _SCHEMA and implement _default_path()."""

    _SCHEMA = ""

    def __init__(self, db_path: Optional[Path] = None):
        self._path = Path(db_path) if db_path is not None else self._default_path()
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def _default_path(self) -> Path:
        raise NotImplementedError

    @property
    def db_path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _db(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        with self._lock:
            if self._conn is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                # isolation_level=None: autocommit, transactions are explicit
                conn = sqlite3.connect(
                    str(self._path),
                    timeout=_BUSY_TIMEOUT_S,
                    check_same_thread=False,
                    isolation_level=None,
                )
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(self._SCHEMA)
                self._conn = conn
        return self._conn

    def close(self):
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: Sequence = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self._db().execute(sql, params).fetchall()

    def _write(self, sql: str, params: Sequence = ()) -> int:
        """Run one autocommitted statement, return rowcount."""
        with self._lock:
            return self._db().execute(sql, params).rowcount

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        BEGIN IMMEDIATE ... COMMIT, holding the instance lock throughout.

        IMMEDIATE takes the database write lock before the first read, so a
        count-then-insert inside the block is atomic across connections.
        """
        with self._lock:
            conn = self._db()
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
