from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from core.domain.errors import ConstraintViolationError, StorageError
from core.repositories.transaction_manager import TransactionManager

SCHEMA = """
-- legacy whole-candle table (backward compatible)
CREATE TABLE IF NOT EXISTS candles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    symbol TEXT NOT NULL,
    interval TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    open REAL NOT NULL,
    high REAL NOT NULL,
    low REAL NOT NULL,
    close REAL NOT NULL,
    volume REAL,
    source TEXT DEFAULT 'realtime',
    created_at INTEGER DEFAULT (CAST(strftime('%s', 'now') AS INTEGER) * 1000)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_candles_unique
ON candles(symbol, interval, timestamp);

-- raw high-frequency ticks, ts_ms in epoch-ms
CREATE TABLE IF NOT EXISTS ticks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    symbol TEXT NOT NULL,
    ts_ms INTEGER NOT NULL,
    price REAL NOT NULL,
    source TEXT DEFAULT 'realtime',
    created_at INTEGER DEFAULT (CAST(strftime('%s', 'now') AS INTEGER) * 1000)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_ticks_unique
ON ticks(symbol, ts_ms, source);
CREATE INDEX IF NOT EXISTS idx_ticks_symbol_ts
ON ticks(symbol, ts_ms);

-- resampled candle cache, derived from ticks
CREATE TABLE IF NOT EXISTS candles_1m (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    symbol TEXT NOT NULL,
    ts_ms INTEGER NOT NULL,
    open REAL NOT NULL,
    high REAL NOT NULL,
    low REAL NOT NULL,
    close REAL NOT NULL,
    volume REAL DEFAULT 0,
    source TEXT DEFAULT 'resampled',
    created_at INTEGER DEFAULT (CAST(strftime('%s', 'now') AS INTEGER) * 1000)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_c1m_unique
ON candles_1m(symbol, ts_ms, source);
CREATE INDEX IF NOT EXISTS idx_c1m_symbol_ts
ON candles_1m(symbol, ts_ms);
"""

TABLES = ("candles", "ticks", "candles_1m")


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """
    Re-raise sqlite3 errors as domain StorageError.

    Busy/locked databases are flagged retryable: the writer lost the race for
    the write lock within the busy timeout.
    """
    try:
        yield
    except sqlite3.IntegrityError as exc:
        raise ConstraintViolationError(f"{operation}: {exc}", operation=operation) from exc
    except sqlite3.OperationalError as exc:
        msg = str(exc)
        retryable = "locked" in msg or "busy" in msg
        raise StorageError(f"{operation}: {msg}", operation=operation, retryable=retryable) from exc
    except sqlite3.Error as exc:
        raise StorageError(f"{operation}: {exc}", operation=operation) from exc


class SQLiteStore(TransactionManager):
    """
    Single embedded SQLite database shared by every repository.

    - WAL journal: one writer at a time, readers proceed concurrently.
    - Every operation opens a short-lived connection; nothing is held across requests.
    - Writers take the lock up front (BEGIN IMMEDIATE) and wait up to the busy timeout.

    Constructed once at startup and passed explicitly to repositories and use cases.
    """

    def __init__(
        self,
        db_path: str,
        *,
        busy_timeout_ms: int = 5000,
        cache_size_kb: int = 1_000_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._busy_timeout_ms = int(busy_timeout_ms)
        self._cache_size_kb = int(cache_size_kb)
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def open(self) -> None:
        """
        Create the data directory, switch to WAL and ensure the schema exists.
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn, translate_errors("open"):
            mode = conn.execute("PRAGMA journal_mode = WAL").fetchone()[0]
            conn.executescript(SCHEMA)
        self._logger.info("SQLite store ready: path=%s journal_mode=%s", self._db_path, mode)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Autocommit connection for reads and single statements.
        """
        conn: sqlite3.Connection | None = None
        try:
            with translate_errors("connect"):
                conn = sqlite3.connect(
                    str(self._db_path),
                    timeout=self._busy_timeout_ms / 1000.0,
                    isolation_level=None,
                    check_same_thread=False,
                )
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA synchronous = NORMAL")
                conn.execute(f"PRAGMA cache_size = -{self._cache_size_kb}")
                conn.execute(f"PRAGMA busy_timeout = {self._busy_timeout_ms}")
            yield conn
        finally:
            if conn is not None:
                conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Write transaction: commit on normal exit, roll back everything on error.
        """
        with self.connection() as conn:
            with translate_errors("begin"):
                conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    with translate_errors("rollback"):
                        conn.execute("ROLLBACK")
                raise
            with translate_errors("commit"):
                conn.execute("COMMIT")

    def count(self, table: str) -> int:
        if table not in TABLES:
            raise ValueError(f"unknown table: {table}")
        with self.connection() as conn, translate_errors(f"count {table}"):
            return int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])
