from __future__ import annotations

import logging

from adapters.external.database.sqlite_store import SQLiteStore
from adapters.external.database.stats_repository_sqlite import StatsRepositorySQLite
from config.settings import settings


class StorageSupervisor:
    """
    High-level supervisor for market-data-collector.

    Responsibilities:
    - Open the SQLite store (data directory, WAL, schema).
    - Log table sizes at startup.
    - Hand the single store instance to the HTTP layer.

    There are no background loops: resampling only runs when a request asks for it.
    """

    def __init__(
        self,
        *,
        db_path: str | None = None,
        busy_timeout_ms: int | None = None,
        cache_size_kb: int | None = None,
    ) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._db_path = db_path or settings.DB_PATH
        self._busy_timeout_ms = busy_timeout_ms if busy_timeout_ms is not None else settings.DB_BUSY_TIMEOUT_MS
        self._cache_size_kb = cache_size_kb if cache_size_kb is not None else settings.DB_CACHE_SIZE_KB
        self._store: SQLiteStore | None = None

    @property
    def store(self) -> SQLiteStore | None:
        """
        Expose the store after start().
        """
        return self._store

    def start(self) -> SQLiteStore:
        """
        Open the store and ensure the schema.
        """
        store = SQLiteStore(
            self._db_path,
            busy_timeout_ms=self._busy_timeout_ms,
            cache_size_kb=self._cache_size_kb,
        )
        store.open()
        self._store = store

        counts = StatsRepositorySQLite(store).table_counts()
        self._logger.info(
            "Tables ready at %s: ticks=%s candles_1m=%s candles(legacy)=%s",
            store.db_path,
            counts["ticks"],
            counts["candles_1m"],
            counts["candles"],
        )
        return store

    def stop(self) -> None:
        """
        Connections are per-operation, so there is nothing to close beyond dropping the handle.
        """
        if self._store is not None:
            self._logger.info("Store released: %s", self._store.db_path)
        self._store = None
