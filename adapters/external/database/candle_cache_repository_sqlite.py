from __future__ import annotations

import sqlite3
import time
from typing import List, Optional, Sequence

from adapters.external.database.sqlite_store import SQLiteStore, translate_errors
from core.domain.entities.candle_entity import CandleEntity
from core.repositories.candle_cache_repository import CandleCacheRepository
from core.repositories.transaction_manager import Transaction

UPSERT_CANDLE_SQL = """
    INSERT INTO candles_1m (symbol, ts_ms, open, high, low, close, volume, source, created_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(symbol, ts_ms, source) DO UPDATE SET
        open = excluded.open,
        high = excluded.high,
        low = excluded.low,
        close = excluded.close,
        volume = excluded.volume
"""


class CandleCacheRepositorySQLite(CandleCacheRepository):
    """
    SQLite implementation of the resampled candle cache.

    Keyed by (symbol, ts_ms, source). Re-running a resample over the same
    range rewrites identical values, so the cache never drifts or duplicates.
    """

    TABLE = "candles_1m"

    def __init__(self, store: SQLiteStore):
        """
        Args:
            store: Shared SQLite store.
        """
        self._store = store

    def upsert_candles(
        self,
        symbol: str,
        candles: Sequence[CandleEntity],
        *,
        tx: Optional[Transaction] = None,
    ) -> int:
        if tx is not None:
            return self._write(tx, symbol, candles)
        with self._store.transaction() as conn:
            return self._write(conn, symbol, candles)

    def _write(self, conn: sqlite3.Connection, symbol: str, candles: Sequence[CandleEntity]) -> int:
        now_ms = int(time.time() * 1000)
        with translate_errors("upsert_candles"):
            for c in candles:
                conn.execute(
                    UPSERT_CANDLE_SQL,
                    (
                        symbol,
                        int(c.ts_ms),
                        float(c.open),
                        float(c.high),
                        float(c.low),
                        float(c.close),
                        float(c.volume),
                        c.source,
                        now_ms,
                    ),
                )
        return len(candles)

    def list_range(self, symbol: str, start_ms: int, end_ms: int) -> List[CandleEntity]:
        """
        Fetch cached candles for a symbol in ascending order.
        """
        with self._store.connection() as conn, translate_errors("list_cached_candles"):
            rows = conn.execute(
                f"""
                SELECT ts_ms, open, high, low, close, volume, source
                FROM {self.TABLE}
                WHERE symbol = ? AND ts_ms >= ? AND ts_ms <= ?
                ORDER BY ts_ms ASC
                """,
                (symbol, int(start_ms), int(end_ms)),
            ).fetchall()
        return [CandleEntity.from_row(r) for r in rows]

    def count_all(self) -> int:
        return self._store.count(self.TABLE)
