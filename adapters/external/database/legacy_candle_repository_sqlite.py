from __future__ import annotations

import time
from typing import List, Optional

from adapters.external.database.sqlite_store import SQLiteStore, translate_errors
from core.domain.entities.legacy_candle_entity import LegacyCandleEntity
from core.repositories.legacy_candle_repository import LegacyCandleRepository
from core.repositories.transaction_manager import Transaction
from core.services.payout_filter_service import PayoutFilterService

# Full replace on conflict, unlike ticks (price only).
UPSERT_LEGACY_SQL = """
    INSERT INTO candles (symbol, interval, timestamp, open, high, low, close, volume, source, created_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(symbol, interval, timestamp) DO UPDATE SET
        open = excluded.open,
        high = excluded.high,
        low = excluded.low,
        close = excluded.close,
        volume = excluded.volume,
        source = excluded.source
"""


class LegacyCandleRepositorySQLite(LegacyCandleRepository):
    """
    SQLite repository for the legacy `candles` table.

    Kept for producers that still send whole candles. Unique on
    (symbol, interval, timestamp).
    """

    TABLE = "candles"

    def __init__(self, store: SQLiteStore):
        self._store = store

    def upsert_legacy_candle(self, candle: LegacyCandleEntity, *, tx: Optional[Transaction] = None) -> None:
        params = (
            candle.symbol,
            candle.interval,
            int(candle.timestamp),
            float(candle.open),
            float(candle.high),
            float(candle.low),
            float(candle.close),
            float(candle.volume or 0.0),
            candle.source,
            int(time.time() * 1000),
        )
        if tx is not None:
            with translate_errors("upsert_legacy_candle"):
                tx.execute(UPSERT_LEGACY_SQL, params)
            return
        with self._store.transaction() as conn, translate_errors("upsert_legacy_candle"):
            conn.execute(UPSERT_LEGACY_SQL, params)

    def list_range(self, symbol: str, interval: str, start_ms: int, end_ms: int) -> List[LegacyCandleEntity]:
        return self._select(
            "symbol = ? AND interval = ? AND timestamp >= ? AND timestamp <= ?",
            (symbol, interval, int(start_ms), int(end_ms)),
        )

    def list_by_source(self, symbol: str, source: str, start_ms: int, end_ms: int) -> List[LegacyCandleEntity]:
        return self._select(
            "symbol = ? AND source = ? AND timestamp >= ? AND timestamp <= ?",
            (symbol, source, int(start_ms), int(end_ms)),
        )

    def list_non_payout(self) -> List[LegacyCandleEntity]:
        return self._select(f"NOT {PayoutFilterService.sql_predicate()}", ())

    def count_all(self) -> int:
        return self._store.count(self.TABLE)

    def _select(self, where: str, params: tuple) -> List[LegacyCandleEntity]:
        with self._store.connection() as conn, translate_errors("list_legacy_candles"):
            rows = conn.execute(
                f"SELECT * FROM {self.TABLE} WHERE {where} ORDER BY timestamp ASC, id ASC",
                params,
            ).fetchall()
        return [LegacyCandleEntity.from_row(r) for r in rows]
