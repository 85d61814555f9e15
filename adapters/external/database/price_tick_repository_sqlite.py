from __future__ import annotations

import sqlite3
import time
from typing import List, Optional, Sequence, Tuple

from adapters.external.database.sqlite_store import SQLiteStore, translate_errors
from core.domain.entities.price_tick_entity import PriceTickEntity
from core.repositories.price_tick_repository import PriceTickRepository
from core.repositories.transaction_manager import Transaction

# Price-only overwrite: created_at and source keep their first-insert values.
UPSERT_TICK_SQL = """
    INSERT INTO ticks (symbol, ts_ms, price, source, created_at)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT(symbol, ts_ms, source) DO UPDATE SET
        price = excluded.price
"""


class PriceTickRepositorySQLite(PriceTickRepository):
    """
    SQLite repository for high-frequency ticks.

    Table `ticks` is unique on (symbol, ts_ms, source). Writes are upserts, so
    replaying the same payload never creates duplicates.
    """

    TABLE = "ticks"

    def __init__(self, store: SQLiteStore):
        self._store = store

    def upsert_tick(self, tick: PriceTickEntity, *, tx: Optional[Transaction] = None) -> None:
        self.upsert_ticks([tick], tx=tx)

    def upsert_ticks(self, ticks: Sequence[PriceTickEntity], *, tx: Optional[Transaction] = None) -> int:
        if tx is not None:
            return self._write(tx, ticks)
        with self._store.transaction() as conn:
            return self._write(conn, ticks)

    def _write(self, conn: sqlite3.Connection, ticks: Sequence[PriceTickEntity]) -> int:
        now_ms = int(time.time() * 1000)
        with translate_errors("upsert_ticks"):
            for t in ticks:
                conn.execute(UPSERT_TICK_SQL, (t.symbol, int(t.ts_ms), float(t.price), t.source, now_ms))
        return len(ticks)

    def list_ticks(
        self,
        symbol: str,
        start_ms: int,
        end_ms: int,
        source: Optional[str] = None,
    ) -> List[PriceTickEntity]:
        query = f"SELECT * FROM {self.TABLE} WHERE symbol = ? AND ts_ms >= ? AND ts_ms <= ?"
        params: list = [symbol, int(start_ms), int(end_ms)]
        if source:
            query += " AND source = ?"
            params.append(source)
        query += " ORDER BY ts_ms ASC, id ASC"

        with self._store.connection() as conn, translate_errors("list_ticks"):
            rows = conn.execute(query, params).fetchall()
        return [PriceTickEntity.from_row(r) for r in rows]

    def get_bounds(self, symbol: str, start_ms: int, end_ms: int) -> Tuple[Optional[int], Optional[int]]:
        with self._store.connection() as conn, translate_errors("get_bounds"):
            row = conn.execute(
                f"SELECT MIN(ts_ms) AS min_ts, MAX(ts_ms) AS max_ts FROM {self.TABLE} "
                "WHERE symbol = ? AND ts_ms >= ? AND ts_ms <= ?",
                (symbol, int(start_ms), int(end_ms)),
            ).fetchone()
        return row["min_ts"], row["max_ts"]

    def list_symbols(self) -> List[str]:
        with self._store.connection() as conn, translate_errors("list_symbols"):
            rows = conn.execute(f"SELECT DISTINCT symbol FROM {self.TABLE} ORDER BY symbol").fetchall()
        return [r["symbol"] for r in rows]

    def count_all(self) -> int:
        return self._store.count(self.TABLE)
