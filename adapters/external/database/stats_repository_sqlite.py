from __future__ import annotations

from typing import Any, Dict, List

from adapters.external.database.sqlite_store import TABLES, SQLiteStore, translate_errors
from core.repositories.stats_repository import StatsRepository

# time column per table
_TS_COLUMN = {
    "candles": "timestamp",
    "ticks": "ts_ms",
    "candles_1m": "ts_ms",
}


class StatsRepositorySQLite(StatsRepository):
    """
    Read-only aggregates for health and collection dashboards.
    """

    def __init__(self, store: SQLiteStore):
        self._store = store

    def table_counts(self) -> Dict[str, int]:
        return {table: self._store.count(table) for table in TABLES}

    def legacy_stats_by_symbol(self) -> List[Dict[str, Any]]:
        return self._fetch(
            """
            SELECT symbol,
                   COUNT(*) AS count,
                   MIN(timestamp) AS oldest,
                   MAX(timestamp) AS newest,
                   ROUND((MAX(timestamp) - MIN(timestamp)) / 86400000.0, 1) AS days
            FROM candles
            GROUP BY symbol
            ORDER BY count DESC
            """
        )

    def stats_by_symbol_source(self, table: str) -> List[Dict[str, Any]]:
        ts = self._ts_column(table)
        return self._fetch(
            f"""
            SELECT symbol, source,
                   COUNT(*) AS count,
                   MIN({ts}) AS oldest_ms,
                   MAX({ts}) AS newest_ms,
                   ROUND((MAX({ts}) - MIN({ts})) / 86400000.0, 1) AS days
            FROM {table}
            GROUP BY symbol, source
            ORDER BY count DESC
            """
        )

    def breakdown(self, table: str) -> List[Dict[str, Any]]:
        ts = self._ts_column(table)
        return self._fetch(
            f"""
            SELECT symbol, source,
                   COUNT(*) AS count,
                   MIN({ts}) AS oldest,
                   MAX({ts}) AS newest
            FROM {table}
            GROUP BY symbol, source
            ORDER BY symbol, source
            """
        )

    @staticmethod
    def _ts_column(table: str) -> str:
        if table not in _TS_COLUMN:
            raise ValueError(f"unknown table: {table}")
        return _TS_COLUMN[table]

    def _fetch(self, sql: str) -> List[Dict[str, Any]]:
        with self._store.connection() as conn, translate_errors("stats"):
            rows = conn.execute(sql).fetchall()
        return [dict(r) for r in rows]
