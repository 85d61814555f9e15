from __future__ import annotations

from typing import Any, Dict, List

from core.repositories.stats_repository import StatsRepository


class StatsUseCase:
    """
    Use case for read-only collection statistics.

    This isolates the HTTP layer from the SQL aggregates and keeps the
    response shapes in one place.
    """

    def __init__(self, *, stats_repo: StatsRepository) -> None:
        self._stats = stats_repo

    def health(self) -> Dict[str, Any]:
        """
        Row counts per table.
        """
        counts = self._stats.table_counts()
        return {
            "status": "ok",
            "totalCandles": counts["candles"],
            "totalTicks": counts["ticks"],
            "totalCandles1m": counts["candles_1m"],
        }

    def legacy_candle_stats(self) -> List[Dict[str, Any]]:
        return self._stats.legacy_stats_by_symbol()

    def tick_stats(self) -> List[Dict[str, Any]]:
        return self._stats.stats_by_symbol_source("ticks")

    def cache_stats(self) -> List[Dict[str, Any]]:
        return self._stats.stats_by_symbol_source("candles_1m")

    def detailed(self) -> Dict[str, Any]:
        """
        Per (symbol, source) breakdown of every table plus totals.
        """
        ticks = self._stats.breakdown("ticks")
        cache = self._stats.breakdown("candles_1m")
        legacy = self._stats.breakdown("candles")
        return {
            "ticks": ticks,
            "candles_1m": cache,
            "candles_legacy": legacy,
            "totals": {
                "ticks": sum(int(s["count"]) for s in ticks),
                "candles_1m": sum(int(s["count"]) for s in cache),
                "candles_legacy": sum(int(s["count"]) for s in legacy),
            },
        }
