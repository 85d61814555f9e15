from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class StatsRepository(ABC):
    """
    Read-only aggregates over the three tables.
    """

    @abstractmethod
    def table_counts(self) -> Dict[str, int]:
        """
        Row counts keyed by table name (candles, ticks, candles_1m).
        """
        raise NotImplementedError

    @abstractmethod
    def legacy_stats_by_symbol(self) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def stats_by_symbol_source(self, table: str) -> List[Dict[str, Any]]:
        """
        Per (symbol, source) count / oldest_ms / newest_ms / days for ticks or candles_1m.
        """
        raise NotImplementedError

    @abstractmethod
    def breakdown(self, table: str) -> List[Dict[str, Any]]:
        """
        Per (symbol, source) count / oldest / newest ordered by symbol, source.
        """
        raise NotImplementedError
