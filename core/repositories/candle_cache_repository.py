from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.domain.entities.candle_entity import CandleEntity
from core.repositories.transaction_manager import Transaction


class CandleCacheRepository(ABC):
    """Repository interface for the resampled candle cache (candles_1m)."""

    @abstractmethod
    def upsert_candles(
        self,
        symbol: str,
        candles: Sequence[CandleEntity],
        *,
        tx: Optional[Transaction] = None,
    ) -> int:
        """
        Upsert candles by (symbol, ts_ms, source); conflicts overwrite OHLCV.
        """
        raise NotImplementedError

    @abstractmethod
    def list_range(self, symbol: str, start_ms: int, end_ms: int) -> List[CandleEntity]:
        """
        Cached candles in the inclusive range, ascending ts_ms.
        """
        raise NotImplementedError

    @abstractmethod
    def count_all(self) -> int: ...
