from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.domain.entities.legacy_candle_entity import LegacyCandleEntity
from core.repositories.transaction_manager import Transaction


class LegacyCandleRepository(ABC):
    """Repository interface for the backward-compatible `candles` table."""

    @abstractmethod
    def upsert_legacy_candle(self, candle: LegacyCandleEntity, *, tx: Optional[Transaction] = None) -> None:
        """
        Insert a candle; on (symbol, interval, timestamp) conflict replace every
        OHLCV field and the source.
        """
        raise NotImplementedError

    @abstractmethod
    def list_range(self, symbol: str, interval: str, start_ms: int, end_ms: int) -> List[LegacyCandleEntity]: ...

    @abstractmethod
    def list_by_source(self, symbol: str, source: str, start_ms: int, end_ms: int) -> List[LegacyCandleEntity]:
        """
        All intervals for one symbol/source in range, ascending timestamp.
        """
        raise NotImplementedError

    @abstractmethod
    def list_non_payout(self) -> List[LegacyCandleEntity]:
        """
        Every row that is not payout-shaped, for migration into ticks.
        """
        raise NotImplementedError

    @abstractmethod
    def count_all(self) -> int: ...
