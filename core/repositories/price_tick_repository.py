from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from core.domain.entities.price_tick_entity import PriceTickEntity
from core.repositories.transaction_manager import Transaction


class PriceTickRepository(ABC):
    """Repository interface for tick persistence and retrieval."""

    @abstractmethod
    def upsert_tick(self, tick: PriceTickEntity, *, tx: Optional[Transaction] = None) -> None:
        """
        Insert a tick; on (symbol, ts_ms, source) conflict overwrite price only.
        """
        raise NotImplementedError

    @abstractmethod
    def upsert_ticks(self, ticks: Sequence[PriceTickEntity], *, tx: Optional[Transaction] = None) -> int: ...

    @abstractmethod
    def list_ticks(
        self,
        symbol: str,
        start_ms: int,
        end_ms: int,
        source: Optional[str] = None,
    ) -> List[PriceTickEntity]:
        """
        Inclusive range, ascending ts_ms.
        """
        raise NotImplementedError

    @abstractmethod
    def get_bounds(self, symbol: str, start_ms: int, end_ms: int) -> Tuple[Optional[int], Optional[int]]:
        """
        (min(ts_ms), max(ts_ms)) of the symbol's ticks in range, (None, None) if empty.
        """
        raise NotImplementedError

    @abstractmethod
    def list_symbols(self) -> List[str]: ...

    @abstractmethod
    def count_all(self) -> int: ...
