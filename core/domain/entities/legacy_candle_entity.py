from __future__ import annotations

from typing import Optional

from core.domain.entities.base_entity import RowEntity


class LegacyCandleEntity(RowEntity):
    """
    Represents a whole candle sent by a producer, stored in the legacy `candles` table.

    Identity: (symbol, interval, timestamp). A repeated write replaces every
    OHLCV field and the source.
    """

    symbol: str
    interval: str
    timestamp: int

    open: float
    high: float
    low: float
    close: float

    volume: Optional[float] = 0.0
    source: str = "realtime"
