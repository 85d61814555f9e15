# core/domain/entities/candle_entity.py
from __future__ import annotations

from typing import Optional

from core.domain.entities.base_entity import RowEntity


class CandleEntity(RowEntity):
    """
    Represents a resampled OHLCV candle stored in the `candles_1m` cache.

    ts_ms is the bucket start and is always a multiple of the bucket width.
    volume is the number of ticks in the bucket, not traded size.

    The cache is derived from `ticks` and can be rebuilt at any time.
    """

    symbol: Optional[str] = None
    ts_ms: int

    open: float
    high: float
    low: float
    close: float

    volume: float = 0.0
    source: str = "resampled"
