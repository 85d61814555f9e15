from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BulkCandlesOutDTO(BaseModel):
    """
    Response DTO for bulk candle ingestion.

    tickCount is the number of ticks dual-written (payout-shaped rows excluded).
    """

    success: bool = True
    count: int
    tickCount: int


class LegacyCandleOutDTO(BaseModel):
    """
    Legacy `candles` row.
    """

    id: Optional[int] = None
    symbol: str
    interval: str
    timestamp: int

    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    source: Optional[str] = None
    created_at: Optional[int] = None


class CachedCandleOutDTO(BaseModel):
    """
    Cached bucket-width candle. ts_ms is the bucket start.
    """

    ts_ms: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    source: str


class CachedCandlesMetaDTO(BaseModel):
    symbol: str
    count: int
    source: str = Field(..., description="cache | resampled | empty")
    tickCount: Optional[int] = None


class CachedCandlesOutDTO(BaseModel):
    candles: List[CachedCandleOutDTO]
    meta: CachedCandlesMetaDTO


class ResampledCandleOutDTO(BaseModel):
    """
    Candle aggregated at an arbitrary interval. timestamp is the bucket start in ms.
    """

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


class ResampledCandlesOutDTO(BaseModel):
    candles: List[ResampledCandleOutDTO]
    meta: Dict[str, Any]
