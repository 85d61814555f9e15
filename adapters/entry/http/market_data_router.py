from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from adapters.external.database.legacy_candle_repository_sqlite import LegacyCandleRepositorySQLite
from adapters.external.database.price_tick_repository_sqlite import PriceTickRepositorySQLite
from core.services.timestamp_normalizer import INT64_MAX, INT64_MIN
from core.usecases.get_cached_candles_use_case import GetCachedCandlesUseCase
from core.usecases.resample_candles_use_case import ResampleCandlesUseCase

from .deps import (
    get_cached_candles_uc,
    get_legacy_repo,
    get_range_end_default,
    get_resample_candles_uc,
    get_tick_repo,
)
from .dtos.candle_dtos import (
    CachedCandleOutDTO,
    CachedCandlesMetaDTO,
    CachedCandlesOutDTO,
    LegacyCandleOutDTO,
    ResampledCandleOutDTO,
    ResampledCandlesOutDTO,
)
from .dtos.tick_dtos import TickOutDTO

router = APIRouter(prefix="/api", tags=["market-data"])


@router.get("/ticks", response_model=List[TickOutDTO])
def list_ticks(
    symbol: str = Query(..., min_length=1, description="e.g. EURUSD_otc"),
    start: int = Query(0, ge=INT64_MIN, le=INT64_MAX, description="Inclusive range start (epoch-ms)"),
    end: Optional[int] = Query(None, ge=INT64_MIN, le=INT64_MAX, description="Inclusive range end (epoch-ms)"),
    source: Optional[str] = Query(None, description="Filter by source, e.g. realtime | history"),
    repo: PriceTickRepositorySQLite = Depends(get_tick_repo),
    default_end: int = Depends(get_range_end_default),
) -> List[TickOutDTO]:
    """
    List ticks in ascending time order.
    """
    ticks = repo.list_ticks(symbol, start, default_end if end is None else end, source=source)
    return [TickOutDTO.model_validate(t.model_dump()) for t in ticks]


@router.get("/candles", response_model=List[LegacyCandleOutDTO])
def list_legacy_candles(
    symbol: str = Query(..., min_length=1),
    interval: str = Query(..., min_length=1, description='e.g. "1m"'),
    start: int = Query(0, ge=INT64_MIN, le=INT64_MAX),
    end: Optional[int] = Query(None, ge=INT64_MIN, le=INT64_MAX),
    repo: LegacyCandleRepositorySQLite = Depends(get_legacy_repo),
    default_end: int = Depends(get_range_end_default),
) -> List[LegacyCandleOutDTO]:
    """
    List legacy candles (backward compatible read path).
    """
    rows = repo.list_range(symbol, interval, start, default_end if end is None else end)
    return [LegacyCandleOutDTO.model_validate(r.model_dump()) for r in rows]


@router.get("/candles_1m", response_model=CachedCandlesOutDTO, response_model_exclude_none=True)
def get_cached_candles(
    symbol: str = Query(..., min_length=1),
    start: int = Query(0, ge=INT64_MIN, le=INT64_MAX),
    end: Optional[int] = Query(None, ge=INT64_MIN, le=INT64_MAX),
    force_resample: bool = Query(False, description="Skip the coverage check and rebuild the range"),
    forceResample: bool = Query(False, include_in_schema=False),
    uc: GetCachedCandlesUseCase = Depends(get_cached_candles_uc),
    default_end: int = Depends(get_range_end_default),
) -> CachedCandlesOutDTO:
    """
    Bucket-width candles from the cache, resampled from ticks when missing or stale.
    """
    result = uc.execute(
        symbol=symbol,
        start_ms=start,
        end_ms=default_end if end is None else end,
        force_resample=force_resample or forceResample,
    )
    return CachedCandlesOutDTO(
        candles=[CachedCandleOutDTO.model_validate(c.model_dump()) for c in result.candles],
        meta=CachedCandlesMetaDTO(
            symbol=symbol,
            count=len(result.candles),
            source=result.source,
            tickCount=result.tick_count,
        ),
    )


@router.get("/candles/resampled", response_model=ResampledCandlesOutDTO)
def get_resampled_candles(
    symbol: str = Query(..., min_length=1),
    interval: str = Query("1m", description="1m, 5m, 15m, 30m, 1h, 1d ..."),
    start: int = Query(0, ge=INT64_MIN, le=INT64_MAX),
    end: Optional[int] = Query(None, ge=INT64_MIN, le=INT64_MAX),
    source: str = Query("history", description="Tick/legacy source to aggregate"),
    uc: ResampleCandlesUseCase = Depends(get_resample_candles_uc),
    default_end: int = Depends(get_range_end_default),
) -> ResampledCandlesOutDTO:
    """
    Candles at an arbitrary interval computed directly from ticks (legacy candles as fallback).
    Nothing is cached.
    """
    result = uc.execute(
        symbol=symbol,
        interval=interval,
        start_ms=start,
        end_ms=default_end if end is None else end,
        source=source,
    )
    return ResampledCandlesOutDTO(
        candles=[
            ResampledCandleOutDTO(
                timestamp=c.ts_ms,
                open=c.open,
                high=c.high,
                low=c.low,
                close=c.close,
                volume=c.volume,
            )
            for c in result.candles
        ],
        meta=result.meta,
    )
