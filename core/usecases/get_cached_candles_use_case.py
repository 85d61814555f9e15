from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel

from core.domain.entities.candle_entity import CandleEntity
from core.repositories.candle_cache_repository import CandleCacheRepository
from core.repositories.price_tick_repository import PriceTickRepository
from core.usecases.build_candles_from_ticks_use_case import BuildCandlesFromTicksUseCase


class CachedCandlesResult(BaseModel):
    candles: List[CandleEntity]
    source: str  # "cache" | "resampled" | "empty"
    tick_count: Optional[int] = None


class GetCachedCandlesUseCase:
    """
    Read-through cache for bucket-width candles.

    Flow per query:
      CHECK_CACHE -> HIT: return cached rows
                  -> MISS / STALE: resample the whole requested range, persist, return

    Coverage rule: the cache is trusted when its first bucket is at most one
    bucket width after the earliest tick in range and its last bucket is at
    most one bucket width before the latest tick in range.
    """

    def __init__(
        self,
        *,
        tick_repository: PriceTickRepository,
        candle_repository: CandleCacheRepository,
        build_candles_uc: BuildCandlesFromTicksUseCase,
        logger: logging.Logger | None = None,
    ):
        self._ticks = tick_repository
        self._candles = candle_repository
        self._build = build_candles_uc
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def execute(
        self,
        *,
        symbol: str,
        start_ms: int,
        end_ms: int,
        force_resample: bool = False,
    ) -> CachedCandlesResult:
        if not force_resample:
            cached = self._candles.list_range(symbol, start_ms, end_ms)
            if cached and self.is_cache_complete(symbol=symbol, cached=cached, start_ms=start_ms, end_ms=end_ms):
                self._logger.debug("Cache hit: %s [%s, %s] count=%s", symbol, start_ms, end_ms, len(cached))
                return CachedCandlesResult(candles=cached, source="cache")
            if cached:
                self._logger.info("Cache stale: %s [%s, %s], resampling full range", symbol, start_ms, end_ms)

        res = self._build.execute(symbol=symbol, start_ms=start_ms, end_ms=end_ms)
        return CachedCandlesResult(
            candles=res.candles,
            source="resampled" if res.candles else "empty",
            tick_count=res.tick_count,
        )

    def is_cache_complete(
        self,
        *,
        symbol: str,
        cached: List[CandleEntity],
        start_ms: int,
        end_ms: int,
    ) -> bool:
        """
        Compare the cached bucket range against the actual tick boundaries.
        """
        if not cached:
            return False

        width = self._build.interval_ms
        tick_min, tick_max = self._ticks.get_bounds(symbol, start_ms, end_ms)
        cache_min = cached[0].ts_ms
        cache_max = cached[-1].ts_ms

        covers_start = tick_min is None or cache_min <= tick_min + width
        covers_end = tick_max is None or cache_max >= tick_max - width
        return covers_start and covers_end
