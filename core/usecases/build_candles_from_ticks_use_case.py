from __future__ import annotations

import logging
from typing import List, Tuple

from pydantic import BaseModel

from core.domain.entities.candle_entity import CandleEntity
from core.repositories.candle_cache_repository import CandleCacheRepository
from core.repositories.price_tick_repository import PriceTickRepository
from core.repositories.transaction_manager import TransactionManager
from core.services.resampling_service import ResamplingService
from core.services.timestamp_normalizer import INT64_MAX, INT64_MIN


class ResampleResult(BaseModel):
    candles: List[CandleEntity]
    tick_count: int


class RebuildSummary(BaseModel):
    candles_created: int
    tick_count: int


class BuildCandlesFromTicksUseCase:
    """
    Builds and persists fixed-width OHLCV candles from tick data.

    Behavior:
      - Reads every tick of the symbol in [start_ms, end_ms], widened to whole
        buckets, all sources.
      - If no ticks exist, returns whatever is already cached (possibly empty).
      - Otherwise buckets the ticks, upserts every bucket into the cache in one
        transaction and returns the cache contents for the range.

    Buckets are always recomputed from their complete tick set, so running the
    same range twice leaves the cache unchanged.
    """

    def __init__(
        self,
        *,
        tick_repository: PriceTickRepository,
        candle_repository: CandleCacheRepository,
        transactions: TransactionManager,
        interval_ms: int = 60_000,
        logger: logging.Logger | None = None,
    ):
        self._ticks = tick_repository
        self._candles = candle_repository
        self._tx = transactions
        self._interval_ms = int(interval_ms)
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def execute(self, *, symbol: str, start_ms: int, end_ms: int) -> ResampleResult:
        _, tick_count = self._rebuild(symbol=symbol, start_ms=start_ms, end_ms=end_ms)
        cached = self._candles.list_range(symbol, start_ms, end_ms)
        return ResampleResult(candles=cached, tick_count=tick_count)

    def execute_all(self, *, symbols: List[str], start_ms: int, end_ms: int) -> RebuildSummary:
        """
        Rebuild several symbols one at a time; only counts are kept, not candles.
        """
        candles_created = 0
        tick_count = 0
        for symbol in symbols:
            built, ticks = self._rebuild(symbol=symbol, start_ms=start_ms, end_ms=end_ms)
            candles_created += built
            tick_count += ticks
        return RebuildSummary(candles_created=candles_created, tick_count=tick_count)

    def _rebuild(self, *, symbol: str, start_ms: int, end_ms: int) -> Tuple[int, int]:
        # Widen to whole buckets so edge buckets see their complete tick set.
        width = self._interval_ms
        lo = max(ResamplingService.bucket_start(start_ms, width), INT64_MIN)
        hi = min(ResamplingService.bucket_start(end_ms, width) + width - 1, INT64_MAX)
        ticks = self._ticks.list_ticks(symbol, lo, hi)
        if not ticks:
            return 0, 0

        built = ResamplingService.resample_ticks(ticks, self._interval_ms, symbol=symbol, source="resampled")

        with self._tx.transaction() as tx:
            self._candles.upsert_candles(symbol, built, tx=tx)

        self._logger.info("[Cache] %s: %s candles cached from %s ticks", symbol, len(built), len(ticks))
        return len(built), len(ticks)
