from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import BaseModel

from core.domain.entities.candle_entity import CandleEntity
from core.repositories.legacy_candle_repository import LegacyCandleRepository
from core.repositories.price_tick_repository import PriceTickRepository
from core.services.interval_service import IntervalService
from core.services.payout_filter_service import PayoutFilterService
from core.services.resampling_service import ResamplingService


class ResampledCandlesResult(BaseModel):
    candles: List[CandleEntity]
    meta: Dict[str, Any]


class ResampleCandlesUseCase:
    """
    Aggregates candles at an arbitrary interval (e.g. 5m, 1h) without caching.

    Data sources, in order:
      1. ticks of the requested source in range
      2. legacy candles of the same source, payout-shaped rows removed
    """

    def __init__(
        self,
        *,
        tick_repository: PriceTickRepository,
        legacy_repository: LegacyCandleRepository,
        logger: logging.Logger | None = None,
    ):
        self._ticks = tick_repository
        self._legacy = legacy_repository
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def execute(
        self,
        *,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
        source: str = "history",
    ) -> ResampledCandlesResult:
        width_ms = IntervalService.to_ms(interval)

        ticks = self._ticks.list_ticks(symbol, start_ms, end_ms, source=source)
        if ticks:
            candles = ResamplingService.resample_ticks(ticks, width_ms, symbol=symbol)
            return ResampledCandlesResult(
                candles=candles,
                meta={
                    "symbol": symbol,
                    "interval": interval,
                    "rawTickCount": len(ticks),
                    "resampledCount": len(candles),
                    "dataSource": "ticks",
                },
            )

        rows = self._legacy.list_by_source(symbol, source, start_ms, end_ms)
        if not rows:
            return ResampledCandlesResult(
                candles=[],
                meta={
                    "symbol": symbol,
                    "interval": interval,
                    "rawTickCount": 0,
                    "resampledCount": 0,
                    "dataSource": "empty",
                },
            )

        filtered = [
            r for r in rows
            if not PayoutFilterService.is_payout(open=r.open, high=r.high, low=r.low, close=r.close)
        ]
        candles = ResamplingService.resample_legacy_candles(filtered, width_ms, symbol=symbol)
        self._logger.info(
            "[Resampled] %s %s from legacy candles: rows=%s payout_filtered=%s buckets=%s",
            symbol,
            interval,
            len(rows),
            len(rows) - len(filtered),
            len(candles),
        )
        return ResampledCandlesResult(
            candles=candles,
            meta={
                "symbol": symbol,
                "interval": interval,
                "rawTickCount": len(rows),
                "filteredTickCount": len(filtered),
                "payoutFiltered": len(rows) - len(filtered),
                "resampledCount": len(candles),
                "dataSource": "candles_legacy",
            },
        )
