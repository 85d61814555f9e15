from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from core.domain.entities.candle_entity import CandleEntity
from core.domain.entities.legacy_candle_entity import LegacyCandleEntity
from core.domain.entities.price_tick_entity import PriceTickEntity
from core.services.timestamp_normalizer import TimestampNormalizer


class ResamplingService:
    """
    Buckets ticks into fixed-width windows and computes OHLCV per bucket.

    Bucket key: floor(ts_ms / width_ms) * width_ms.
    Within a bucket ticks are taken in ascending time order (stable, so ties keep
    their input order):
      open   = first price
      close  = last price
      high   = max price
      low    = min price
      volume = number of ticks (tick-count proxy, not traded size)

    A bucket is always computed from its complete tick set; there is no
    incremental merge with a previously computed candle.
    """

    @staticmethod
    def bucket_start(ts_ms: int, width_ms: int) -> int:
        return (int(ts_ms) // int(width_ms)) * int(width_ms)

    @staticmethod
    def resample_ticks(
        ticks: Iterable[PriceTickEntity],
        width_ms: int,
        *,
        symbol: str | None = None,
        source: str = "resampled",
    ) -> List[CandleEntity]:
        """
        Aggregate ticks into candles sorted by bucket start.
        """
        if int(width_ms) <= 0:
            raise ValueError("width_ms must be positive")

        buckets: Dict[int, List[PriceTickEntity]] = defaultdict(list)
        for tick in ticks:
            buckets[ResamplingService.bucket_start(tick.ts_ms, width_ms)].append(tick)

        out: List[CandleEntity] = []
        for start in sorted(buckets):
            bucket = sorted(buckets[start], key=lambda t: t.ts_ms)
            prices = [float(t.price) for t in bucket]
            out.append(
                CandleEntity(
                    symbol=symbol,
                    ts_ms=start,
                    open=prices[0],
                    high=max(prices),
                    low=min(prices),
                    close=prices[-1],
                    volume=float(len(bucket)),
                    source=source,
                )
            )
        return out

    @staticmethod
    def resample_legacy_candles(
        rows: Iterable[LegacyCandleEntity],
        width_ms: int,
        *,
        symbol: str | None = None,
        source: str = "resampled",
    ) -> List[CandleEntity]:
        """
        Re-aggregate whole legacy candles into wider buckets.

        Stored timestamps may predate ms normalization, so each one goes
        through TimestampNormalizer before bucketing.
        """
        if int(width_ms) <= 0:
            raise ValueError("width_ms must be positive")

        buckets: Dict[int, List[LegacyCandleEntity]] = defaultdict(list)
        for row in rows:
            ts_ms = TimestampNormalizer.normalize(row.timestamp)
            buckets[ResamplingService.bucket_start(ts_ms, width_ms)].append(row)

        out: List[CandleEntity] = []
        for start in sorted(buckets):
            bucket = sorted(buckets[start], key=lambda r: TimestampNormalizer.normalize(r.timestamp))
            out.append(
                CandleEntity(
                    symbol=symbol,
                    ts_ms=start,
                    open=float(bucket[0].open),
                    high=max(float(r.high) for r in bucket),
                    low=min(float(r.low) for r in bucket),
                    close=float(bucket[-1].close),
                    volume=float(len(bucket)),
                    source=source,
                )
            )
        return out
