"""Tests for bucketing, OHLCV aggregation, intervals and the payout filter."""

import pytest

from core.domain.entities.legacy_candle_entity import LegacyCandleEntity
from core.domain.entities.price_tick_entity import PriceTickEntity
from core.domain.errors import ValidationError
from core.services.interval_service import IntervalService
from core.services.payout_filter_service import PayoutFilterService
from core.services.resampling_service import ResamplingService

B = 1_700_000_040_000
MINUTE = 60_000


def _ticks(prices, start=B, step=1_000, symbol="EURUSD"):
    return [PriceTickEntity(symbol=symbol, ts_ms=start + i * step, price=p) for i, p in enumerate(prices)]


class TestBucketStart:

    def test_aligned(self):
        assert ResamplingService.bucket_start(B, MINUTE) == B
        assert ResamplingService.bucket_start(B + 59_999, MINUTE) == B
        assert ResamplingService.bucket_start(B + 60_000, MINUTE) == B + MINUTE

    def test_multiple_of_width(self):
        for ts in (B + 1, B + 12_345, B + 3 * MINUTE + 7):
            assert ResamplingService.bucket_start(ts, MINUTE) % MINUTE == 0


class TestResampleTicks:
    """OHLCV per bucket."""

    def test_single_bucket_ohlcv(self):
        candles = ResamplingService.resample_ticks(_ticks([100, 102, 99, 109]), MINUTE)

        assert len(candles) == 1
        c = candles[0]
        assert (c.ts_ms, c.open, c.high, c.low, c.close, c.volume) == (B, 100, 109, 99, 109, 4)

    def test_unordered_input_is_sorted_by_time(self):
        ticks = list(reversed(_ticks([100, 102, 99, 109])))
        c = ResamplingService.resample_ticks(ticks, MINUTE)[0]
        assert c.open == 100
        assert c.close == 109

    def test_multiple_buckets_sorted(self):
        ticks = _ticks([1.0, 1.2], start=B + 2 * MINUTE) + _ticks([2.0, 1.5, 1.8], start=B)
        candles = ResamplingService.resample_ticks(ticks, MINUTE, symbol="EURUSD")

        assert [c.ts_ms for c in candles] == [B, B + 2 * MINUTE]
        assert candles[0].volume == 3
        assert candles[1].volume == 2
        assert all(c.symbol == "EURUSD" and c.source == "resampled" for c in candles)

    def test_low_open_close_high_invariant(self):
        prices = [1.1, 1.4, 0.9, 1.25, 1.05, 1.3]
        candles = ResamplingService.resample_ticks(_ticks(prices, step=15_000), MINUTE)
        for c in candles:
            assert c.low <= c.open <= c.high
            assert c.low <= c.close <= c.high

    def test_wider_interval(self):
        ticks = _ticks([1, 2, 3, 4, 5, 6], step=MINUTE)
        candles = ResamplingService.resample_ticks(ticks, 5 * MINUTE)
        assert sum(c.volume for c in candles) == 6
        assert all(c.ts_ms % (5 * MINUTE) == 0 for c in candles)

    def test_empty(self):
        assert ResamplingService.resample_ticks([], MINUTE) == []

    def test_invalid_width(self):
        with pytest.raises(ValueError):
            ResamplingService.resample_ticks(_ticks([1]), 0)


class TestResampleLegacyCandles:

    def test_aggregates_ohlc(self):
        rows = [
            LegacyCandleEntity(symbol="X", interval="1m", timestamp=B, open=1.0, high=1.5, low=0.9, close=1.2),
            LegacyCandleEntity(symbol="X", interval="1m", timestamp=B + MINUTE, open=1.2, high=1.8, low=1.1, close=1.7),
        ]
        candles = ResamplingService.resample_legacy_candles(rows, 5 * MINUTE)

        assert len(candles) == 1
        c = candles[0]
        assert (c.open, c.high, c.low, c.close, c.volume) == (1.0, 1.8, 0.9, 1.7, 2)

    def test_second_timestamps_normalized(self):
        rows = [LegacyCandleEntity(symbol="X", interval="1m", timestamp=B // 1000, open=1, high=2, low=0.5, close=1.5)]
        candles = ResamplingService.resample_legacy_candles(rows, MINUTE)
        assert candles[0].ts_ms == B


class TestIntervalService:

    @pytest.mark.parametrize(
        "interval,expected",
        [("1m", 60_000), ("5m", 300_000), ("15m", 900_000), ("1h", 3_600_000), ("4h", 14_400_000), ("1d", 86_400_000)],
    )
    def test_parse(self, interval, expected):
        assert IntervalService.to_ms(interval) == expected

    @pytest.mark.parametrize("interval", ["", "m", "1", "1s", "1w", "-5m", "0m", "abc"])
    def test_invalid(self, interval):
        with pytest.raises(ValidationError):
            IntervalService.to_ms(interval)


class TestPayoutFilter:
    """Payout-shaped records: flat OHLC within [0, 100]."""

    @pytest.mark.parametrize("value", [0, 85, 92.5, 100])
    def test_payout_shaped(self, value):
        assert PayoutFilterService.is_payout(open=value, high=value, low=value, close=value)

    def test_flat_price_outside_range_is_not_payout(self):
        assert not PayoutFilterService.is_payout(open=150.0, high=150.0, low=150.0, close=150.0)

    def test_regular_candle(self):
        assert not PayoutFilterService.is_payout(open=1.10, high=1.12, low=1.09, close=1.11)

    def test_not_all_equal(self):
        assert not PayoutFilterService.is_payout(open=85, high=86, low=85, close=85)
