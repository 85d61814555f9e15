from __future__ import annotations

import re

from core.domain.errors import ValidationError

_INTERVAL_RE = re.compile(r"^(\d+)(m|h|d)$")

_UNIT_MS = {
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


class IntervalService:
    """
    Parses candle interval strings into bucket widths.

    Rules:
    - Format: "{value}{unit}" with unit in m (minutes), h (hours), d (days)
    - value must be a positive integer, e.g. "1m", "5m", "15m", "1h", "1d"
    """

    @staticmethod
    def to_ms(interval: str) -> int:
        itv = (interval or "").strip().lower()
        match = _INTERVAL_RE.match(itv)
        if not match:
            raise ValidationError(
                f"unsupported interval: {interval!r}. use e.g. 1m, 5m, 15m, 30m, 1h, 1d",
                fields=["interval"],
            )

        value = int(match.group(1))
        if value <= 0:
            raise ValidationError(f"interval must be positive: {interval!r}", fields=["interval"])

        return value * _UNIT_MS[match.group(2)]
