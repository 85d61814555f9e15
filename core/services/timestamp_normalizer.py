from __future__ import annotations

import math
from typing import Union

from core.domain.errors import InvalidTimestamp

TimestampInput = Union[int, float, str]

# 13 digits and up: already epoch-ms
MS_THRESHOLD = 1e12

# storage column is a signed 64-bit INTEGER
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class TimestampNormalizer:
    """
    Converts producer timestamps into canonical integer epoch-milliseconds.

    Rules (checked in order):
    - strings are parsed as numbers (empty/whitespace is rejected)
    - a non-zero fractional part means seconds with sub-second precision -> floor(value * 1000)
    - integers >= 1e12 are already milliseconds
    - any other integer is whole seconds -> value * 1000

    Integer millisecond timestamps before 2001-09-09 (< 1e12) are read as
    seconds. Live market data never hits that range, so the rule stays a heuristic.

    Results outside the signed 64-bit range are rejected.
    """

    @staticmethod
    def normalize(value: TimestampInput) -> int:
        n = TimestampNormalizer._to_number(value)

        if isinstance(n, float) and not math.isfinite(n):
            raise InvalidTimestamp(value)

        if isinstance(n, float) and not n.is_integer():
            ms = int(math.floor(n * 1000))
        else:
            n = int(n)
            ms = n if n >= MS_THRESHOLD else n * 1000

        if not INT64_MIN <= ms <= INT64_MAX:
            raise InvalidTimestamp(value)
        return ms

    @staticmethod
    def _to_number(value: TimestampInput) -> Union[int, float]:
        if isinstance(value, bool) or value is None:
            raise InvalidTimestamp(value)

        if isinstance(value, (int, float)):
            return value

        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                raise InvalidTimestamp(value)
            try:
                return int(raw)
            except ValueError:
                pass
            try:
                return float(raw)
            except ValueError as exc:
                raise InvalidTimestamp(value) from exc

        raise InvalidTimestamp(value)
