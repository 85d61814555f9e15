from __future__ import annotations

PAYOUT_MIN = 0.0
PAYOUT_MAX = 100.0


class PayoutFilterService:
    """
    Detects payout-percentage records that share the candle wire format.

    A record whose open == high == low == close and whose value lies in
    [0, 100] encodes an option payout, not a price. Such rows are kept in the
    legacy candle table but never turned into ticks.
    """

    @staticmethod
    def is_payout(*, open: float, high: float, low: float, close: float) -> bool:
        all_equal = open == high and high == low and low == close
        return bool(all_equal and PAYOUT_MIN <= open <= PAYOUT_MAX)

    @staticmethod
    def sql_predicate() -> str:
        """
        Same rule expressed as a SQLite predicate over (open, high, low, close).
        """
        return (
            f"(open = high AND high = low AND low = close "
            f"AND open >= {PAYOUT_MIN} AND open <= {PAYOUT_MAX})"
        )
