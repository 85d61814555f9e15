from __future__ import annotations

from core.domain.entities.base_entity import RowEntity


class PriceTickEntity(RowEntity):
    """
    Represents a single (symbol, time, price) observation stored in `ticks`.

    Identity: (symbol, ts_ms, source). A repeated write with the same identity
    overwrites price only.
    """

    symbol: str
    ts_ms: int  # tick timestamp in epoch-ms
    price: float
    source: str = "realtime"
