"""
Validated ingestion payloads.

Producers send loosely-typed JSON. Every record goes through one of these
input models before it reaches a repository: required fields are enumerated
explicitly, blank values are rejected, and the timestamp is normalized to
epoch-ms up front so bulk payloads can be checked completely before any
transaction starts.
"""

from __future__ import annotations

import math
from typing import Any, ClassVar, Dict, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.domain.entities.legacy_candle_entity import LegacyCandleEntity
from core.domain.entities.price_tick_entity import PriceTickEntity
from core.domain.errors import ValidationError
from core.services.payout_filter_service import PayoutFilterService
from core.services.timestamp_normalizer import TimestampNormalizer


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _missing_fields(raw: Mapping[str, Any], required: Tuple[str, ...]) -> List[str]:
    return [f for f in required if _is_blank(raw.get(f))]


def _finite_number(value: Any) -> float:
    # Strings and booleans are rejected, not coerced.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    value = float(value)
    if not math.isfinite(value):
        raise ValueError("must be a finite number")
    return value


def _non_empty_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("must be a string")
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _as_record(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("record must be a JSON object")
    return dict(payload)


def _reraise(exc: PydanticValidationError) -> ValidationError:
    fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
    details = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
    return ValidationError(f"Invalid fields: {details}", fields=fields)


class TickInput(BaseModel):
    """
    A single tick as accepted from a producer.

    Required: symbol, timestamp (or ts_ms), price. source defaults per endpoint.
    symbol and source are trimmed of surrounding whitespace; prices are never
    coerced from strings.
    """

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("symbol", "timestamp", "price")

    model_config = ConfigDict(extra="ignore")

    symbol: str
    ts_ms: int
    price: float
    source: str

    @field_validator("symbol", "source", mode="before")
    @classmethod
    def _check_strings(cls, v: Any) -> str:
        return _non_empty_str(v)

    @field_validator("price", mode="before")
    @classmethod
    def _check_price(cls, v: Any) -> float:
        return _finite_number(v)

    @classmethod
    def parse(cls, payload: Any, *, default_source: str = "realtime") -> "TickInput":
        """
        Validate a raw payload.

        Raises:
            ValidationError: missing/blank required fields or invalid values.
            InvalidTimestamp: the timestamp cannot be normalized.
        """
        raw = _as_record(payload)
        if _is_blank(raw.get("timestamp")) and not _is_blank(raw.get("ts_ms")):
            raw["timestamp"] = raw["ts_ms"]

        missing = _missing_fields(raw, cls.REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

        ts_ms = TimestampNormalizer.normalize(raw["timestamp"])
        source = default_source if _is_blank(raw.get("source")) else raw["source"]

        try:
            return cls.model_validate(
                {"symbol": raw["symbol"], "ts_ms": ts_ms, "price": raw["price"], "source": source}
            )
        except PydanticValidationError as exc:
            raise _reraise(exc) from exc

    def to_entity(self) -> PriceTickEntity:
        return PriceTickEntity(symbol=self.symbol, ts_ms=self.ts_ms, price=self.price, source=self.source)


class CandleInput(BaseModel):
    """
    A whole candle as sent by legacy producers.

    Required: symbol, interval, timestamp, open, high, low, close.
    volume defaults to 0; source defaults per endpoint. symbol, interval and
    source are trimmed of surrounding whitespace before storage.
    """

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("symbol", "interval", "timestamp", "open", "high", "low", "close")

    model_config = ConfigDict(extra="ignore")

    symbol: str
    interval: str
    ts_ms: int

    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    source: str

    @field_validator("symbol", "interval", "source", mode="before")
    @classmethod
    def _check_strings(cls, v: Any) -> str:
        return _non_empty_str(v)

    @field_validator("open", "high", "low", "close", "volume", mode="before")
    @classmethod
    def _check_prices(cls, v: Any) -> float:
        return _finite_number(v)

    @classmethod
    def parse(cls, payload: Any, *, default_source: str = "realtime") -> "CandleInput":
        """
        Validate a raw payload.

        Raises:
            ValidationError: missing/blank required fields or invalid values.
            InvalidTimestamp: the timestamp cannot be normalized.
        """
        raw = _as_record(payload)

        missing = _missing_fields(raw, cls.REQUIRED_FIELDS)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

        ts_ms = TimestampNormalizer.normalize(raw["timestamp"])

        data = {k: raw[k] for k in ("symbol", "interval", "open", "high", "low", "close")}
        data["ts_ms"] = ts_ms
        data["volume"] = 0.0 if raw.get("volume") is None else raw["volume"]
        data["source"] = default_source if _is_blank(raw.get("source")) else raw["source"]

        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise _reraise(exc) from exc

    @property
    def is_payout(self) -> bool:
        return PayoutFilterService.is_payout(open=self.open, high=self.high, low=self.low, close=self.close)

    def to_legacy_entity(self) -> LegacyCandleEntity:
        return LegacyCandleEntity(
            symbol=self.symbol,
            interval=self.interval,
            timestamp=self.ts_ms,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
            source=self.source,
        )

    def to_tick_entity(self) -> PriceTickEntity:
        """
        Derived tick for dual-write: the candle's close is the tick price.
        """
        return PriceTickEntity(symbol=self.symbol, ts_ms=self.ts_ms, price=self.close, source=self.source)
