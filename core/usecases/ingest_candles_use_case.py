from __future__ import annotations

import logging
from typing import Any, List, Sequence

from pydantic import BaseModel

from core.domain.errors import BatchValidationError, ValidationError
from core.domain.inputs import CandleInput
from core.repositories.legacy_candle_repository import LegacyCandleRepository
from core.repositories.price_tick_repository import PriceTickRepository
from core.repositories.transaction_manager import TransactionManager


class CandleIngestResult(BaseModel):
    count: int
    tick_count: int


class IngestCandlesUseCase:
    """
    Stores whole candles from legacy producers and dual-writes ticks.

    Each candle is upserted into the legacy table (full replace) and, unless it
    is payout-shaped, a tick priced at the candle's close is upserted in the
    same transaction.
    """

    def __init__(
        self,
        *,
        legacy_repository: LegacyCandleRepository,
        tick_repository: PriceTickRepository,
        transactions: TransactionManager,
        logger: logging.Logger | None = None,
    ):
        self._legacy = legacy_repository
        self._ticks = tick_repository
        self._tx = transactions
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def ingest_one(self, payload: Any, *, default_source: str = "realtime") -> CandleIngestResult:
        candle = CandleInput.parse(payload, default_source=default_source)
        result = self._write([candle])
        self._logger.info(
            "Saved candle%s: %s %s @ %s",
            "+tick" if result.tick_count else "",
            candle.symbol,
            candle.interval,
            candle.ts_ms,
        )
        return result

    def ingest_bulk(self, rows: Sequence[Any], *, default_source: str = "history") -> CandleIngestResult:
        if not isinstance(rows, (list, tuple)):
            raise ValidationError("Invalid data format: candles must be an array", fields=["candles"])
        if not rows:
            raise ValidationError("Empty candles array", fields=["candles"])

        candles: List[CandleInput] = []
        for i, row in enumerate(rows):
            try:
                candles.append(CandleInput.parse(row, default_source=default_source))
            except ValidationError as exc:
                self._logger.error("Bulk candles rejected at index %s: %s. Candle: %s", i, exc.message, row)
                raise BatchValidationError(index=i, record=row, cause=exc, record_key="candle") from exc

        result = self._write(candles)
        self._logger.info(
            "Bulk saved: %s candles + %s ticks (symbol: %s)",
            result.count,
            result.tick_count,
            candles[0].symbol,
        )
        return result

    def _write(self, candles: Sequence[CandleInput]) -> CandleIngestResult:
        tick_count = 0
        with self._tx.transaction() as tx:
            for candle in candles:
                self._legacy.upsert_legacy_candle(candle.to_legacy_entity(), tx=tx)
                if not candle.is_payout:
                    self._ticks.upsert_tick(candle.to_tick_entity(), tx=tx)
                    tick_count += 1
        return CandleIngestResult(count=len(candles), tick_count=tick_count)
