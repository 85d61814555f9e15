from __future__ import annotations

import logging
from typing import Any, List, Sequence

from core.domain.entities.price_tick_entity import PriceTickEntity
from core.domain.errors import BatchValidationError, ValidationError
from core.domain.inputs import TickInput
from core.repositories.price_tick_repository import PriceTickRepository


class IngestTicksUseCase:
    """
    Stores ticks sent by producers.

    Behavior:
      - Single tick: validated, normalized and upserted (price-only overwrite).
      - Bulk: every row is validated before anything is written; the first bad
        row rejects the whole batch with its index. Valid batches are written in
        one transaction.
    """

    def __init__(
        self,
        *,
        tick_repository: PriceTickRepository,
        logger: logging.Logger | None = None,
    ):
        self._ticks = tick_repository
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def ingest_one(self, payload: Any, *, default_source: str = "realtime") -> PriceTickEntity:
        tick = TickInput.parse(payload, default_source=default_source).to_entity()
        self._ticks.upsert_tick(tick)
        self._logger.info("Saved tick: %s @ %s source=%s", tick.symbol, tick.ts_ms, tick.source)
        return tick

    def ingest_bulk(self, rows: Sequence[Any], *, default_source: str = "realtime") -> int:
        if not isinstance(rows, (list, tuple)) or not rows:
            raise ValidationError("ticks must be a non-empty array", fields=["ticks"])

        ticks: List[PriceTickEntity] = []
        for i, row in enumerate(rows):
            try:
                ticks.append(TickInput.parse(row, default_source=default_source).to_entity())
            except ValidationError as exc:
                self._logger.warning("Bulk ticks rejected at index %s: %s", i, exc.message)
                raise BatchValidationError(index=i, record=row, cause=exc, record_key="tick") from exc

        count = self._ticks.upsert_ticks(ticks)
        self._logger.info("Bulk ticks saved: %s (symbol: %s)", count, ticks[0].symbol)
        return count
