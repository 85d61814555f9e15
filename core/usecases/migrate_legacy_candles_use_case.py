from __future__ import annotations

import logging

from pydantic import BaseModel

from core.domain.entities.price_tick_entity import PriceTickEntity
from core.domain.errors import ConstraintViolationError, InvalidTimestamp
from core.repositories.legacy_candle_repository import LegacyCandleRepository
from core.repositories.price_tick_repository import PriceTickRepository
from core.repositories.transaction_manager import TransactionManager
from core.services.timestamp_normalizer import TimestampNormalizer


class MigrationReport(BaseModel):
    total_rows: int
    migrated: int
    skipped: int


class MigrateLegacyCandlesUseCase:
    """
    Best-effort backfill of ticks from the legacy `candles` table.

    Payout-shaped rows are excluded up front. Each remaining row becomes a tick
    priced at its close. A row that violates a constraint or carries an
    unusable timestamp is counted as skipped; the migration never aborts on a
    single row, so migrated + skipped == total_rows.
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

    def execute(self) -> MigrationReport:
        rows = self._legacy.list_non_payout()

        migrated = 0
        with self._tx.transaction() as tx:
            for row in rows:
                try:
                    tick = PriceTickEntity(
                        symbol=row.symbol,
                        ts_ms=TimestampNormalizer.normalize(row.timestamp),
                        price=row.close,
                        source=row.source,
                    )
                    self._ticks.upsert_tick(tick, tx=tx)
                    migrated += 1
                except (ConstraintViolationError, InvalidTimestamp) as exc:
                    self._logger.debug("Migration skipped row id=%s: %s", row.id, exc)

        report = MigrationReport(total_rows=len(rows), migrated=migrated, skipped=len(rows) - migrated)
        self._logger.info("[Migration] candles -> ticks: %s/%s migrated", migrated, len(rows))
        return report
