from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from adapters.external.database.price_tick_repository_sqlite import PriceTickRepositorySQLite
from core.usecases.build_candles_from_ticks_use_case import BuildCandlesFromTicksUseCase
from core.usecases.migrate_legacy_candles_use_case import MigrateLegacyCandlesUseCase
from core.usecases.stats_use_case import StatsUseCase

from .deps import get_build_candles_uc, get_migrate_uc, get_range_end_default, get_stats_uc, get_tick_repo
from .dtos.stats_dtos import HealthOutDTO, MigrationOutDTO, ResampleTriggerDTO, ResampleTriggerOutDTO

router = APIRouter(tags=["admin"])


@router.post("/api/candles_1m/resample", response_model=ResampleTriggerOutDTO)
def trigger_resample(
    dto: Optional[ResampleTriggerDTO] = Body(None),
    uc: BuildCandlesFromTicksUseCase = Depends(get_build_candles_uc),
    tick_repo: PriceTickRepositorySQLite = Depends(get_tick_repo),
    default_end: int = Depends(get_range_end_default),
) -> ResampleTriggerOutDTO:
    """
    Rebuild the candle cache, bypassing the coverage check.

    With no symbol, every symbol that has ticks is rebuilt. start/end narrow the
    rebuild; without them the full time range is used.
    """
    symbols = [dto.symbol] if dto and dto.symbol else tick_repo.list_symbols()
    start_ms = dto.start if dto and dto.start is not None else 0
    end_ms = dto.end if dto and dto.end is not None else default_end
    result = uc.execute_all(symbols=symbols, start_ms=start_ms, end_ms=end_ms)
    return ResampleTriggerOutDTO(
        symbols=symbols,
        candlesCreated=result.candles_created,
        ticksProcessed=result.tick_count,
    )


@router.post("/api/migrate/candles-to-ticks", response_model=MigrationOutDTO)
def migrate_candles_to_ticks(uc: MigrateLegacyCandlesUseCase = Depends(get_migrate_uc)) -> MigrationOutDTO:
    """
    Backfill ticks from the legacy candles table (payout-shaped rows excluded).
    """
    report = uc.execute()
    return MigrationOutDTO(totalRows=report.total_rows, migrated=report.migrated, skipped=report.skipped)


@router.get("/health", response_model=HealthOutDTO)
def health(uc: StatsUseCase = Depends(get_stats_uc)) -> HealthOutDTO:
    return HealthOutDTO.model_validate(uc.health())


@router.get("/api/candles/stats")
def legacy_candle_stats(uc: StatsUseCase = Depends(get_stats_uc)) -> List[Dict[str, Any]]:
    """
    Per-symbol collection stats of the legacy candles table.
    """
    return uc.legacy_candle_stats()


@router.get("/api/ticks/stats")
def tick_stats(uc: StatsUseCase = Depends(get_stats_uc)) -> List[Dict[str, Any]]:
    return uc.tick_stats()


@router.get("/api/candles_1m/stats")
def cache_stats(uc: StatsUseCase = Depends(get_stats_uc)) -> List[Dict[str, Any]]:
    return uc.cache_stats()


@router.get("/api/candles/stats/detailed")
def detailed_stats(uc: StatsUseCase = Depends(get_stats_uc)) -> Dict[str, Any]:
    """
    Per (symbol, source) breakdown of ticks, cache and legacy candles, with totals.
    """
    return uc.detailed()
