from __future__ import annotations

from fastapi import Request

from adapters.external.database.candle_cache_repository_sqlite import CandleCacheRepositorySQLite
from adapters.external.database.legacy_candle_repository_sqlite import LegacyCandleRepositorySQLite
from adapters.external.database.price_tick_repository_sqlite import PriceTickRepositorySQLite
from adapters.external.database.sqlite_store import SQLiteStore
from adapters.external.database.stats_repository_sqlite import StatsRepositorySQLite
from core.usecases.build_candles_from_ticks_use_case import BuildCandlesFromTicksUseCase
from core.usecases.get_cached_candles_use_case import GetCachedCandlesUseCase
from core.usecases.ingest_candles_use_case import IngestCandlesUseCase
from core.usecases.ingest_ticks_use_case import IngestTicksUseCase
from core.usecases.migrate_legacy_candles_use_case import MigrateLegacyCandlesUseCase
from core.usecases.resample_candles_use_case import ResampleCandlesUseCase
from core.usecases.stats_use_case import StatsUseCase


def get_store(request: Request) -> SQLiteStore:
    """
    Shared store opened in the app lifespan.
    """
    return request.app.state.store


def get_range_end_default(request: Request) -> int:
    return int(request.app.state.default_range_end_ms)


def get_tick_repo(request: Request) -> PriceTickRepositorySQLite:
    return PriceTickRepositorySQLite(get_store(request))


def get_legacy_repo(request: Request) -> LegacyCandleRepositorySQLite:
    return LegacyCandleRepositorySQLite(get_store(request))


def get_ingest_ticks_uc(request: Request) -> IngestTicksUseCase:
    return IngestTicksUseCase(tick_repository=get_tick_repo(request))


def get_ingest_candles_uc(request: Request) -> IngestCandlesUseCase:
    store = get_store(request)
    return IngestCandlesUseCase(
        legacy_repository=LegacyCandleRepositorySQLite(store),
        tick_repository=PriceTickRepositorySQLite(store),
        transactions=store,
    )


def get_build_candles_uc(request: Request) -> BuildCandlesFromTicksUseCase:
    store = get_store(request)
    return BuildCandlesFromTicksUseCase(
        tick_repository=PriceTickRepositorySQLite(store),
        candle_repository=CandleCacheRepositorySQLite(store),
        transactions=store,
        interval_ms=int(request.app.state.cache_interval_ms),
    )


def get_cached_candles_uc(request: Request) -> GetCachedCandlesUseCase:
    store = get_store(request)
    return GetCachedCandlesUseCase(
        tick_repository=PriceTickRepositorySQLite(store),
        candle_repository=CandleCacheRepositorySQLite(store),
        build_candles_uc=get_build_candles_uc(request),
    )


def get_resample_candles_uc(request: Request) -> ResampleCandlesUseCase:
    store = get_store(request)
    return ResampleCandlesUseCase(
        tick_repository=PriceTickRepositorySQLite(store),
        legacy_repository=LegacyCandleRepositorySQLite(store),
    )


def get_migrate_uc(request: Request) -> MigrateLegacyCandlesUseCase:
    store = get_store(request)
    return MigrateLegacyCandlesUseCase(
        legacy_repository=LegacyCandleRepositorySQLite(store),
        tick_repository=PriceTickRepositorySQLite(store),
        transactions=store,
    )


def get_stats_uc(request: Request) -> StatsUseCase:
    return StatsUseCase(stats_repo=StatsRepositorySQLite(get_store(request)))
