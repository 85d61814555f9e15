"""Shared fixtures: one temporary SQLite file per test."""

import pytest
from fastapi.testclient import TestClient

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
from main import create_app

# 2023-11-14T22:14:00Z, aligned to a 60s bucket
BUCKET_START = 1_700_000_040_000
MINUTE = 60_000


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "market-data.db")


@pytest.fixture
def store(db_path):
    s = SQLiteStore(db_path, busy_timeout_ms=1000, cache_size_kb=2000)
    s.open()
    return s


@pytest.fixture
def tick_repo(store):
    return PriceTickRepositorySQLite(store)


@pytest.fixture
def cache_repo(store):
    return CandleCacheRepositorySQLite(store)


@pytest.fixture
def legacy_repo(store):
    return LegacyCandleRepositorySQLite(store)


@pytest.fixture
def stats_repo(store):
    return StatsRepositorySQLite(store)


@pytest.fixture
def ingest_ticks_uc(tick_repo):
    return IngestTicksUseCase(tick_repository=tick_repo)


@pytest.fixture
def ingest_candles_uc(store, legacy_repo, tick_repo):
    return IngestCandlesUseCase(legacy_repository=legacy_repo, tick_repository=tick_repo, transactions=store)


@pytest.fixture
def build_uc(store, tick_repo, cache_repo):
    return BuildCandlesFromTicksUseCase(
        tick_repository=tick_repo,
        candle_repository=cache_repo,
        transactions=store,
        interval_ms=MINUTE,
    )


@pytest.fixture
def cached_uc(tick_repo, cache_repo, build_uc):
    return GetCachedCandlesUseCase(tick_repository=tick_repo, candle_repository=cache_repo, build_candles_uc=build_uc)


@pytest.fixture
def resample_uc(tick_repo, legacy_repo):
    return ResampleCandlesUseCase(tick_repository=tick_repo, legacy_repository=legacy_repo)


@pytest.fixture
def migrate_uc(store, legacy_repo, tick_repo):
    return MigrateLegacyCandlesUseCase(legacy_repository=legacy_repo, tick_repository=tick_repo, transactions=store)


@pytest.fixture
def client(db_path):
    app = create_app(db_path=db_path, cache_interval_ms=MINUTE)
    with TestClient(app) as c:
        yield c
