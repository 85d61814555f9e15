import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from adapters.entry.http.admin_router import router as admin_router
from adapters.entry.http.errors import register_exception_handlers
from adapters.entry.http.ingest_router import router as ingest_router
from adapters.entry.http.market_data_router import router as market_data_router
from adapters.entry.http.middleware import BodySizeLimitMiddleware
from config.settings import settings
from workers.storage_supervisor import StorageSupervisor


def _setup_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    *,
    db_path: str | None = None,
    cache_interval_ms: int | None = None,
    max_body_bytes: int | None = None,
    busy_timeout_ms: int | None = None,
) -> FastAPI:
    """
    Build the collector app. Arguments override the matching settings (used by tests).
    """
    supervisor = StorageSupervisor(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _setup_logging()
        logging.getLogger(__name__).info("Starting %s (lifespan startup)...", settings.APP_NAME)

        app.state.store = supervisor.start()
        app.state.cache_interval_ms = cache_interval_ms or settings.CACHE_INTERVAL_MS
        app.state.default_range_end_ms = settings.DEFAULT_RANGE_END_MS

        try:
            yield
        finally:
            logging.getLogger(__name__).info("Shutting down %s (lifespan shutdown)...", settings.APP_NAME)
            supervisor.stop()

    app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=max_body_bytes or settings.MAX_BODY_BYTES)
    register_exception_handlers(app)

    app.include_router(ingest_router)
    app.include_router(market_data_router)
    app.include_router(admin_router)

    return app


app = create_app()
