from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from core.usecases.ingest_candles_use_case import IngestCandlesUseCase
from core.usecases.ingest_ticks_use_case import IngestTicksUseCase

from .deps import get_ingest_candles_uc, get_ingest_ticks_uc
from .dtos.candle_dtos import BulkCandlesOutDTO
from .dtos.tick_dtos import BulkTicksOutDTO, IngestOutDTO

router = APIRouter(prefix="/api", tags=["ingest"])


@router.post("/tick", response_model=IngestOutDTO)
def ingest_tick(
    payload: Dict[str, Any] = Body(...),
    uc: IngestTicksUseCase = Depends(get_ingest_ticks_uc),
) -> IngestOutDTO:
    """
    Store a single tick: {symbol, timestamp, price, source?}.

    timestamp may be seconds, fractional seconds or milliseconds (number or string).
    """
    uc.ingest_one(payload, default_source="realtime")
    return IngestOutDTO()


@router.post("/ticks/bulk", response_model=BulkTicksOutDTO)
def ingest_ticks_bulk(
    payload: Dict[str, Any] = Body(...),
    uc: IngestTicksUseCase = Depends(get_ingest_ticks_uc),
) -> BulkTicksOutDTO:
    """
    Store {ticks: [...]} atomically. Rows may carry `ts_ms` instead of `timestamp`.
    """
    count = uc.ingest_bulk(payload.get("ticks"), default_source="realtime")
    return BulkTicksOutDTO(count=count)


@router.post("/candle", response_model=IngestOutDTO)
def ingest_candle(
    payload: Dict[str, Any] = Body(...),
    uc: IngestCandlesUseCase = Depends(get_ingest_candles_uc),
) -> IngestOutDTO:
    """
    Store a whole candle in the legacy table and dual-write its close as a tick
    (skipped for payout-shaped candles).
    """
    uc.ingest_one(payload, default_source="realtime")
    return IngestOutDTO()


@router.post("/candles/bulk", response_model=BulkCandlesOutDTO)
def ingest_candles_bulk(
    payload: Dict[str, Any] = Body(...),
    uc: IngestCandlesUseCase = Depends(get_ingest_candles_uc),
) -> BulkCandlesOutDTO:
    """
    Store {candles: [...]} (historical backfill, source defaults to "history").

    The whole batch is rejected if any row is invalid; the response names the first bad index.
    """
    result = uc.ingest_bulk(payload.get("candles"), default_source="history")
    return BulkCandlesOutDTO(count=result.count, tickCount=result.tick_count)
