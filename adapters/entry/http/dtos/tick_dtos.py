from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TickOutDTO(BaseModel):
    """
    Tick row as returned by GET /api/ticks.
    """

    id: Optional[int] = None
    symbol: str
    ts_ms: int = Field(..., description="Epoch milliseconds")
    price: float
    source: str
    created_at: Optional[int] = None


class IngestOutDTO(BaseModel):
    """
    Acknowledgement for single-record ingestion.
    """

    success: bool = True


class BulkTicksOutDTO(BaseModel):
    success: bool = True
    count: int
