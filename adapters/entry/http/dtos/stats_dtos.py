from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from core.services.timestamp_normalizer import INT64_MAX, INT64_MIN


class ResampleTriggerDTO(BaseModel):
    """
    DTO for an operator-triggered full cache rebuild.

    Without a symbol every symbol present in `ticks` is rebuilt. Without
    start/end the full time range is used.
    """

    symbol: Optional[str] = Field(default=None, description="e.g. EURUSD_otc; omit to rebuild all symbols")
    start: Optional[int] = Field(default=None, ge=INT64_MIN, le=INT64_MAX, description="Inclusive range start (epoch-ms)")
    end: Optional[int] = Field(default=None, ge=INT64_MIN, le=INT64_MAX, description="Inclusive range end (epoch-ms)")

    @field_validator("symbol")
    @classmethod
    def _strip_symbol(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ResampleTriggerOutDTO(BaseModel):
    success: bool = True
    symbols: List[str]
    candlesCreated: int
    ticksProcessed: int


class MigrationOutDTO(BaseModel):
    """
    Result of the legacy candles -> ticks migration. migrated + skipped == totalRows.
    """

    success: bool = True
    totalRows: int
    migrated: int
    skipped: int


class HealthOutDTO(BaseModel):
    status: str
    totalCandles: int
    totalTicks: int
    totalCandles1m: int
