# core/domain/entities/base_entity.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict

E = TypeVar("E", bound="RowEntity")


class RowEntity(BaseModel):
    """
    Base entity for SQLite-backed rows.

    - Carries the autoincrement `id` and the first-insert `created_at` (epoch-ms).
    - Ignores unknown columns so SELECT * keeps working across schema additions.
    """

    id: Optional[int] = None
    created_at: Optional[int] = None

    model_config = ConfigDict(
        extra="ignore",
        use_enum_values=True,
    )

    @classmethod
    def from_row(cls: Type[E], row: Optional[Mapping[str, Any]]) -> Optional[E]:
        """
        Convert a sqlite3.Row (or any mapping) into a strongly-typed entity.

        Args:
            row: Raw row; None yields None.

        Returns:
            An entity instance or None if row is falsy.
        """
        if row is None:
            return None
        return cls.model_validate({k: row[k] for k in row.keys()})

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-safe dict for HTTP payloads and logging.
        """
        return self.model_dump(mode="json", exclude_none=True)
