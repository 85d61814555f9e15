from __future__ import annotations

from typing import Any, Dict, List, Optional


class MarketDataError(Exception):
    """
    Base class for every error surfaced by the collector core.
    """


class ValidationError(MarketDataError):
    """
    A single record is missing required fields or carries invalid values.

    Attributes:
        fields: Names of the offending fields (may be empty for whole-record errors).
    """

    def __init__(self, message: str, *, fields: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = list(fields or [])


class InvalidTimestamp(ValidationError):
    """
    Timestamp is empty, unparseable or not a finite number.
    """

    def __init__(self, value: Any) -> None:
        super().__init__(f"invalid timestamp: {value!r}", fields=["timestamp"])
        self.value = value


class BatchValidationError(ValidationError):
    """
    A bulk payload was rejected because of the row at `index`.

    Nothing from the batch has been written when this is raised.
    """

    def __init__(
        self,
        *,
        index: int,
        record: Any,
        cause: ValidationError,
        record_key: str = "record",
    ) -> None:
        super().__init__(f"Validation failed at index {index}: {cause.message}", fields=cause.fields)
        self.index = int(index)
        self.record = record
        self.cause = cause
        self.record_key = record_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "failedIndex": self.index,
            "fields": self.fields,
            self.record_key: self.record,
        }


class StorageError(MarketDataError):
    """
    Underlying persistence failure (disk, lock, constraint).

    Attributes:
        retryable: True when the failure was a busy/locked database and the
            caller may retry the same request unchanged.
    """

    def __init__(self, message: str, *, operation: str = "", retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.retryable = bool(retryable)


class ConstraintViolationError(StorageError):
    """
    A write violated a UNIQUE/NOT NULL/CHECK constraint.
    """
