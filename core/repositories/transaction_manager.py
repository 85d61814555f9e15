from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ContextManager

# Opaque handle passed from a transaction into repository calls that must join it.
Transaction = Any


class TransactionManager(ABC):
    """
    Abstraction over the storage's write transactions.

    Use cases that touch several repositories atomically (bulk ingestion,
    dual-write, resample passes) open one transaction here and hand the
    yielded handle to each repository call.
    """

    @abstractmethod
    def transaction(self) -> ContextManager[Transaction]:
        """
        Begin a write transaction; commit on normal exit, roll back on error.
        """
        raise NotImplementedError
