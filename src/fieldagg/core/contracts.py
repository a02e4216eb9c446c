"""ABC contracts for batch scheduling and reduction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence


class BatchEngineABC(ABC):
    """Contract for delayed batch engines."""

    @abstractmethod
    def enqueue(self, items: Sequence[Any]) -> None:
        """Queue items and schedule processing."""
        raise NotImplementedError

    @abstractmethod
    def flush(self) -> None:
        """Immediately process any pending queued items."""
        raise NotImplementedError


class ReducerABC(ABC):
    """Contract for collapsing a batch of records into one aggregated record."""

    @abstractmethod
    def reduce(self, items: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        """Aggregate every field of ``items`` into a single mapping."""
        raise NotImplementedError
