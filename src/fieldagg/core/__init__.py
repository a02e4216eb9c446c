"""Batch scheduling core shared by aggregators."""

from fieldagg.core.batch_engine import DelayedBatchEngine
from fieldagg.core.contracts import (
    BatchEngineABC,
    ReducerABC,
)

__all__ = [
    "BatchEngineABC",
    "ReducerABC",
    "DelayedBatchEngine",
]
