"""
In-process batch aggregation of small records.

Typical use creates and owns an ``Aggregator``:

    from fieldagg import Aggregator

    agg = Aggregator(flush_delay_ms=500)
    agg.submit({"input": "a"}, on_flush)
    agg.submit({"input": "b"})
    # ~500ms later: on_flush({"input": ["a", "b"]})

Module-level ``submit`` and ``reduce_immediate`` use a lazily created
process-wide aggregator configured from the environment.
"""

import logging
import threading
from typing import Optional, Sequence

from fieldagg.aggregator import (
    Aggregator,
    ErrorHandler,
    FlushCallback,
    log_callback_error,
)
from fieldagg.config import AggregatorConfig, ConfigError
from fieldagg.core import BatchEngineABC, DelayedBatchEngine, ReducerABC
from fieldagg.reducers import (
    MISSING,
    AggregatedResult,
    AggregationMode,
    DataItem,
    FrequencyReducer,
    PositionalReducer,
    ReducerBase,
    available_modes,
    get_reducer,
    reduce,
    stringify,
)

__all__ = [
    'Aggregator',
    'AggregatorConfig',
    'ConfigError',
    'FlushCallback',
    'ErrorHandler',
    'log_callback_error',
    'BatchEngineABC',
    'DelayedBatchEngine',
    'ReducerABC',
    'ReducerBase',
    'PositionalReducer',
    'FrequencyReducer',
    'AggregationMode',
    'AggregatedResult',
    'DataItem',
    'MISSING',
    'available_modes',
    'get_reducer',
    'reduce',
    'stringify',
    'get_default_aggregator',
    'reset_default_aggregator',
    'submit',
    'reduce_immediate',
]

logger = logging.getLogger(__name__)

_default_aggregator: Optional[Aggregator] = None
_default_lock = threading.Lock()


def get_default_aggregator() -> Aggregator:
    """Return the process-wide aggregator, creating it on first use.

    An invalid environment configuration is logged and replaced by the
    defaults so that ``submit`` and ``reduce_immediate`` never raise.
    """
    global _default_aggregator
    with _default_lock:
        if _default_aggregator is None:
            try:
                config = AggregatorConfig.from_env()
            except ConfigError as exc:
                logger.error(
                    "Invalid aggregator environment, using defaults: %s", exc, exc_info=True
                )
                config = AggregatorConfig()
            _default_aggregator = Aggregator(config)
        return _default_aggregator


def reset_default_aggregator() -> None:
    """
    Discard the process-wide aggregator.

    A batch already pending in it is still flushed by its own timer. The
    next call to ``submit`` creates a fresh aggregator from the current
    environment.
    """
    global _default_aggregator
    with _default_lock:
        _default_aggregator = None


def submit(item: DataItem, callback: Optional[FlushCallback] = None) -> None:
    """Buffer ``item`` in the process-wide aggregator."""
    get_default_aggregator().submit(item, callback)


def reduce_immediate(items: Sequence[DataItem]) -> AggregatedResult:
    """Reduce ``items`` synchronously with the process-wide aggregator's strategy."""
    return get_default_aggregator().reduce_immediate(items)
