"""
Buffered field aggregator.

Submitted items accumulate in a pending batch. A fixed delay after the first
item of a batch, the batch is reduced into one aggregated mapping and handed
to the registered flush callback.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from fieldagg.config import AggregatorConfig
from fieldagg.core import DelayedBatchEngine
from fieldagg.reducers import (
    AggregatedResult,
    AggregationMode,
    DataItem,
    ReduceFn,
    get_reducer,
)

logger = logging.getLogger(__name__)

FlushCallback = Callable[[AggregatedResult], None]
ErrorHandler = Callable[[Exception, AggregatedResult], None]


def log_callback_error(exc: Exception, result: AggregatedResult) -> None:
    """Default diagnostic sink for failing flush callbacks."""
    logger.error(
        "Aggregator: flush callback failed for %d fields: %s",
        len(result),
        exc,
        exc_info=exc,
    )


class Aggregator:
    """
    Delayed batch aggregator with a single, replaceable flush callback.

    Items submitted with ``submit`` are buffered. The first item of a batch
    arms a one-shot timer; when it fires, the whole batch is reduced and the
    currently registered callback receives the result. Submitting more items
    does not postpone the flush.

    The callback runs on the timer thread. The batch is drained before the
    callback is invoked, so a callback that submits items starts a new batch.
    """

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        *,
        flush_delay_ms: Optional[float] = None,
        mode: Union[AggregationMode, str, None] = None,
        reducer: Optional[ReduceFn] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Initialize aggregator.

        Args:
            config: Base settings (defaults to ``AggregatorConfig()``)
            flush_delay_ms: Overrides ``config.flush_delay_ms``
            mode: Overrides ``config.mode``; ignored when ``reducer`` is given
            reducer: Custom reduction function replacing the registered strategy
            error_handler: Diagnostic sink for callback failures
                (defaults to logging the exception)

        Raises:
            ConfigError: if the resulting delay or mode is invalid.
        """
        config = config or AggregatorConfig()
        if flush_delay_ms is not None or mode is not None:
            config = AggregatorConfig(
                flush_delay_ms=config.flush_delay_ms if flush_delay_ms is None else flush_delay_ms,
                mode=config.mode if mode is None else mode,
            )
        self.config = config

        self._reducer: ReduceFn = reducer if reducer is not None else get_reducer(config.mode)
        self._error_handler: ErrorHandler = error_handler or log_callback_error
        self._callback: Optional[FlushCallback] = None

        self._engine = DelayedBatchEngine(
            process_fn=self._process_batch,
            flush_delay_ms=config.flush_delay_ms,
        )

        logger.info(
            f"Aggregator: Created with delay={config.flush_delay_ms}ms, "
            f"reducer={self._reducer!r}"
        )

    @property
    def callback(self) -> Optional[FlushCallback]:
        return self._callback

    @property
    def pending_count(self) -> int:
        """Number of items waiting for the next flush."""
        return self._engine.pending_count

    def set_callback(self, callback: Optional[FlushCallback]) -> None:
        """Register the callback that receives the next flushed result.

        Only one callback is current at a time; it also applies to items
        already pending.
        """
        self._callback = callback

    def submit(self, item: DataItem, callback: Optional[FlushCallback] = None) -> None:
        """
        Buffer one item for the next flush.

        Args:
            item: Field name to value mapping; any shape is accepted
            callback: When given, replaces the registered flush callback
        """
        if callback is not None:
            self._callback = callback
        self._engine.enqueue([item])

    def reduce_immediate(self, items: Sequence[DataItem]) -> AggregatedResult:
        """Reduce ``items`` right away without touching the pending batch."""
        return self._reducer(items)

    def _process_batch(self, items: List[Dict[str, Any]]) -> None:
        """Process callback used by the delayed batch engine."""
        result = self._reducer(items)
        callback = self._callback
        logger.debug(
            "Aggregator: flushed %d items into %d fields", len(items), len(result)
        )
        if callback is None:
            return
        try:
            callback(result)
        except Exception as exc:
            try:
                self._error_handler(exc, result)
            except Exception as handler_exc:
                logger.error(
                    "Aggregator: error handler failed: %s", handler_exc, exc_info=True
                )
