"""Delayed batch engine: one one-shot timer per pending batch."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Sequence

from fieldagg.core.contracts import BatchEngineABC

logger = logging.getLogger(__name__)


BatchProcessorFn = Callable[[list[Any]], None]


class DelayedBatchEngine(BatchEngineABC):
    """Thread-safe batch buffer flushed a fixed delay after its first item.

    The timer is armed when the pending batch goes from empty to non-empty and
    is never extended by later items. Draining always clears the timer handle,
    so at most one timer is live per engine.
    """

    def __init__(self, *, process_fn: BatchProcessorFn, flush_delay_ms: float):
        self._process_fn = process_fn
        self._flush_delay = flush_delay_ms / 1000.0
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending_items: list[Any] = []

    @property
    def flush_delay_ms(self) -> float:
        return self._flush_delay * 1000.0

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending_items)

    @property
    def timer_active(self) -> bool:
        with self._lock:
            return self._timer is not None

    def enqueue(self, items: Sequence[Any]) -> None:
        if not items:
            return
        with self._lock:
            self._pending_items.extend(items)
            if self._timer is None:
                self._timer = threading.Timer(self._flush_delay, self.flush)
                # Unflushed items are dropped at interpreter exit
                self._timer.daemon = True
                self._timer.start()
                logger.debug(
                    "DelayedBatchEngine: armed flush timer (%.3fs)", self._flush_delay
                )
            pending = len(self._pending_items)
        logger.debug("DelayedBatchEngine: %d items pending", pending)

    def flush(self) -> None:
        items = self._drain_locked()
        if items is None:
            return
        logger.debug("DelayedBatchEngine: flushing %d items", len(items))
        try:
            self._process_fn(items)
        except Exception as exc:
            logger.error("DelayedBatchEngine: processing failed: %s", exc, exc_info=True)

    def _drain_locked(self) -> list[Any] | None:
        with self._lock:
            timer = self._timer
            self._timer = None
            # Cancelling from inside the timer's own thread is harmless
            if timer is not None:
                timer.cancel()

            if not self._pending_items:
                return None

            items = self._pending_items
            self._pending_items = []
            return items
