"""
Configuration for aggregators.

Values come from constructor arguments or from the environment:

    FIELDAGG_FLUSH_DELAY_MS   delay between the first item of a batch and its flush
    FIELDAGG_MODE             "positional" (default) or "frequency"
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from fieldagg.reducers import AggregationMode

DEFAULT_FLUSH_DELAY_MS = 1000
DEFAULT_MODE = AggregationMode.POSITIONAL

FLUSH_DELAY_ENV = "FIELDAGG_FLUSH_DELAY_MS"
MODE_ENV = "FIELDAGG_MODE"


class ConfigError(ValueError):
    """Raised when an aggregator configuration value is invalid."""


@dataclass(frozen=True)
class AggregatorConfig:
    """Aggregator settings.

    Attributes:
        flush_delay_ms: Milliseconds between the first submission of a batch
            and its flush. Later submissions do not extend the wait.
        mode: Aggregation shape applied at flush time.
    """

    flush_delay_ms: float = DEFAULT_FLUSH_DELAY_MS
    mode: AggregationMode = DEFAULT_MODE

    def __post_init__(self):
        if isinstance(self.flush_delay_ms, bool) or not isinstance(
            self.flush_delay_ms, (int, float)
        ):
            raise ConfigError(
                f"flush_delay_ms must be a number, got {self.flush_delay_ms!r}"
            )
        if not math.isfinite(self.flush_delay_ms) or self.flush_delay_ms < 0:
            raise ConfigError(
                f"flush_delay_ms must be a finite value >= 0, got {self.flush_delay_ms}"
            )

        if not isinstance(self.mode, AggregationMode):
            try:
                mode = AggregationMode(str(self.mode).lower())
            except ValueError:
                valid = ", ".join(m.value for m in AggregationMode)
                raise ConfigError(
                    f"Unknown aggregation mode {self.mode!r} (expected one of: {valid})"
                ) from None
            # Frozen dataclass: bypass __setattr__ to store the coerced value
            object.__setattr__(self, "mode", mode)

    @property
    def flush_delay_seconds(self) -> float:
        return self.flush_delay_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AggregatorConfig":
        """Build a config from environment variables, defaulting unset values."""
        if environ is None:
            environ = os.environ

        raw_delay = environ.get(FLUSH_DELAY_ENV)
        if raw_delay is None or raw_delay.strip() == "":
            delay: float = DEFAULT_FLUSH_DELAY_MS
        else:
            try:
                delay = float(raw_delay)
            except ValueError:
                raise ConfigError(
                    f"{FLUSH_DELAY_ENV} must be a number, got {raw_delay!r}"
                ) from None

        raw_mode = environ.get(MODE_ENV)
        mode = raw_mode.strip() if raw_mode and raw_mode.strip() else DEFAULT_MODE

        return cls(flush_delay_ms=delay, mode=mode)
