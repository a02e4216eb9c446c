"""
Reduction strategies for batches of data items.

Two aggregation shapes are supported per field:

- positional: one slot per item, in submission order, with ``MISSING`` where
  an item does not define the field
- frequency: counts of each distinct canonical string form of the field's
  values, over the items that define it

Strategies register themselves by ``AggregationMode`` through
``AutoRegisterMeta``; ``get_reducer`` resolves a mode to an instance.
"""

from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from fieldagg.core.contracts import ReducerABC
from fieldagg.registry import AutoRegisterMeta

DataItem = Mapping[str, Any]
AggregatedResult = dict[str, Any]
ReduceFn = Callable[[Sequence[DataItem]], AggregatedResult]


class _MissingType(Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _MissingType.MISSING
"""Placeholder for an item that lacks a field in positional output."""


class AggregationMode(Enum):
    """Selectable per-field aggregation shape."""

    POSITIONAL = "positional"
    FREQUENCY = "frequency"


def stringify(value: Any) -> str:
    """
    Canonical string form used as a frequency-mode key.

    Rules:
        str            -> unchanged
        bool           -> "true" / "false"
        None           -> "null"
        int            -> decimal digits
        float          -> integral values as ints (2.0 -> "2"), "NaN",
                          "Infinity", "-Infinity", otherwise repr()
        anything else  -> compact JSON with sorted keys, or str() when the
                          value is not JSON serializable; values nested
                          too deeply for either give "<type: nested too deeply>"

    So ``2``, ``2.0`` and ``"2"`` all map to ``"2"``, and ``True`` maps to
    the same key as ``"true"``.
    """
    if isinstance(value, str):
        return value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError, RecursionError):
        pass
    try:
        return str(value)
    except RecursionError:
        return f"<{type(value).__name__}: nested too deeply>"


def collect_fields(items: Sequence[DataItem]) -> list[str]:
    """Union of field names across ``items`` in order of first appearance."""
    seen: dict[str, None] = {}
    for item in items:
        for key in item:
            seen.setdefault(key, None)
    return list(seen)


class ReducerBase(ReducerABC, metaclass=AutoRegisterMeta):
    """
    Base class for registered reduction strategies.

    Subclasses set ``_mode`` and are registered automatically:

        class PositionalReducer(ReducerBase):
            _mode = AggregationMode.POSITIONAL
    """

    __registry_key__ = "_mode"
    _mode: AggregationMode | None = None

    @property
    def mode(self) -> AggregationMode | None:
        return self._mode

    def __call__(self, items: Sequence[DataItem]) -> AggregatedResult:
        return self.reduce(items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PositionalReducer(ReducerBase):
    """One list per field with an entry for every item, in order."""

    _mode = AggregationMode.POSITIONAL

    def reduce(self, items: Sequence[DataItem]) -> AggregatedResult:
        if not items:
            return {}
        return {
            field: [item.get(field, MISSING) for item in items]
            for field in collect_fields(items)
        }


class FrequencyReducer(ReducerBase):
    """One ``{stringified value: count}`` mapping per field."""

    _mode = AggregationMode.FREQUENCY

    def reduce(self, items: Sequence[DataItem]) -> AggregatedResult:
        if not items:
            return {}
        aggregated: AggregatedResult = {}
        for field in collect_fields(items):
            counts: dict[str, int] = {}
            for item in items:
                if field not in item:
                    continue
                key = stringify(item[field])
                counts[key] = counts.get(key, 0) + 1
            aggregated[field] = counts
        return aggregated


def available_modes() -> list[AggregationMode]:
    """Modes with a registered strategy."""
    return list(ReducerBase.__registry__)


def get_reducer(mode: AggregationMode | str) -> ReducerBase:
    """Instantiate the strategy registered for ``mode``.

    Raises:
        ValueError: if ``mode`` names no registered strategy.
    """
    if not isinstance(mode, AggregationMode):
        mode = AggregationMode(mode)
    try:
        reducer_cls = ReducerBase.__registry__[mode]
    except KeyError:
        raise ValueError(f"No reducer registered for mode '{mode.value}'") from None
    return reducer_cls()


def reduce(
    items: Sequence[DataItem],
    mode: AggregationMode | str = AggregationMode.POSITIONAL,
) -> AggregatedResult:
    """Aggregate ``items`` with the strategy registered for ``mode``."""
    return get_reducer(mode).reduce(items)
