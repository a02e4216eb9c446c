from __future__ import annotations

import pytest

from fieldagg.reducers import (
    MISSING,
    AggregationMode,
    FrequencyReducer,
    PositionalReducer,
    ReducerBase,
    available_modes,
    collect_fields,
    get_reducer,
    reduce,
    stringify,
)

BATCHES = [
    [{"input": "a"}],
    [{"input": "a", "ok": True}, {"input": "b"}, {"ok": False, "n": 3}],
    [{"x": 1}, {}, {"x": 1}, {"y": None}, {"x": "1", "y": 2.5}],
]


def test_positional_collects_values_in_submission_order() -> None:
    assert reduce([{"input": "a"}, {"input": "b"}]) == {"input": ["a", "b"]}


def test_positional_marks_missing_fields() -> None:
    result = reduce([{"f1": "x"}, {"f2": "y"}], AggregationMode.POSITIONAL)

    assert result == {"f1": ["x", MISSING], "f2": [MISSING, "y"]}
    assert result["f1"][1] is MISSING


def test_positional_keeps_none_distinct_from_missing() -> None:
    result = reduce([{"a": None}, {"b": 1}])
    assert result["a"] == [None, MISSING]


def test_positional_mixed_records() -> None:
    items = [
        {"input": "firstName", "isValid": True, "isRequired": True},
        {"input": "lastName", "isValid": True, "isRequired": True},
        {"input": "email", "isValid": False, "isRequired": True},
    ]
    assert reduce(items) == {
        "input": ["firstName", "lastName", "email"],
        "isValid": [True, True, False],
        "isRequired": [True, True, True],
    }


@pytest.mark.parametrize("items", BATCHES)
def test_positional_one_slot_per_item(items) -> None:
    result = PositionalReducer().reduce(items)

    for field, values in result.items():
        assert len(values) == len(items)
        for item, value in zip(items, values):
            if field in item:
                assert value == item[field]
            else:
                assert value is MISSING


def test_frequency_counts_stringified_values() -> None:
    result = reduce([{"a": 1}, {"a": 1}, {"a": 2}], AggregationMode.FREQUENCY)
    assert result == {"a": {"1": 2, "2": 1}}


def test_frequency_skips_items_without_field() -> None:
    result = reduce([{"a": "x"}, {"b": "y"}, {"a": "x"}], "frequency")
    assert result == {"a": {"x": 2}, "b": {"y": 1}}


def test_frequency_number_and_string_collide() -> None:
    result = reduce([{"a": 2}, {"a": "2"}, {"a": 2.0}], AggregationMode.FREQUENCY)
    assert result == {"a": {"2": 3}}


@pytest.mark.parametrize("items", BATCHES)
def test_frequency_counts_sum_to_defining_items(items) -> None:
    result = FrequencyReducer().reduce(items)

    for field, counts in result.items():
        assert sum(counts.values()) == sum(1 for item in items if field in item)


@pytest.mark.parametrize("mode", list(AggregationMode))
def test_empty_batch_reduces_to_empty_mapping(mode) -> None:
    assert reduce([], mode) == {}


def test_collect_fields_keeps_first_appearance_order() -> None:
    assert collect_fields([{"b": 1, "a": 2}, {"c": 3, "a": 4}]) == ["b", "a", "c"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2", "2"),
        (2, "2"),
        (2.0, "2"),
        (-0.5, "-0.5"),
        (True, "true"),
        (False, "false"),
        (None, "null"),
        (float("nan"), "NaN"),
        (float("inf"), "Infinity"),
        (float("-inf"), "-Infinity"),
        ([1, "a"], '[1,"a"]'),
        ({"b": 1, "a": True}, '{"a":true,"b":1}'),
    ],
)
def test_stringify_canonical_forms(value, expected) -> None:
    assert stringify(value) == expected


def test_stringify_encodes_unknown_objects_as_json_strings() -> None:
    class Token:
        def __str__(self) -> str:
            return "token"

    assert stringify(Token()) == '"token"'


def test_stringify_falls_back_to_str_for_unsortable_keys() -> None:
    value = {1: "a", "b": 2}
    assert stringify(value) == str(value)


def test_stringify_tolerates_deeply_nested_values() -> None:
    nested: list = []
    for _ in range(5000):
        nested = [nested]

    key = stringify(nested)

    assert isinstance(key, str)
    assert stringify(nested) == key
    assert reduce([{"a": nested}, {"a": nested}], "frequency") == {"a": {key: 2}}


def test_missing_marker_is_falsy_and_named() -> None:
    assert not MISSING
    assert repr(MISSING) == "MISSING"


def test_reducers_register_by_mode() -> None:
    assert ReducerBase.__registry__[AggregationMode.POSITIONAL] is PositionalReducer
    assert ReducerBase.__registry__[AggregationMode.FREQUENCY] is FrequencyReducer
    assert set(available_modes()) >= set(AggregationMode)


def test_get_reducer_accepts_mode_values() -> None:
    assert isinstance(get_reducer("frequency"), FrequencyReducer)
    assert isinstance(get_reducer(AggregationMode.POSITIONAL), PositionalReducer)
    assert get_reducer("positional").mode is AggregationMode.POSITIONAL


def test_get_reducer_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        get_reducer("median")


def test_reducer_instances_are_callable() -> None:
    assert PositionalReducer()([{"a": 1}]) == {"a": [1]}
