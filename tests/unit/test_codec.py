from __future__ import annotations

from decimal import Decimal

import pytest

from tablewire import (
    MalformedWireValueError,
    UnsupportedValueKindError,
    decode_item,
    decode_value,
    encode_item,
    encode_value,
)


@pytest.mark.parametrize(
    ("value", "wire"),
    [
        ("abc", {"S": "abc"}),
        ("", {"S": ""}),
        (42, {"N": "42"}),
        (-7, {"N": "-7"}),
        (Decimal("10.50"), {"N": "10.50"}),
        (1.5, {"N": "1.5"}),
        (0.1, {"N": "0.1"}),
        ({"b", "a"}, {"SS": ["a", "b"]}),
        (["b", "a", "b"], {"SS": ["a", "b"]}),
        (frozenset({3, Decimal("1.5")}), {"NS": ["1.5", "3"]}),
        ((Decimal("2.50"), 1), {"NS": ["1", "2.50"]}),
        ([Decimal("1.0"), 1, 2], {"NS": ["1.0", "2"]}),
    ],
)
def test_encode_value(value: object, wire: dict) -> None:
    assert encode_value(value) == wire


@pytest.mark.parametrize(
    "value",
    [
        set(),
        [],
        (),
        True,
        None,
        b"bytes",
        {"nested": 1},
        ["a", 1],
        {1, "a"},
        [True, False],
        float("nan"),
        float("inf"),
        Decimal("Infinity"),
        Decimal("-Infinity"),
        [Decimal("NaN")],
        10**40 + 1,
        object(),
    ],
)
def test_encode_value_rejects_unsupported_kinds(value: object) -> None:
    with pytest.raises(UnsupportedValueKindError) as excinfo:
        encode_value(value)
    assert excinfo.value.value is value


def test_decode_value_precedence_and_types() -> None:
    assert decode_value({"S": "x"}) == "x"
    assert decode_value({"S": "x", "N": "1"}) == "x"
    assert decode_value({"N": "1", "NS": ["2"]}) == Decimal("1")
    assert decode_value({"NS": ["1", "2.5"]}) == {Decimal("1"), Decimal("2.5")}
    assert decode_value({"SS": ["a", "b"]}) == {"a", "b"}


def test_number_text_survives_round_trip() -> None:
    decoded = decode_value(encode_value(Decimal("10.50")))
    assert str(decoded) == "10.50"
    assert decoded == Decimal("10.50")

    decoded_set = decode_value(encode_value({Decimal("1.10"), Decimal("2")}))
    assert sorted(str(v) for v in decoded_set) == ["1.10", "2"]


@pytest.mark.parametrize(
    "value",
    ["hello", "", Decimal("123.4500"), 7, {"x", "y"}, {Decimal("0.001"), Decimal("5")}],
)
def test_round_trip(value: object) -> None:
    assert decode_value(encode_value(value)) == value


@pytest.mark.parametrize(
    "wire",
    [
        {},
        {"B": b"x"},
        {"BOOL": True},
        "not-a-map",
        None,
        {"S": 1},
        {"N": 1},
        {"N": "not-a-number"},
        {"SS": "a"},
        {"NS": ["1", 2]},
        {"N": "NaN"},
        {"N": "Infinity"},
        {"N": "-Infinity"},
        {"N": " 1 "},
        {"N": ""},
        {"N": "1" + "0" * 40 + "1"},
        {"NS": []},
        {"SS": []},
        {"NS": ["1", "NaN"]},
        {"NS": [" 2"]},
    ],
)
def test_decode_value_rejects_malformed(wire: object) -> None:
    with pytest.raises(MalformedWireValueError):
        decode_value(wire)


def test_item_round_trip() -> None:
    item = {"id": "abc", "score": 42}
    wire = encode_item(item)
    assert wire == {"id": {"S": "abc"}, "score": {"N": "42"}}
    assert decode_item(wire) == item


def test_decode_item_of_missing_item_is_empty() -> None:
    assert decode_item(None) == {}
    assert decode_item({}) == {}


def test_encode_item_requires_mapping() -> None:
    with pytest.raises(UnsupportedValueKindError):
        encode_item(["not", "a", "map"])  # type: ignore[arg-type]

    with pytest.raises(UnsupportedValueKindError):
        encode_item({"id": "a", "tags": set()})
