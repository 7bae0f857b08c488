"""Conversion between plain Python values and DynamoDB attribute values.

Only the flat value model is supported: strings, numbers, and non-empty
homogeneous sets of either. Numbers travel as exact decimal text, so
``Decimal("10.50")`` comes back as ``Decimal("10.50")`` and not ``10.5``.
Collections are sets on the wire; their elements are emitted sorted.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, DecimalException
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .errors import MalformedWireValueError, UnsupportedValueKindError

type Value = str | int | float | Decimal | set[str] | set[Decimal] | frozenset[Any]
type Item = dict[str, Any]
type AttributeValue = dict[str, Any]

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()

_COLLECTION_TYPES = (set, frozenset, list, tuple)
_WIRE_KINDS = ("S", "N", "NS", "SS")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _as_decimal(original: Any, value: Any) -> Decimal | int:
    number = Decimal(repr(value)) if isinstance(value, float) else value
    if isinstance(number, Decimal) and not number.is_finite():
        raise UnsupportedValueKindError(original, f"number must be finite: {value!r}")
    return number


def _as_set(original: Any) -> set[Any]:
    if not original:
        raise UnsupportedValueKindError(original, "empty collections cannot be encoded")
    if all(isinstance(v, str) for v in original):
        return set(original)
    if all(_is_number(v) for v in original):
        return {_as_decimal(original, v) for v in original}
    raise UnsupportedValueKindError(original, "collection elements must be all strings or all numbers")


def _serializable(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if _is_number(value):
        return _as_decimal(value, value)
    if isinstance(value, _COLLECTION_TYPES):
        return _as_set(value)
    raise UnsupportedValueKindError(value)


def encode_value(value: Any) -> AttributeValue:
    try:
        wire = _serializer.serialize(_serializable(value))
    except (TypeError, DecimalException) as err:
        raise UnsupportedValueKindError(value, f"cannot encode {value!r}: {err}") from err

    if "SS" in wire:
        return {"SS": sorted(wire["SS"])}
    if "NS" in wire:
        return {"NS": sorted(wire["NS"], key=Decimal)}
    return wire


def _check_wire(av: Mapping[str, Any], kind: str) -> None:
    raw = av[kind]
    if kind in {"S", "N"}:
        if not isinstance(raw, str):
            raise MalformedWireValueError(av)
        if kind == "N" and (not raw or raw != raw.strip()):
            raise MalformedWireValueError(av)
        return

    if not isinstance(raw, list) or not raw or not all(isinstance(v, str) for v in raw):
        raise MalformedWireValueError(av)
    if kind == "NS" and any(not v or v != v.strip() for v in raw):
        raise MalformedWireValueError(av)


def _finite(av: Mapping[str, Any], value: Any) -> Any:
    numbers = value if isinstance(value, set) else [value]
    if any(isinstance(n, Decimal) and not n.is_finite() for n in numbers):
        raise MalformedWireValueError(av)
    return value


def decode_value(av: Any) -> Any:
    if not isinstance(av, Mapping):
        raise MalformedWireValueError(av)

    kind = next((k for k in _WIRE_KINDS if k in av), None)
    if kind is None:
        raise MalformedWireValueError(av)
    _check_wire(av, kind)

    try:
        value = _deserializer.deserialize({kind: av[kind]})
    except (TypeError, DecimalException) as err:
        raise MalformedWireValueError(av) from err
    return _finite(av, value)


def encode_item(item: Mapping[str, Any]) -> dict[str, AttributeValue]:
    if not isinstance(item, Mapping):
        raise UnsupportedValueKindError(item, "item must be a mapping of attribute name to value")
    return {str(name): encode_value(value) for name, value in item.items()}


def decode_item(wire: Mapping[str, Any] | None) -> Item:
    if not wire:
        return {}
    return {name: decode_value(av) for name, av in wire.items()}
