from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .conditions import encode_condition, normalize_operator
from .errors import MalformedWireValueError, ValidationError
from .keys import Key, KeySchema, decode_key, encode_key

RETURN_CONSUMED_CAPACITY = "TOTAL"


@dataclass(frozen=True)
class RangeCondition:
    op: str
    values: tuple[Any, ...]

    @staticmethod
    def eq(value: Any) -> RangeCondition:
        return RangeCondition(op="=", values=(value,))

    @staticmethod
    def lt(value: Any) -> RangeCondition:
        return RangeCondition(op="<", values=(value,))

    @staticmethod
    def le(value: Any) -> RangeCondition:
        return RangeCondition(op="<=", values=(value,))

    @staticmethod
    def gt(value: Any) -> RangeCondition:
        return RangeCondition(op=">", values=(value,))

    @staticmethod
    def ge(value: Any) -> RangeCondition:
        return RangeCondition(op=">=", values=(value,))

    @staticmethod
    def between(low: Any, high: Any) -> RangeCondition:
        return RangeCondition(op="between", values=(low, high))

    @staticmethod
    def begins_with(prefix: Any) -> RangeCondition:
        return RangeCondition(op="begins_with", values=(prefix,))

    @staticmethod
    def from_clause(clause: Any) -> RangeCondition:
        if isinstance(clause, RangeCondition):
            return clause
        if not isinstance(clause, (tuple, list)) or not 2 <= len(clause) <= 3:
            raise ValidationError("range clause must be (operator, value) or (operator, low, high)")
        op, *values = clause
        return RangeCondition(op=str(op), values=tuple(v for v in values if v is not None))

    def to_wire(self) -> dict[str, Any]:
        if not self.values:
            raise ValidationError(f"range condition {self.op} requires a value")
        if normalize_operator(self.op) == "BETWEEN" and len(self.values) != 2:
            raise ValidationError("BETWEEN requires two values")
        return encode_condition(self.op, *self.values)


def _check_limit(limit: int | None) -> None:
    if limit is None:
        return
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValidationError("limit must be a positive integer")


def _scan_forward(order: str) -> bool:
    normalized = str(order).lstrip(":").lower()
    if normalized not in {"asc", "desc"}:
        raise ValidationError(f"order must be 'asc' or 'desc' (got {order!r})")
    return normalized != "desc"


def resolve_start_key(
    schema: KeySchema,
    exclusive_start_key: Key | None,
    cursor: str | None,
) -> dict[str, Any] | None:
    if exclusive_start_key is not None and cursor is not None:
        raise ValidationError("pass either exclusive_start_key or cursor, not both")
    if cursor is not None:
        return encode_key(decode_cursor(cursor, schema), schema)
    if exclusive_start_key is not None:
        return encode_key(exclusive_start_key, schema)
    return None


def build_query_request(
    table_name: str,
    schema: KeySchema,
    hash_value: Any,
    range_clause: Any | None = None,
    *,
    order: str = "asc",
    limit: int | None = None,
    count: bool = False,
    consistent: bool = False,
    exclusive_start_key: Key | None = None,
    cursor: str | None = None,
    attributes_to_get: Sequence[str] | None = None,
) -> dict[str, Any]:
    if hash_value is None:
        raise ValidationError("hash key value is required")
    _check_limit(limit)

    key_conditions: dict[str, Any] = {schema.hash_key: encode_condition("=", hash_value)}
    if range_clause is not None:
        if schema.range_key is None:
            raise ValidationError("table key has no range attribute to condition on")
        key_conditions[schema.range_key] = RangeCondition.from_clause(range_clause).to_wire()

    req: dict[str, Any] = {
        "TableName": table_name,
        "KeyConditions": key_conditions,
        "ScanIndexForward": _scan_forward(order),
        "ReturnConsumedCapacity": RETURN_CONSUMED_CAPACITY,
    }
    if limit is not None:
        req["Limit"] = limit
    if count:
        req["Select"] = "COUNT"
    if consistent:
        req["ConsistentRead"] = True
    start_key = resolve_start_key(schema, exclusive_start_key, cursor)
    if start_key is not None:
        req["ExclusiveStartKey"] = start_key
    if attributes_to_get and not count:
        req["AttributesToGet"] = list(attributes_to_get)
    return req


def build_scan_filter(scan_filter: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, clause in scan_filter.items():
        if not isinstance(clause, (tuple, list)) or not clause:
            raise ValidationError(f"scan filter for {name} must be (operator, value...)")
        op, *values = clause
        out[str(name)] = encode_condition(op, *values)
    return out


def build_scan_request(
    table_name: str,
    schema: KeySchema,
    *,
    limit: int | None = None,
    count: bool = False,
    consistent: bool = False,
    exclusive_start_key: Key | None = None,
    cursor: str | None = None,
    attributes_to_get: Sequence[str] | None = None,
    scan_filter: Mapping[str, Any] | None = None,
    segment: int | None = None,
    total_segments: int | None = None,
) -> dict[str, Any]:
    _check_limit(limit)

    req: dict[str, Any] = {
        "TableName": table_name,
        "ReturnConsumedCapacity": RETURN_CONSUMED_CAPACITY,
    }
    if limit is not None:
        req["Limit"] = limit
    if count:
        req["Select"] = "COUNT"
    if consistent:
        req["ConsistentRead"] = True
    start_key = resolve_start_key(schema, exclusive_start_key, cursor)
    if start_key is not None:
        req["ExclusiveStartKey"] = start_key
    if attributes_to_get and not count:
        req["AttributesToGet"] = list(attributes_to_get)
    if scan_filter:
        req["ScanFilter"] = build_scan_filter(scan_filter)

    if (segment is None) != (total_segments is None):
        raise ValidationError("segment and total_segments must be provided together")
    if segment is not None and total_segments is not None:
        if segment < 0 or total_segments <= 0 or segment >= total_segments:
            raise ValidationError("invalid segment/total_segments")
        req["Segment"] = segment
        req["TotalSegments"] = total_segments

    return req


def encode_cursor(key: Key | None, schema: KeySchema) -> str:
    if key is None:
        return ""
    wire = encode_key(key, schema)
    last_key = {name: wire[name] for name in sorted(wire)}
    payload = json.dumps({"lastKey": last_key}, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str, schema: KeySchema) -> Key:
    raw = str(cursor or "").strip()
    if not raw:
        raise ValidationError("cursor is empty")

    padding = "=" * (-len(raw) % 4)
    try:
        data = base64.urlsafe_b64decode(raw + padding).decode("utf-8")
        parsed = json.loads(data)
    except (binascii.Error, UnicodeDecodeError, ValueError) as err:
        raise ValidationError("invalid cursor") from err

    if not isinstance(parsed, dict):
        raise ValidationError("cursor must decode to an object")
    last_key = parsed.get("lastKey")
    if not isinstance(last_key, dict) or not last_key:
        raise ValidationError("cursor lastKey is invalid")

    for av in last_key.values():
        if not isinstance(av, dict) or len(av) != 1 or next(iter(av)) not in {"S", "N", "SS", "NS"}:
            raise ValidationError("cursor lastKey holds an unsupported attribute value")

    try:
        key = decode_key(last_key, schema)
    except MalformedWireValueError as err:
        raise ValidationError("cursor lastKey is invalid") from err
    # the key must also be addressable under this schema
    encode_key(key, schema)
    return key
