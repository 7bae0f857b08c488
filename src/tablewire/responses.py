"""Typed views over wire responses.

Each response shape has its own frozen dataclass. The decoder is chosen from
the name of the client operation that produced the response, not from the
response's contents.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from .codec import Item, decode_item
from .errors import ValidationError
from .keys import Key, KeySchema, decode_key
from .query import encode_cursor

type ItemOperation = Literal["get_item", "put_item", "update_item", "delete_item"]
type PageOperation = Literal["query", "scan"]

_ITEM_FIELDS: dict[str, str] = {
    "get_item": "Item",
    "put_item": "Attributes",
    "update_item": "Attributes",
    "delete_item": "Attributes",
}


@dataclass(frozen=True)
class ItemResult:
    item: Item
    consumed_capacity: float | None = None

    @property
    def found(self) -> bool:
        return bool(self.item)


@dataclass(frozen=True)
class QueryResult:
    items: list[Item]
    count: int
    scanned_count: int | None = None
    consumed_capacity: float | None = None
    last_evaluated_key: Key | None = None
    cursor: str | None = field(default=None, compare=False)

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> Item:
        return self.items[index]

    @property
    def has_more(self) -> bool:
        return self.last_evaluated_key is not None


def consumed_capacity(resp: Mapping[str, Any]) -> float | None:
    raw = resp.get("ConsumedCapacity")
    if raw is None:
        return None
    entries = raw if isinstance(raw, list) else [raw]

    total: float | None = None
    for entry in entries:
        if not isinstance(entry, Mapping) or entry.get("CapacityUnits") is None:
            continue
        total = (total or 0.0) + float(entry["CapacityUnits"])
    return total


def decode_item_response(operation: ItemOperation, resp: Mapping[str, Any]) -> ItemResult:
    item_field = _ITEM_FIELDS.get(operation)
    if item_field is None:
        raise ValidationError(f"not a single-item operation: {operation}")
    return ItemResult(item=decode_item(resp.get(item_field)), consumed_capacity=consumed_capacity(resp))


def decode_page(operation: PageOperation, resp: Mapping[str, Any], schema: KeySchema) -> QueryResult:
    if operation not in {"query", "scan"}:
        raise ValidationError(f"not a paginated operation: {operation}")

    items = [decode_item(item) for item in resp.get("Items") or []]
    count = resp.get("Count")
    scanned = resp.get("ScannedCount")

    last_wire = resp.get("LastEvaluatedKey")
    last_key = decode_key(last_wire, schema) if last_wire else None

    return QueryResult(
        items=items,
        count=int(count) if count is not None else len(items),
        scanned_count=int(scanned) if scanned is not None else None,
        consumed_capacity=consumed_capacity(resp),
        last_evaluated_key=last_key,
        cursor=encode_cursor(last_key, schema) if last_wire else None,
    )
