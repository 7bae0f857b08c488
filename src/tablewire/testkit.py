from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .codec import encode_item
from .mocks import ANY, FakeDynamoDBClient, InMemoryDynamoDBClient, client_error


def make_items(count: int, *, hash_key: str = "id", prefix: str = "item") -> list[dict[str, Any]]:
    if count < 0:
        raise ValueError("count must be >= 0")
    return [{hash_key: f"{prefix}-{i:04d}", "n": i} for i in range(count)]


def seed(client: InMemoryDynamoDBClient, items: Iterable[Mapping[str, Any]]) -> None:
    for item in items:
        client.put_item(TableName=client.table_name, Item=encode_item(item))


__all__ = [
    "ANY",
    "FakeDynamoDBClient",
    "InMemoryDynamoDBClient",
    "client_error",
    "make_items",
    "seed",
]
