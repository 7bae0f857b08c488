from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import ClientError

from .aws_errors import map_client_error as _map_client_error
from .batch import BATCH_WRITE_LIMIT, BatchWriter, BatchWriteResult
from .codec import Item, encode_item
from .conditions import encode_expectations, encode_updates, normalize_return_values
from .errors import ValidationError
from .keys import Key, KeySchema, encode_key
from .query import RETURN_CONSUMED_CAPACITY, build_query_request, build_scan_request
from .responses import ItemResult, QueryResult, decode_item_response, decode_page

if TYPE_CHECKING:
    from .registry import ClientRegistry, Credentials

logger = logging.getLogger(__name__)


class Table:
    """A single DynamoDB table addressed with plain ``dict`` items.

    Keys are a bare hash value or a ``(hash, range)`` tuple, matching the
    table's :class:`KeySchema`.
    """

    def __init__(
        self,
        name: str,
        schema: KeySchema,
        *,
        client: Any | None = None,
        registry: ClientRegistry | None = None,
        credentials: Credentials | None = None,
    ) -> None:
        if not name:
            raise ValueError("table name is required")

        if client is None and registry is not None:
            client = registry.client(credentials)

        self._name = name
        self._schema = schema
        self._client: Any = client if client is not None else boto3.client("dynamodb")

    @property
    def name(self) -> str:
        return self._name

    @property
    def schema(self) -> KeySchema:
        return self._schema

    def _call(self, operation: str, req: dict[str, Any]) -> Mapping[str, Any]:
        logger.debug("%s on %s", operation, self._name)
        try:
            return getattr(self._client, operation)(**req)
        except ClientError as err:
            raise _map_client_error(err, table_name=self._name) from err

    def _write_request(
        self,
        expected: Mapping[str, Any] | None,
        return_values: str | None,
        **fields: Any,
    ) -> dict[str, Any]:
        req: dict[str, Any] = {
            "TableName": self._name,
            **fields,
            "ReturnConsumedCapacity": RETURN_CONSUMED_CAPACITY,
        }
        wire_expected = encode_expectations(expected)
        if wire_expected:
            req["Expected"] = wire_expected
        wire_return = normalize_return_values(return_values)
        if wire_return:
            req["ReturnValues"] = wire_return
        return req

    def get(
        self,
        key: Key,
        *,
        consistent_read: bool = False,
        attributes_to_get: Sequence[str] | None = None,
    ) -> ItemResult:
        req: dict[str, Any] = {
            "TableName": self._name,
            "Key": encode_key(key, self._schema),
            "ConsistentRead": consistent_read,
            "ReturnConsumedCapacity": RETURN_CONSUMED_CAPACITY,
        }
        if attributes_to_get:
            req["AttributesToGet"] = list(attributes_to_get)
        return decode_item_response("get_item", self._call("get_item", req))

    def put(
        self,
        item: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
        return_values: str | None = None,
    ) -> ItemResult:
        wire_item = encode_item(item)
        for name in self._schema.attribute_names:
            if name not in wire_item:
                raise ValidationError(f"item is missing key attribute: {name}")

        req = self._write_request(expected, return_values, Item=wire_item)
        return decode_item_response("put_item", self._call("put_item", req))

    def update(
        self,
        key: Key,
        updates: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
        return_values: str | None = None,
    ) -> ItemResult:
        """Apply per-attribute PUT/ADD/DELETE actions to one item.

        ``updates`` maps attribute name to an :class:`UpdateAction` or an
        ``(action, value)`` pair, e.g. ``{"score": ("add", 1)}``.
        """
        if not updates:
            raise ValidationError("no updates provided")
        for name in updates:
            if name in self._schema.attribute_names:
                raise ValidationError(f"cannot update key attribute: {name}")

        req = self._write_request(
            expected,
            return_values,
            Key=encode_key(key, self._schema),
            AttributeUpdates=encode_updates(updates),
        )
        return decode_item_response("update_item", self._call("update_item", req))

    def delete(
        self,
        key: Key,
        *,
        expected: Mapping[str, Any] | None = None,
        return_values: str | None = None,
    ) -> ItemResult:
        req = self._write_request(expected, return_values, Key=encode_key(key, self._schema))
        return decode_item_response("delete_item", self._call("delete_item", req))

    def batch_write(self, items: Iterable[Mapping[str, Any]]) -> BatchWriteResult:
        return BatchWriter(self._client, self._name, limit=BATCH_WRITE_LIMIT).write(items)

    def query(
        self,
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
    ) -> QueryResult:
        req = build_query_request(
            self._name,
            self._schema,
            hash_value,
            range_clause,
            order=order,
            limit=limit,
            count=count,
            consistent=consistent,
            exclusive_start_key=exclusive_start_key,
            cursor=cursor,
            attributes_to_get=attributes_to_get,
        )
        return decode_page("query", self._call("query", req), self._schema)

    def query_all(
        self,
        hash_value: Any,
        range_clause: Any | None = None,
        *,
        order: str = "asc",
        limit: int | None = None,
        consistent: bool = False,
        exclusive_start_key: Key | None = None,
        attributes_to_get: Sequence[str] | None = None,
    ) -> list[Item]:
        out: list[Item] = []
        start_key = exclusive_start_key

        while True:
            page = self.query(
                hash_value,
                range_clause,
                order=order,
                limit=limit,
                consistent=consistent,
                exclusive_start_key=start_key,
                attributes_to_get=attributes_to_get,
            )
            out.extend(page.items)
            if page.last_evaluated_key is None:
                break
            start_key = page.last_evaluated_key

        return out

    def scan(
        self,
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
    ) -> QueryResult:
        req = build_scan_request(
            self._name,
            self._schema,
            limit=limit,
            count=count,
            consistent=consistent,
            exclusive_start_key=exclusive_start_key,
            cursor=cursor,
            attributes_to_get=attributes_to_get,
            scan_filter=scan_filter,
            segment=segment,
            total_segments=total_segments,
        )
        return decode_page("scan", self._call("scan", req), self._schema)

    def scan_all(
        self,
        *,
        limit: int | None = None,
        consistent: bool = False,
        attributes_to_get: Sequence[str] | None = None,
        scan_filter: Mapping[str, Any] | None = None,
        segment: int | None = None,
        total_segments: int | None = None,
    ) -> list[Item]:
        out: list[Item] = []
        start_key: Key | None = None

        while True:
            page = self.scan(
                limit=limit,
                consistent=consistent,
                exclusive_start_key=start_key,
                attributes_to_get=attributes_to_get,
                scan_filter=scan_filter,
                segment=segment,
                total_segments=total_segments,
            )
            out.extend(page.items)
            if page.last_evaluated_key is None:
                break
            start_key = page.last_evaluated_key

        return out
