"""Grouped batch puts with a single retry of the unprocessed residue.

Items are split into groups of at most 25 puts, the service limit for one
``BatchWriteItem`` call. Groups go out in input order. When a group still has
unprocessed items after its one retry, the remaining groups are not
submitted; their items are reported as skipped so the caller knows exactly
what to resubmit. Writes that succeeded are never rolled back. A service error
raised part way through carries the partial result as ``batch_result``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from botocore.exceptions import ClientError

from .aws_errors import map_client_error
from .codec import Item, decode_item, encode_item
from .errors import BatchPartialFailureError, TablewireError, ValidationError
from .query import RETURN_CONSUMED_CAPACITY
from .responses import consumed_capacity

logger = logging.getLogger(__name__)

BATCH_WRITE_LIMIT = 25


def partition_items[T](items: Sequence[T], size: int = BATCH_WRITE_LIMIT) -> list[list[T]]:
    if size <= 0:
        raise ValueError("size must be > 0")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def put_request(wire_item: Mapping[str, Any]) -> dict[str, Any]:
    return {"PutRequest": {"Item": dict(wire_item)}}


@dataclass
class BatchWriteResult:
    groups: int = 0
    submitted_groups: int = 0
    failed: list[Item] = field(default_factory=list)
    skipped: list[Item] = field(default_factory=list)
    consumed_capacity: float | None = None

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped

    @property
    def unprocessed(self) -> list[Item]:
        return [*self.failed, *self.skipped]

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_failure(self) -> BatchWriteResult:
        if not self.ok:
            raise BatchPartialFailureError(self)
        return self

    def _add_capacity(self, units: float | None) -> None:
        if units is not None:
            self.consumed_capacity = (self.consumed_capacity or 0.0) + units


class BatchWriter:
    def __init__(self, client: Any, table_name: str, *, limit: int = BATCH_WRITE_LIMIT) -> None:
        if not table_name:
            raise ValidationError("table_name is required")
        if not 0 < limit <= BATCH_WRITE_LIMIT:
            raise ValidationError(f"limit must be between 1 and {BATCH_WRITE_LIMIT}")
        self._client = client
        self._table_name = table_name
        self._limit = limit

    def _submit(
        self, requests: Sequence[Mapping[str, Any]], result: BatchWriteResult | None = None
    ) -> list[dict[str, Any]]:
        logger.debug("batch_write_item on %s: %d request(s)", self._table_name, len(requests))
        try:
            resp = self._client.batch_write_item(
                RequestItems={self._table_name: list(requests)},
                ReturnConsumedCapacity=RETURN_CONSUMED_CAPACITY,
            )
        except ClientError as err:
            raise map_client_error(err, table_name=self._table_name) from err

        if result is not None:
            result._add_capacity(consumed_capacity(resp))
        return list(resp.get("UnprocessedItems", {}).get(self._table_name, []) or [])

    def write_group(self, items: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Submit up to one group of puts once and return the unprocessed requests."""
        if len(items) > self._limit:
            raise ValidationError(f"a batch holds at most {self._limit} items (got {len(items)})")
        if not items:
            return []
        return self._submit([put_request(encode_item(item)) for item in items])

    def write(self, items: Iterable[Mapping[str, Any]]) -> BatchWriteResult:
        originals = [dict(item) for item in items]
        requests = [put_request(encode_item(item)) for item in originals]

        item_groups = partition_items(originals, self._limit)
        request_groups = partition_items(requests, self._limit)
        result = BatchWriteResult(groups=len(request_groups))

        for index, (group_items, group_requests) in enumerate(zip(item_groups, request_groups, strict=True)):
            if not result.ok:
                result.skipped.extend(group_items)
                continue

            result.submitted_groups += 1
            in_flight = group_items
            try:
                residue = self._submit(group_requests, result)
                if residue:
                    logger.warning(
                        "batch group %d/%d on %s left %d unprocessed item(s); retrying once",
                        index + 1,
                        result.groups,
                        self._table_name,
                        len(residue),
                    )
                    in_flight = _residue_items(residue)
                    residue = self._submit(residue, result)
            except TablewireError as err:
                result.failed.extend(in_flight)
                for rest in item_groups[index + 1 :]:
                    result.skipped.extend(rest)
                err.batch_result = result
                logger.warning(
                    "batch group %d/%d on %s failed after %d group(s): %s",
                    index + 1,
                    result.groups,
                    self._table_name,
                    result.submitted_groups - 1,
                    err,
                )
                raise

            if residue:
                result.failed.extend(_residue_items(residue))
                logger.warning(
                    "batch group %d/%d on %s still has %d unprocessed item(s); skipping remaining groups",
                    index + 1,
                    result.groups,
                    self._table_name,
                    len(residue),
                )

        return result


def _residue_items(residue: Sequence[Mapping[str, Any]]) -> list[Item]:
    out: list[Item] = []
    for request in residue:
        put = request.get("PutRequest")
        if isinstance(put, Mapping):
            out.append(decode_item(put.get("Item")))
    return out
