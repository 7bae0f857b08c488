from __future__ import annotations

from collections import deque
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from botocore.exceptions import ClientError

from .codec import decode_value


class _Wildcard:
    def __repr__(self) -> str:  # pragma: no cover
        return "ANY"


ANY: Any = _Wildcard()

_OPERATION_NAMES = {
    "get_item": "GetItem",
    "put_item": "PutItem",
    "update_item": "UpdateItem",
    "delete_item": "DeleteItem",
    "query": "Query",
    "scan": "Scan",
    "batch_write_item": "BatchWriteItem",
}

type RequestCheck = Mapping[str, Any] | Callable[[Mapping[str, Any]], None]


def client_error(method: str, code: str, message: str = "") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message or code}},
        _OPERATION_NAMES.get(method, method),
    )


def _mismatch(want: Any, got: Any, path: str) -> str | None:
    """Describe the first place ``got`` differs from ``want``, or return None.

    Mappings match when every wanted key is present and matches, so requests
    may carry extra parameters. Lists must match element by element.
    """
    if want is ANY:
        return None

    if isinstance(want, Mapping):
        if not isinstance(got, Mapping):
            return f"{path}: wanted a mapping, got {got!r}"
        for key, sub in want.items():
            if key not in got:
                return f"{path}.{key}: missing"
            problem = _mismatch(sub, got[key], f"{path}.{key}")
            if problem:
                return problem
        return None

    if isinstance(want, list):
        if not isinstance(got, list) or len(got) != len(want):
            return f"{path}: wanted {len(want)} element(s), got {got!r}"
        for i, (sub, item) in enumerate(zip(want, got, strict=True)):
            problem = _mismatch(sub, item, f"{path}[{i}]")
            if problem:
                return problem
        return None

    return None if want == got else f"{path}: wanted {want!r}, got {got!r}"


@dataclass(frozen=True)
class ScriptedCall:
    operation: str
    check: RequestCheck | None = None
    response: Mapping[str, Any] | None = None
    error: Exception | None = None

    def verify(self, request: Mapping[str, Any]) -> None:
        if self.check is None:
            return
        if callable(self.check):
            self.check(request)
            return
        problem = _mismatch(self.check, request, self.operation)
        if problem:
            raise AssertionError(problem)


def _scripted(operation: str) -> Callable[..., Mapping[str, Any]]:
    def call(self: FakeDynamoDBClient, **request: Any) -> Mapping[str, Any]:
        return self._dispatch(operation, request)

    call.__name__ = operation
    return call


class FakeDynamoDBClient:
    """Scripted client: each call must match the next expectation in order."""

    def __init__(self) -> None:
        self._script: deque[ScriptedCall] = deque()
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def expect(
        self,
        method: str,
        expected: RequestCheck | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
        error_code: str | None = None,
    ) -> None:
        if error is None and error_code is not None:
            error = client_error(method, error_code)
        self._script.append(ScriptedCall(operation=method, check=expected, response=response, error=error))

    def assert_no_pending(self) -> None:
        if self._script:
            waiting = ", ".join(call.operation for call in self._script)
            raise AssertionError(f"{len(self._script)} scripted call(s) still pending: {waiting}")

    def _dispatch(self, operation: str, request: dict[str, Any]) -> Mapping[str, Any]:
        self.calls.append((operation, dict(request)))
        if not self._script:
            raise AssertionError(f"unexpected call: {operation}")

        call = self._script.popleft()
        if call.operation != operation:
            raise AssertionError(f"expected {call.operation}, got {operation}")
        call.verify(request)

        if call.error is not None:
            raise call.error
        return dict(call.response or {})

    get_item = _scripted("get_item")
    put_item = _scripted("put_item")
    update_item = _scripted("update_item")
    delete_item = _scripted("delete_item")
    query = _scripted("query")
    scan = _scripted("scan")
    batch_write_item = _scripted("batch_write_item")

    def close(self) -> None:
        self.closed = True


def _plain(av: Mapping[str, Any]) -> Any:
    value = decode_value(av)
    return frozenset(value) if isinstance(value, set) else value


def _compare(op: str, actual: Mapping[str, Any] | None, operands: Sequence[Mapping[str, Any]]) -> bool:
    if op == "NOT_NULL":
        return actual is not None
    if op == "NULL":
        return actual is None
    if actual is None:
        return False

    value = _plain(actual)
    args = [_plain(av) for av in operands]
    try:
        if op == "EQ":
            return value == args[0]
        if op == "NE":
            return value != args[0]
        if op == "LT":
            return value < args[0]
        if op == "LE":
            return value <= args[0]
        if op == "GT":
            return value > args[0]
        if op == "GE":
            return value >= args[0]
        if op == "BETWEEN":
            return args[0] <= value <= args[1]
        if op == "BEGINS_WITH":
            return isinstance(value, str) and value.startswith(args[0])
        if op == "CONTAINS":
            return args[0] in value
    except TypeError:
        return False
    raise ValueError(f"unsupported comparison operator: {op}")


class InMemoryDynamoDBClient:
    """A single-table stand-in for the DynamoDB low-level client.

    It understands the legacy condition parameters (``Expected``,
    ``AttributeUpdates``, ``KeyConditions``, ``ScanFilter``). Batch writes can
    be told to leave requests unprocessed through ``unprocessed_plan``: each
    call pops the next count and leaves that many trailing requests unapplied.
    """

    def __init__(self, table_name: str, hash_key: str, range_key: str | None = None) -> None:
        self.table_name = table_name
        self.hash_key = hash_key
        self.range_key = range_key
        self.items: dict[tuple[Any, ...], dict[str, Any]] = {}
        self.unprocessed_plan: list[int] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _key_names(self) -> tuple[str, ...]:
        return (self.hash_key,) if self.range_key is None else (self.hash_key, self.range_key)

    def _check_table(self, method: str, name: str) -> None:
        if name != self.table_name:
            raise client_error(method, "ResourceNotFoundException", f"table not found: {name}")

    def _identity(self, method: str, wire: Mapping[str, Any]) -> tuple[Any, ...]:
        try:
            return tuple(_plain(wire[name]) for name in self._key_names())
        except KeyError as err:
            raise client_error(method, "ValidationException", f"missing key attribute: {err}") from err

    def _capacity(self, req: Mapping[str, Any]) -> dict[str, Any]:
        if req.get("ReturnConsumedCapacity") in {"TOTAL", "INDEXES"}:
            return {"ConsumedCapacity": {"TableName": self.table_name, "CapacityUnits": 1.0}}
        return {}

    def _check_expected(self, method: str, current: Mapping[str, Any] | None, expected: Mapping[str, Any]) -> None:
        for name, entry in (expected or {}).items():
            actual = (current or {}).get(name)
            if "ComparisonOperator" in entry:
                ok = _compare(entry["ComparisonOperator"], actual, entry.get("AttributeValueList") or [])
            elif entry.get("Exists") is False:
                ok = actual is None
            else:
                ok = actual is not None and _plain(actual) == _plain(entry["Value"])
            if not ok:
                raise client_error(method, "ConditionalCheckFailedException", "The conditional request failed")

    def _project(self, item: Mapping[str, Any], names: Sequence[str] | None) -> dict[str, Any]:
        if not names:
            return dict(item)
        return {k: v for k, v in item.items() if k in names}

    def _wire_key(self, item: Mapping[str, Any]) -> dict[str, Any]:
        return {name: item[name] for name in self._key_names()}

    def get_item(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("get_item", dict(req)))
        self._check_table("get_item", req["TableName"])
        item = self.items.get(self._identity("get_item", req["Key"]))
        out = self._capacity(req)
        if item is not None:
            out["Item"] = self._project(item, req.get("AttributesToGet"))
        return out

    def put_item(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("put_item", dict(req)))
        self._check_table("put_item", req["TableName"])
        identity = self._identity("put_item", req["Item"])
        old = self.items.get(identity)
        self._check_expected("put_item", old, req.get("Expected") or {})

        self.items[identity] = dict(req["Item"])
        out = self._capacity(req)
        if req.get("ReturnValues") == "ALL_OLD" and old is not None:
            out["Attributes"] = old
        return out

    def delete_item(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("delete_item", dict(req)))
        self._check_table("delete_item", req["TableName"])
        identity = self._identity("delete_item", req["Key"])
        old = self.items.get(identity)
        self._check_expected("delete_item", old, req.get("Expected") or {})

        self.items.pop(identity, None)
        out = self._capacity(req)
        if req.get("ReturnValues") == "ALL_OLD" and old is not None:
            out["Attributes"] = old
        return out

    def update_item(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("update_item", dict(req)))
        self._check_table("update_item", req["TableName"])
        identity = self._identity("update_item", req["Key"])
        old = self.items.get(identity)
        self._check_expected("update_item", old, req.get("Expected") or {})

        new = dict(old) if old is not None else dict(req["Key"])
        updated: set[str] = set()
        for name, update in (req.get("AttributeUpdates") or {}).items():
            new_av = self._apply_update(new.get(name), update)
            updated.add(name)
            if new_av is None:
                new.pop(name, None)
            else:
                new[name] = new_av
        self.items[identity] = new

        out = self._capacity(req)
        return_values = req.get("ReturnValues")
        if return_values == "ALL_NEW":
            out["Attributes"] = new
        elif return_values == "ALL_OLD" and old is not None:
            out["Attributes"] = old
        elif return_values == "UPDATED_NEW":
            out["Attributes"] = {k: v for k, v in new.items() if k in updated}
        elif return_values == "UPDATED_OLD" and old is not None:
            out["Attributes"] = {k: v for k, v in old.items() if k in updated}
        return out

    def _apply_update(self, current: Mapping[str, Any] | None, update: Mapping[str, Any]) -> Any:
        action = update.get("Action", "PUT")
        value = update.get("Value")

        if action == "PUT":
            return value
        if action == "ADD":
            if current is None:
                return value
            if "N" in value:
                return {"N": str(Decimal(current["N"]) + Decimal(value["N"]))}
            kind = next(iter(value))
            return {kind: list(dict.fromkeys([*current[kind], *value[kind]]))}
        if action == "DELETE":
            if value is None or current is None:
                return None
            kind = next(iter(value))
            remaining = [v for v in current[kind] if v not in value[kind]]
            return {kind: remaining} if remaining else None
        raise client_error("update_item", "ValidationException", f"unknown action: {action}")

    def _sorted_items(self, *, reverse: bool = False) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
        # key attributes keep one type per table, so identities compare directly
        return sorted(self.items.items(), key=lambda entry: entry[0], reverse=reverse)

    def _page(
        self,
        method: str,
        req: Mapping[str, Any],
        candidates: list[tuple[tuple[Any, ...], dict[str, Any]]],
        matches: Callable[[Mapping[str, Any]], bool],
    ) -> Mapping[str, Any]:
        start = req.get("ExclusiveStartKey")
        if start is not None:
            start_identity = self._identity(method, start)
            positions = [i for i, (identity, _) in enumerate(candidates) if identity == start_identity]
            candidates = candidates[positions[0] + 1 :] if positions else []

        limit = req.get("Limit")
        evaluated = candidates[:limit] if limit else candidates
        selected = [item for _, item in evaluated if matches(item)]

        out: dict[str, Any] = {
            **self._capacity(req),
            "Count": len(selected),
            "ScannedCount": len(evaluated),
        }
        if req.get("Select") != "COUNT":
            out["Items"] = [self._project(item, req.get("AttributesToGet")) for item in selected]
        if limit and len(candidates) > limit:
            out["LastEvaluatedKey"] = self._wire_key(evaluated[-1][1])
        return out

    def query(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("query", dict(req)))
        self._check_table("query", req["TableName"])
        conditions = req.get("KeyConditions") or {}
        if self.hash_key not in conditions:
            raise client_error("query", "ValidationException", "query requires a hash key condition")

        def in_range(item: Mapping[str, Any]) -> bool:
            return all(
                _compare(cond["ComparisonOperator"], item.get(name), cond.get("AttributeValueList") or [])
                for name, cond in conditions.items()
            )

        ordered = self._sorted_items(reverse=req.get("ScanIndexForward") is False)
        candidates = [(identity, item) for identity, item in ordered if in_range(item)]
        return self._page("query", req, candidates, lambda _: True)

    def scan(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("scan", dict(req)))
        self._check_table("scan", req["TableName"])
        scan_filter = req.get("ScanFilter") or {}

        def passes(item: Mapping[str, Any]) -> bool:
            return all(
                _compare(cond["ComparisonOperator"], item.get(name), cond.get("AttributeValueList") or [])
                for name, cond in scan_filter.items()
            )

        return self._page("scan", req, self._sorted_items(), passes)

    def batch_write_item(self, **req: Any) -> Mapping[str, Any]:
        self.calls.append(("batch_write_item", dict(req)))
        request_items = req["RequestItems"]
        unprocessed: dict[str, list[dict[str, Any]]] = {}

        for table_name, requests in request_items.items():
            self._check_table("batch_write_item", table_name)
            if len(requests) > 25:
                raise client_error("batch_write_item", "ValidationException", "too many items in batch")

            leave = self.unprocessed_plan.pop(0) if self.unprocessed_plan else 0
            leave = min(leave, len(requests))
            applied, residue = requests[: len(requests) - leave], requests[len(requests) - leave :]
            for request in applied:
                item = request["PutRequest"]["Item"]
                self.items[self._identity("batch_write_item", item)] = dict(item)
            if residue:
                unprocessed[table_name] = list(residue)

        out: dict[str, Any] = {"UnprocessedItems": unprocessed}
        if req.get("ReturnConsumedCapacity") in {"TOTAL", "INDEXES"}:
            out["ConsumedCapacity"] = [
                {"TableName": name, "CapacityUnits": float(len(reqs))} for name, reqs in request_items.items()
            ]
        return out

    def close(self) -> None:
        return None
