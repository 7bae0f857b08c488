from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .codec import encode_value
from .errors import ValidationError

_OPERATORS = {">": "GT", ">=": "GE", "<": "LT", "<=": "LE", "=": "EQ"}

UPDATE_ACTIONS = frozenset({"PUT", "ADD", "DELETE"})
RETURN_VALUES = frozenset({"NONE", "ALL_OLD", "UPDATED_OLD", "ALL_NEW", "UPDATED_NEW"})


class _Expectation:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


EXISTS: Any = _Expectation("EXISTS")
NOT_EXISTS: Any = _Expectation("NOT_EXISTS")


def _operator_name(op: Any) -> str:
    name = str(op).strip()
    if name.startswith(":"):
        name = name[1:]
    return name


def normalize_operator(op: Any) -> str:
    """Map a symbolic comparator to its wire name.

    Names outside the symbolic set are upper-cased and passed through
    unchecked, so ``"between"`` becomes ``"BETWEEN"``.
    """
    name = _operator_name(op)
    return _OPERATORS.get(name, name.upper())


def encode_condition(op: Any, *values: Any) -> dict[str, Any]:
    return {
        "ComparisonOperator": normalize_operator(op),
        "AttributeValueList": [encode_value(v) for v in values if v is not None],
    }


def encode_expectation(value: Any) -> dict[str, Any]:
    if value is EXISTS:
        return {"ComparisonOperator": "NOT_NULL"}
    if value is NOT_EXISTS:
        return {"Exists": False}
    return {"Value": encode_value(value), "Exists": True}


def encode_expectations(expected: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not expected:
        return None
    return {str(name): encode_expectation(value) for name, value in expected.items()}


@dataclass(frozen=True)
class UpdateAction:
    action: str
    value: Any = None

    @staticmethod
    def put(value: Any) -> UpdateAction:
        return UpdateAction(action="PUT", value=value)

    @staticmethod
    def add(value: Any) -> UpdateAction:
        return UpdateAction(action="ADD", value=value)

    @staticmethod
    def delete(value: Any = None) -> UpdateAction:
        return UpdateAction(action="DELETE", value=value)


def _as_update_action(update: Any) -> UpdateAction:
    if isinstance(update, UpdateAction):
        return update
    if isinstance(update, (tuple, list)) and len(update) in {1, 2}:
        return UpdateAction(action=update[0], value=update[1] if len(update) == 2 else None)
    raise ValidationError(f"update must be an UpdateAction or an (action, value) pair: {update!r}")


def encode_update(update: Any) -> dict[str, Any]:
    action = _as_update_action(update)
    name = normalize_operator(action.action)
    if name not in UPDATE_ACTIONS:
        raise ValidationError(f"unsupported update action: {action.action}")

    if action.value is None:
        if name != "DELETE":
            raise ValidationError(f"{name} requires a value")
        return {"Action": name}
    return {"Action": name, "Value": encode_value(action.value)}


def encode_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    return {str(name): encode_update(update) for name, update in updates.items()}


def normalize_return_values(return_values: str | None) -> str | None:
    if return_values is None:
        return None
    name = _operator_name(return_values).upper().replace("-", "_")
    if name not in RETURN_VALUES:
        raise ValidationError(f"unsupported return_values: {return_values}")
    return name
