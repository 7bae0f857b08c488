from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .codec import AttributeValue, decode_value, encode_value
from .errors import ValidationError

type Key = Any | tuple[Any, Any]


@dataclass(frozen=True)
class KeySchema:
    hash_key: str
    range_key: str | None = None

    def __post_init__(self) -> None:
        if not self.hash_key:
            raise ValidationError("hash_key is required")
        if self.range_key is not None and self.range_key == self.hash_key:
            raise ValidationError("range_key must differ from hash_key")

    @property
    def attribute_names(self) -> tuple[str, ...]:
        if self.range_key is None:
            return (self.hash_key,)
        return (self.hash_key, self.range_key)


def split_key(key: Key) -> tuple[Any, Any | None]:
    """Return ``(hash, range)`` for the accepted key forms.

    A key is either a bare value, ``[hash]``/``(hash,)`` or ``(hash, range)``.
    Sets and frozensets are values, never key pairs.
    """
    if key is None:
        raise ValidationError("key is required")
    if isinstance(key, (tuple, list)):
        if len(key) == 1:
            return key[0], None
        if len(key) == 2:
            return key[0], key[1]
        raise ValidationError(f"key must have one or two parts (got {len(key)})")
    return key, None


def encode_key(key: Key, schema: KeySchema) -> dict[str, AttributeValue]:
    hash_value, range_value = split_key(key)
    if hash_value is None:
        raise ValidationError("hash key value is required")
    if schema.range_key is None and range_value is not None:
        raise ValidationError(f"table key has no range attribute (hash: {schema.hash_key})")
    if schema.range_key is not None and range_value is None:
        raise ValidationError(f"range key value is required: {schema.range_key}")

    wire: dict[str, AttributeValue] = {schema.hash_key: encode_value(hash_value)}
    if schema.range_key is not None:
        wire[schema.range_key] = encode_value(range_value)
    return wire


def decode_key(wire: Mapping[str, Any], schema: KeySchema) -> Key:
    if not isinstance(wire, Mapping) or schema.hash_key not in wire:
        raise ValidationError(f"wire key is missing hash attribute: {schema.hash_key}")

    hash_value = decode_value(wire[schema.hash_key])
    if schema.range_key is None or schema.range_key not in wire:
        return hash_value
    return (hash_value, decode_value(wire[schema.range_key]))
