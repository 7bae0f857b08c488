from __future__ import annotations

import json
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .batch import BATCH_WRITE_LIMIT, BatchWriter, BatchWriteResult, partition_items
from .codec import decode_item, decode_value, encode_item, encode_value
from .conditions import (
    EXISTS,
    NOT_EXISTS,
    UpdateAction,
    encode_expectation,
    encode_expectations,
    normalize_operator,
)
from .errors import (
    AwsError,
    BatchPartialFailureError,
    MalformedWireValueError,
    PreconditionFailedError,
    ResourceNotFoundError,
    TablewireError,
    UnsupportedValueKindError,
    ValidationError,
)
from .keys import KeySchema, decode_key, encode_key
from .query import RangeCondition, decode_cursor, encode_cursor
from .responses import ItemResult, QueryResult

if TYPE_CHECKING:
    from .registry import ClientRegistry, Credentials, create_boto3_config
    from .table import Table


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name == "Table":
        from .table import Table

        return Table
    if name in {"ClientRegistry", "Credentials", "create_boto3_config"}:
        from . import registry

        return getattr(registry, name)
    raise AttributeError(name)


__all__ = [
    "AwsError",
    "BATCH_WRITE_LIMIT",
    "BatchPartialFailureError",
    "BatchWriteResult",
    "BatchWriter",
    "ClientRegistry",
    "Credentials",
    "EXISTS",
    "ItemResult",
    "KeySchema",
    "MalformedWireValueError",
    "NOT_EXISTS",
    "PreconditionFailedError",
    "QueryResult",
    "RangeCondition",
    "ResourceNotFoundError",
    "Table",
    "TablewireError",
    "UnsupportedValueKindError",
    "UpdateAction",
    "ValidationError",
    "__repo_version__",
    "__version__",
    "create_boto3_config",
    "decode_cursor",
    "decode_item",
    "decode_key",
    "decode_value",
    "encode_cursor",
    "encode_expectation",
    "encode_expectations",
    "encode_item",
    "encode_key",
    "encode_value",
    "normalize_operator",
    "partition_items",
]
