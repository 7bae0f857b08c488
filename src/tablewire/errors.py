from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .batch import BatchWriteResult


class TablewireError(Exception):
    # Set on errors raised out of BatchWriter.write: what was written before the failure.
    batch_result: BatchWriteResult | None = None


class ValidationError(TablewireError):
    pass


class UnsupportedValueKindError(ValidationError):
    def __init__(self, value: Any, reason: str | None = None) -> None:
        detail = reason or f"unsupported value type: {type(value).__name__}"
        super().__init__(detail)
        self.value = value


class MalformedWireValueError(TablewireError):
    def __init__(self, wire_value: Any) -> None:
        super().__init__(f"attribute value has no S, N, NS or SS field: {wire_value!r}")
        self.wire_value = wire_value


class PreconditionFailedError(TablewireError):
    pass


class ResourceNotFoundError(TablewireError):
    pass


class BatchPartialFailureError(TablewireError):
    def __init__(self, result: BatchWriteResult) -> None:
        super().__init__(
            f"batch_write: {len(result.failed)} item(s) unprocessed after retry, "
            f"{len(result.skipped)} item(s) skipped"
        )
        self.result = result


class AwsError(TablewireError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
