"""Translation of botocore ``ClientError`` into this package's error types.

Callers raise the result ``from`` the original error so the service response
stays reachable through ``__cause__``.
"""

from __future__ import annotations

from botocore.exceptions import ClientError

from .errors import (
    AwsError,
    PreconditionFailedError,
    ResourceNotFoundError,
    TablewireError,
    ValidationError,
)

# code -> (error type, message used when the service sends none)
_KNOWN_CODES: dict[str, tuple[type[TablewireError], str]] = {
    "ConditionalCheckFailedException": (PreconditionFailedError, "conditional check failed"),
    "ValidationException": (ValidationError, "request rejected by the service"),
    "ResourceNotFoundException": (ResourceNotFoundError, "requested resource not found"),
}


def error_details(err: ClientError) -> tuple[str, str]:
    error = err.response.get("Error") or {}
    return str(error.get("Code") or ""), str(error.get("Message") or "")


def error_code(err: ClientError) -> str:
    return error_details(err)[0]


def map_client_error(err: ClientError, *, table_name: str | None = None) -> TablewireError:
    code, message = error_details(err)
    prefix = f"{table_name}: " if table_name else ""

    known = _KNOWN_CODES.get(code)
    if known is not None:
        error_type, fallback = known
        return error_type(prefix + (message or fallback))
    return AwsError(code=code or "UnknownError", message=prefix + (message or str(err)))
