"""Redaction of credentials in logged bind parameters and row data."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

REDACTED_VALUE = "***"

_SENSITIVE_TOKENS = (
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "private_key",
    "bearer",
    "authorization",
)


def _compact(value: str) -> str:
    return "".join(ch for ch in value if ch.isalnum())


def is_sensitive_column(column: str) -> bool:
    normalized = column.lower()
    compact = _compact(normalized)
    return any(token in normalized or _compact(token) in compact for token in _SENSITIVE_TOKENS)


def is_sensitive_text(value: str) -> bool:
    normalized = value.lower()
    return any(token in normalized for token in _SENSITIVE_TOKENS)


def redact_value(value: Any) -> Any:
    if isinstance(value, bytes):
        # Binary payloads are summarized, never logged verbatim.
        return f"<{len(value)} bytes>"
    if isinstance(value, str) and is_sensitive_text(value):
        return REDACTED_VALUE
    return value


def redact_params(params: Iterable[Any]) -> list[Any]:
    return [redact_value(value) for value in params]


def redact_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """
    Copy a row for logging, masking columns whose names look like credentials.
    """
    return {
        column: REDACTED_VALUE if is_sensitive_column(str(column)) else redact_value(value)
        for column, value in record.items()
    }
