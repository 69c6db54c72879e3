"""
Error hierarchy surfaced by connectors, pools, and record binders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Sequence

if TYPE_CHECKING:
    from .core.record import RecordMap
    from .core.table import Column


class DatabaseError(RuntimeError):
    """
    Base error for database failures. ``code`` carries the backend's error
    code (SQLSTATE for PostgreSQL, result-code name for SQLite) when known.
    """

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        super().__init__(message if message is not None else "Unknown database error.")
        self.code = code


class DataNotFoundError(DatabaseError):
    """Raised when a statement expected to produce data produced none."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Data does not exist.")


class ConfigurationError(DatabaseError):
    """Raised when settings or connection parameters are invalid."""


class RecordConflictError(DatabaseError):
    """
    Raised when stored rows diverged from the rows bound for editing.
    """

    def __init__(self, conflict_records: Sequence["RecordMap"], message: str | None = None) -> None:
        super().__init__(message or "Database records are in conflict.")
        self.conflict_records: list["RecordMap"] = list(conflict_records)


class RecordMapValidationError(Exception):
    """
    Validation failure for one record, mapping column names to messages.
    """

    def __init__(self, record: "RecordMap", errors: Mapping[Any, str]) -> None:
        self.record = record
        self.errors: Dict[str, str] = {_column_key(column): message for column, message in errors.items()}
        super().__init__(self._format_message())

    @property
    def columns(self) -> list[str]:
        return list(self.errors)

    def get_message(self, column: "Column | str") -> str:
        return self.errors.get(_column_key(column), "")

    def _format_message(self) -> str:
        segments = [f"{column}: {message}" for column, message in self.errors.items()]
        return "Record validation failed: " + "; ".join(segments)


def _column_key(column: Any) -> str:
    return getattr(column, "physical_name", None) or str(column)
