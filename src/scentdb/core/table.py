"""
Schema descriptors: columns, tables, and column validators.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from .record import RecordMap, column_name


class TableConfigurationError(ValueError):
    """Raised when a table descriptor is inconsistent."""


ColumnValidator = Callable[[Any], None]


class Column:
    """
    Column descriptor carrying the physical name, default, and validators.
    """

    def __init__(
        self,
        physical_name: str,
        *,
        default: Any = None,
        nullable: bool = True,
        primary_key: bool = False,
        validators: Optional[Iterable[ColumnValidator]] = None,
        label: Optional[str] = None,
    ) -> None:
        self.physical_name = physical_name
        self.default = default
        self.nullable = nullable
        self.primary_key = primary_key
        self.validators = list(validators or [])
        self.label = label or physical_name

    def __repr__(self) -> str:
        return f"<Column {self.physical_name}>"

    def __str__(self) -> str:
        return self.physical_name

    def get_default(self) -> Any:
        if callable(self.default):
            return self.default()
        return self.default

    def validate(self, value: Any) -> None:
        if value is None:
            # Primary keys may be assigned by the backend on insert.
            if not self.nullable and not self.primary_key:
                raise ValueError(f"{self.label} cannot be null.")
            return
        for validator in self.validators:
            validator(value)


class Table:
    """
    Table descriptor: physical name, ordered columns, primary key, and the
    optional version and soft-delete column conventions used by binders.
    """

    def __init__(
        self,
        physical_name: str,
        columns: Sequence[Column],
        *,
        version_column: Optional[str] = None,
        soft_delete_column: Optional[str] = None,
    ) -> None:
        self.physical_name = physical_name
        self.columns: dict[str, Column] = {}
        for column in columns:
            if column.physical_name in self.columns:
                raise TableConfigurationError(
                    f"Duplicate column '{column.physical_name}' on table '{physical_name}'"
                )
            self.columns[column.physical_name] = column
        self.primary_key: tuple[str, ...] = tuple(
            column.physical_name for column in columns if column.primary_key
        )
        for name in (version_column, soft_delete_column):
            if name is not None and name not in self.columns:
                raise TableConfigurationError(f"Unknown column '{name}' on table '{physical_name}'")
        self.version_column = version_column
        self.soft_delete_column = soft_delete_column

    def __repr__(self) -> str:
        return f"<Table {self.physical_name} ({', '.join(self.columns)})>"

    def __str__(self) -> str:
        return self.physical_name

    def get_column(self, name: Any) -> Column:
        key = column_name(name)
        try:
            return self.columns[key]
        except KeyError as exc:
            raise KeyError(f"Unknown column '{key}' on table '{self.physical_name}'") from exc

    def get_columns(self) -> list[Column]:
        return list(self.columns.values())

    def create_record(self, values: Optional[Mapping[Any, Any]] = None, *, fetched: bool = False) -> RecordMap:
        """
        Build a record with every column at its default, overlaid with
        ``values``. Keys in ``values`` that are not declared columns are kept.
        """
        data: dict[str, Any] = {name: column.get_default() for name, column in self.columns.items()}
        if values:
            for key, value in values.items():
                data[column_name(key)] = value
        return RecordMap(data, fetched=fetched)


def table_name(table: "Table | str") -> str:
    if isinstance(table, Table):
        return table.physical_name
    return table


# Validators --------------------------------------------------------------


class MinValueValidator:
    def __init__(self, minimum: float, message: str | None = None) -> None:
        self.minimum = minimum
        self.message = message or f"Ensure value is greater than or equal to {minimum}."

    def __call__(self, value: Any) -> None:
        if value < self.minimum:
            raise ValueError(self.message)


class MaxValueValidator:
    def __init__(self, maximum: float, message: str | None = None) -> None:
        self.maximum = maximum
        self.message = message or f"Ensure value is less than or equal to {maximum}."

    def __call__(self, value: Any) -> None:
        if value > self.maximum:
            raise ValueError(self.message)


class MaxLengthValidator:
    def __init__(self, maximum: int, message: str | None = None) -> None:
        self.maximum = maximum
        self.message = message or f"Ensure value has at most {maximum} characters."

    def __call__(self, value: Any) -> None:
        if len(str(value)) > self.maximum:
            raise ValueError(self.message)


class RegexValidator:
    def __init__(self, pattern: str, message: str | None = None) -> None:
        self.pattern = re.compile(pattern)
        self.message = message or "Value does not match required pattern."

    def __call__(self, value: Any) -> None:
        if not isinstance(value, str) or not self.pattern.fullmatch(value):
            raise ValueError(self.message)
