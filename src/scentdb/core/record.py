"""
Ordered row container with origin tracking.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional


def column_name(column: Any) -> str:
    """
    Resolve a :class:`~scentdb.core.table.Column` or plain string to its
    physical column name.
    """
    name = getattr(column, "physical_name", column)
    if not isinstance(name, str):
        raise TypeError(f"Column key must be a string or Column, got {type(column).__name__}")
    return name


class RecordMap(MutableMapping[str, Any]):
    """
    One database row as an ordered mapping of column name to value.

    A record created from a fetched row keeps a snapshot of its original
    values, so callers can tell a freshly fetched row from a locally modified
    or locally created one.
    """

    def __init__(self, values: Optional[Mapping[Any, Any]] = None, *, fetched: bool = False) -> None:
        self._values: Dict[str, Any] = {}
        if values:
            for key, value in values.items():
                self._values[column_name(key)] = value
        self._origin: Dict[str, Any] | None = dict(self._values) if fetched else None

    # Mapping protocol ---------------------------------------------------
    def __getitem__(self, key: Any) -> Any:
        return self._values[column_name(key)]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._values[column_name(key)] = value

    def __delitem__(self, key: Any) -> None:
        del self._values[column_name(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        try:
            return column_name(key) in self._values
        except TypeError:
            return False

    def __repr__(self) -> str:
        state = "fetched" if self.is_fetched else "local"
        return f"<RecordMap {state} {self._values!r}>"

    # Origin tracking ----------------------------------------------------
    @property
    def is_fetched(self) -> bool:
        return self._origin is not None

    def is_modified(self) -> bool:
        if self._origin is None:
            return True
        return self._values != self._origin

    def changed_columns(self) -> list[str]:
        if self._origin is None:
            return list(self._values)
        return [
            name
            for name, value in self._values.items()
            if name not in self._origin or self._origin[name] != value
        ]

    def original_value(self, key: Any) -> Any:
        if self._origin is None:
            return None
        return self._origin.get(column_name(key))

    def mark_fetched(self) -> None:
        self._origin = dict(self._values)

    # Copies ---------------------------------------------------------------
    def clone(self) -> "RecordMap":
        copy = RecordMap(self._values)
        copy._origin = dict(self._origin) if self._origin is not None else None
        return copy

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)
