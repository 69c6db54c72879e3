"""
Dialect strategy interfaces describing per-backend SQL behaviors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    native_qmark_placeholders: bool = False


Query = tuple[str, list[Any]]


class Dialect(Protocol):
    """
    Strategy interface selected when a connector is constructed.
    """

    @property
    def name(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    def fix_placeholder(self, sql: str) -> str: ...

    def statement_timeout_sql(self, milliseconds: int) -> str: ...

    def begin_sql(self, mode: str | None = None) -> str: ...

    def commit_sql(self) -> str: ...

    def rollback_sql(self) -> str: ...

    def lock_table_sql(self, table_name: str, *, readonly: bool) -> str: ...

    def exists_table_query(self, table_name: str) -> Query: ...

    def fetch_columns_query(self, table_name: str) -> Query: ...

    def last_insert_id_query(self, sequence_name: str | None = None) -> Query: ...


def number_placeholders(sql: str, prefix: str = "$") -> str:
    """
    Rewrite every ``?`` outside single-quoted literals into an ordinal marker
    (``$1``, ``$2``, ...) from left to right. A doubled quote inside a
    literal is an escaped quote and does not end the literal.
    """
    fixed: list[str] = []
    number = 1
    in_string = False
    could_be_end = False
    for char in sql:
        if could_be_end:
            could_be_end = False
            if char != "'":
                in_string = False
        elif char == "'":
            if in_string:
                could_be_end = True
            else:
                in_string = True
        if not in_string and char == "?":
            fixed.append(f"{prefix}{number}")
            number += 1
        else:
            fixed.append(char)
    return "".join(fixed)
