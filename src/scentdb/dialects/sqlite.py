"""
SQLite dialect implementation.
"""

from __future__ import annotations

from enum import Enum
from typing import Final

from .base import DialectCapabilities, Query


class TransactionMode(str, Enum):
    DEFERRED = "deferred"
    IMMEDIATE = "immediate"
    EXCLUSIVE = "exclusive"


class SQLiteDialect:
    """
    SQLite dialect using native qmark placeholders and database-wide locking.
    """

    name: Final[str] = "sqlite"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        native_qmark_placeholders=True,
    )

    def fix_placeholder(self, sql: str) -> str:
        return sql

    def statement_timeout_sql(self, milliseconds: int) -> str:
        return f"PRAGMA busy_timeout = {int(milliseconds)}"

    def begin_sql(self, mode: str | None = None) -> str:
        if mode is None:
            resolved = TransactionMode.DEFERRED
        elif isinstance(mode, TransactionMode):
            resolved = mode
        else:
            resolved = TransactionMode(mode.lower())
        return f"BEGIN {resolved.value.upper()}"

    def commit_sql(self) -> str:
        return "COMMIT"

    def rollback_sql(self) -> str:
        return "ROLLBACK"

    def lock_table_sql(self, table_name: str, *, readonly: bool) -> str:
        # No table granularity: IMMEDIATE blocks other writers, EXCLUSIVE readers too.
        mode = TransactionMode.IMMEDIATE if readonly else TransactionMode.EXCLUSIVE
        return self.begin_sql(mode)

    def exists_table_query(self, table_name: str) -> Query:
        return (
            "SELECT COUNT(*) FROM sqlite_master WHERE type = ? AND name = ?",
            ["table", table_name],
        )

    def fetch_columns_query(self, table_name: str) -> Query:
        return (
            "SELECT name AS column_name FROM pragma_table_info(?) ORDER BY cid",
            [table_name],
        )

    def last_insert_id_query(self, sequence_name: str | None = None) -> Query:
        return ("SELECT LAST_INSERT_ROWID()", [])

    def changes_query(self) -> Query:
        return ("SELECT CHANGES()", [])
