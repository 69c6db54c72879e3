"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import DialectCapabilities, Query, number_placeholders


class PostgresDialect:
    """
    PostgreSQL dialect using ``$n`` positional parameters and NOWAIT table locks.
    """

    name: Final[str] = "postgresql"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        native_qmark_placeholders=False,
    )

    def fix_placeholder(self, sql: str) -> str:
        return number_placeholders(sql, "$")

    def statement_timeout_sql(self, milliseconds: int) -> str:
        return f"SET statement_timeout TO {int(milliseconds)}"

    def begin_sql(self, mode: str | None = None) -> str:
        if mode is not None:
            raise ValueError("PostgreSQL transactions do not take a begin mode.")
        return "BEGIN"

    def commit_sql(self) -> str:
        return "COMMIT"

    def rollback_sql(self) -> str:
        return "ROLLBACK"

    def lock_table_sql(self, table_name: str, *, readonly: bool) -> str:
        # EXCLUSIVE still admits readers; ACCESS EXCLUSIVE blocks them too.
        mode = "EXCLUSIVE" if readonly else "ACCESS EXCLUSIVE"
        return f"LOCK TABLE {table_name} IN {mode} MODE NOWAIT"

    def exists_table_query(self, table_name: str) -> Query:
        return (
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?",
            [table_name],
        )

    def fetch_columns_query(self, table_name: str) -> Query:
        return (
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            [table_name],
        )

    def last_insert_id_query(self, sequence_name: str | None = None) -> Query:
        if sequence_name is None:
            return ("SELECT LASTVAL()", [])
        return ("SELECT CURRVAL(?)", [sequence_name])
