"""
SQLite connector and pool built on the stdlib sqlite3 module.
"""

from __future__ import annotations

import dataclasses
import os
import sqlite3
import time
from datetime import date, datetime
from datetime import time as time_of_day
from decimal import Decimal
from threading import Condition
from typing import Any, List, Optional, Set, Tuple, Type

from ..core.table import Table, table_name
from ..dialects.sqlite import SQLiteDialect, TransactionMode
from ..errors import ConfigurationError, DatabaseError
from ..security.dsns import parse_dsn
from ..utils import get_logger
from .base import BindValue, ConnectionParameters, Connector, Row

MEMORY_DATABASE = ":memory:"
_DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0


@dataclasses.dataclass(frozen=True)
class SQLiteConnectionParameters(ConnectionParameters):
    """
    Embedded database location. ``database_file`` is stored as an absolute
    path; ``connection_timeout_milliseconds`` bounds how long a borrow waits
    for a free pooled connection (``None`` waits indefinitely).
    """

    database_file: str
    connection_timeout_milliseconds: Optional[int] = None

    def __post_init__(self) -> None:
        path = os.fspath(self.database_file)
        if path != MEMORY_DATABASE:
            path = os.path.abspath(path)
        object.__setattr__(self, "database_file", path)

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "SQLiteConnectionParameters":
        parsed = parse_dsn(dsn)
        if parsed.driver != "sqlite":
            raise ConfigurationError(f"Not an SQLite DSN: {parsed.redacted()}")
        path = parsed.path
        if path == f"/{MEMORY_DATABASE}":
            path = MEMORY_DATABASE
        elif path.startswith("/"):
            # sqlite:///relative.db -> relative.db, sqlite:////abs.db -> /abs.db
            path = path[1:]
        if not path:
            raise ConfigurationError("SQLite DSN does not name a database file.")
        return cls(database_file=path, **kwargs)

    def describe(self) -> str:
        return f"SQLite {self.database_file}"


class SQLitePool:
    """
    Bounded pool of sqlite3 connections to one database file.
    """

    def __init__(self, parameters: SQLiteConnectionParameters, maximum_number_of_connections: int) -> None:
        self.parameters = parameters
        self.maximum_number_of_connections = max(1, maximum_number_of_connections)
        self._idle: List[sqlite3.Connection] = []
        self._borrowed: Set[sqlite3.Connection] = set()
        self._condition = Condition()
        self._closed = False
        self.logger = get_logger("pool.sqlite")

    @property
    def size(self) -> int:
        with self._condition:
            return len(self._idle) + len(self._borrowed)

    def _open(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self.parameters.database_file,
            timeout=_DEFAULT_BUSY_TIMEOUT_SECONDS,
            isolation_level=None,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        self.logger.debug("Opened SQLite connection to %s", self.parameters.database_file)
        return connection

    def borrow(self) -> sqlite3.Connection:
        timeout_ms = self.parameters.connection_timeout_milliseconds
        deadline = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000
        with self._condition:
            while True:
                if self._closed:
                    raise DatabaseError("Pool has been closed.")
                if self._idle:
                    connection = self._idle.pop()
                    self._borrowed.add(connection)
                    return connection
                if len(self._borrowed) < self.maximum_number_of_connections:
                    connection = self._open()
                    self._borrowed.add(connection)
                    return connection
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise DatabaseError("Timed out waiting for a pooled SQLite connection.")
                self._condition.wait(remaining)

    def release(self, client: sqlite3.Connection, *, error_occurred: bool = False) -> None:
        with self._condition:
            if client not in self._borrowed:
                raise DatabaseError("Connections that are not managed by this pool cannot be released.")
            self._borrowed.remove(client)
            try:
                if error_occurred or self._closed:
                    client.close()
                else:
                    self._idle.append(client)
            finally:
                self._condition.notify()

    def close(self) -> None:
        with self._condition:
            self._closed = True
            connections = self._idle + list(self._borrowed)
            self._idle.clear()
            self._borrowed.clear()
            self._condition.notify_all()
        failure: sqlite3.Error | None = None
        for connection in connections:
            try:
                connection.close()
            except sqlite3.Error as exc:
                failure = failure or exc
        if failure is not None:
            raise failure


class SQLiteConnector(Connector):
    """
    Connector for SQLite. Start the pool registry before connecting.
    """

    parameters_class = SQLiteConnectionParameters

    def create_dialect(self) -> SQLiteDialect:
        return SQLiteDialect()

    def create_pool(self, parameters: ConnectionParameters, maximum_number_of_connections: int) -> SQLitePool:
        if not isinstance(parameters, SQLiteConnectionParameters):
            raise DatabaseError(f"SQLite pool requires SQLiteConnectionParameters, got {type(parameters).__name__}.")
        return SQLitePool(parameters, maximum_number_of_connections)

    def inner_error_types(self) -> Tuple[Type[BaseException], ...]:
        return (sqlite3.Error,)

    def create_error_from_inner_error(self, error: BaseException) -> DatabaseError:
        return DatabaseError(str(error), getattr(error, "sqlite_errorname", None))

    def create_bind_parameter_from_value(self, value: Any) -> BindValue:
        value = super().create_bind_parameter_from_value(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, (date, time_of_day)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return str(value)
        return value

    def _execute_on_client(self, sql: str, params: List[BindValue]) -> int:
        self.client.execute(sql, params).close()
        changes_sql, _ = self.dialect.changes_query()
        return int(self.client.execute(changes_sql).fetchone()[0])

    def _fetch_on_client(self, sql: str, params: List[BindValue]) -> List[Row]:
        cursor = self.client.execute(sql, params)
        try:
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    # ------------------------------------------------------------------ #
    def fetch_number_of_records_last_updated(self) -> int:
        sql, params = self.dialect.changes_query()
        return int(self.fetch_field(sql, params))

    def fetch_last_inserted_record_id(self) -> int:
        return int(self.fetch_last_inserted_id())

    # ------------------------------------------------------------------ #
    def begin(self, mode: TransactionMode | str | None = None) -> None:
        try:
            sql = self.dialect.begin_sql(mode)
        except ValueError as exc:
            raise DatabaseError(f"Unknown transaction mode: {mode!r}") from exc
        self.execute(sql)
        self._transaction_begun = True

    def _lock(self, table: Table | str, *, readonly: bool) -> None:
        if self.in_transaction:
            raise DatabaseError(
                f"Cannot lock {table_name(table)}: SQLite locks are taken when the transaction begins."
            )
        previous = int(self.fetch_field("PRAGMA busy_timeout"))
        self.execute(self.dialect.statement_timeout_sql(0))
        try:
            self.execute(self.dialect.lock_table_sql(table_name(table), readonly=readonly))
            self._transaction_begun = True
        finally:
            self.execute(self.dialect.statement_timeout_sql(previous))
