"""
Connector base class and connection-parameter definitions.
"""

from __future__ import annotations

import dataclasses
import json
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Generator, Iterable, List, Mapping, Optional, Tuple, Type

from ..config import get_settings
from ..core.record import column_name
from ..core.table import Table, table_name
from ..dialects.base import Dialect
from ..errors import DatabaseError, DataNotFoundError
from ..pool import ConnectionPool, PoolRegistry
from ..pool import registry as default_registry
from ..query.where import WhereSet
from ..security.redaction import redact_params
from ..utils import get_logger, time_call

BindValue = Any
Row = Dict[str, Any]


@dataclasses.dataclass(frozen=True)
class ConnectionParameters:
    """
    Immutable connection settings. Equal field values share one pool.
    """

    def serialize(self) -> str:
        payload = {"backend": type(self).__name__, **dataclasses.asdict(self)}
        return json.dumps(payload, sort_keys=True, default=str)

    def describe(self) -> str:
        return type(self).__name__


class Connector(ABC):
    """
    Session bound to one client borrowed from a pool.

    Subclasses supply the pool factory, the dialect, and the raw client
    calls; everything else (placeholder translation, bind coercion, error
    translation, statement timeouts, transactions) is shared.
    """

    parameters_class: Type[ConnectionParameters] = ConnectionParameters

    def __init__(
        self,
        parameters: ConnectionParameters,
        *,
        registry: Optional[PoolRegistry] = None,
        statement_timeout_ms: Optional[int] = None,
        slow_query_ms: Optional[int] = None,
    ) -> None:
        if not isinstance(parameters, self.parameters_class):
            raise DatabaseError(
                f"{type(self).__name__} requires {self.parameters_class.__name__}, "
                f"got {type(parameters).__name__}."
            )
        settings = get_settings()
        self.parameters = parameters
        self.registry = registry if registry is not None else default_registry
        self.dialect: Dialect = self.create_dialect()
        self.logger = get_logger(f"connector.{self.dialect.name}")
        self.slow_query_ms = slow_query_ms if slow_query_ms is not None else settings.slow_query_ms
        self._statement_timeout_ms = (
            statement_timeout_ms if statement_timeout_ms is not None else settings.statement_timeout_ms
        )
        self._applied_timeout_ms: Optional[int] = None
        self._pool: Optional[ConnectionPool] = None
        self._client: Any = None
        self._transaction_begun = False
        self._error_occurred = False

    # ------------------------------------------------------------------ #
    # Backend hooks
    # ------------------------------------------------------------------ #
    @abstractmethod
    def create_dialect(self) -> Dialect:
        ...

    @abstractmethod
    def create_pool(self, parameters: ConnectionParameters, maximum_number_of_connections: int) -> ConnectionPool:
        ...

    @abstractmethod
    def inner_error_types(self) -> Tuple[Type[BaseException], ...]:
        """
        Driver exception classes translated by :meth:`create_error_from_inner_error`.
        """

    def create_error_from_inner_error(self, error: BaseException) -> DatabaseError:
        return DatabaseError(str(error))

    @abstractmethod
    def _execute_on_client(self, sql: str, params: List[BindValue]) -> int:
        ...

    @abstractmethod
    def _fetch_on_client(self, sql: str, params: List[BindValue]) -> List[Row]:
        ...

    def _inspect_failure(self, error: BaseException) -> None:
        """
        Hook to flag the client as unusable after a driver error.
        """

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def create_adapter(self) -> ConnectionPool:
        return self.registry.get_or_create(self.parameters, self.create_pool)

    def connect_adapter(self, pool: ConnectionPool) -> Any:
        try:
            return pool.borrow()
        except DatabaseError:
            raise
        except self.inner_error_types() as exc:
            raise self.create_error_from_inner_error(exc) from exc

    def connect(self) -> None:
        self.close()
        pool = self.create_adapter()
        self._client = self.connect_adapter(pool)
        self._pool = pool
        self._applied_timeout_ms = None
        self._error_occurred = False

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise DatabaseError("Not connected to database.")
        return self._client

    @property
    def error_occurred(self) -> bool:
        return self._error_occurred

    def close(self) -> None:
        """
        Release the borrowed client. Idempotent; an open transaction is
        rolled back first.
        """
        if self._client is None:
            return
        try:
            if self._transaction_begun:
                try:
                    self.rollback()
                except DatabaseError as exc:
                    self.logger.warning("Rollback on close failed; discarding client: %s", exc)
                    self._error_occurred = True
        finally:
            client, pool = self._client, self._pool
            self._client = None
            self._pool = None
            self._transaction_begun = False
            if pool is not None:
                self._release_to_pool(pool, client)

    def _release_to_pool(self, pool: ConnectionPool, client: Any) -> None:
        try:
            pool.release(client, error_occurred=self._error_occurred)
        except DatabaseError:
            raise
        except self.inner_error_types() as exc:
            raise self.create_error_from_inner_error(exc) from exc

    def __enter__(self) -> "Connector":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Statement timeout
    # ------------------------------------------------------------------ #
    @property
    def statement_timeout_ms(self) -> Optional[int]:
        return self._statement_timeout_ms

    @statement_timeout_ms.setter
    def statement_timeout_ms(self, milliseconds: Optional[int]) -> None:
        self._statement_timeout_ms = milliseconds

    def set_statement_timeout(self, milliseconds: int) -> None:
        self._statement_timeout_ms = milliseconds
        self._apply_statement_timeout()

    def _apply_statement_timeout(self) -> None:
        wanted = self._statement_timeout_ms
        if wanted is None or wanted == self._applied_timeout_ms:
            return
        self._guarded("timeout", self.dialect.statement_timeout_sql(wanted), [], self._execute_on_client)
        self._applied_timeout_ms = wanted

    # ------------------------------------------------------------------ #
    # Statement execution
    # ------------------------------------------------------------------ #
    def fix_placeholder(self, sql: str) -> str:
        if self.dialect.capabilities.native_qmark_placeholders:
            return sql
        return self.dialect.fix_placeholder(sql)

    def create_bind_parameter_from_value(self, value: Any) -> BindValue:
        if isinstance(value, Enum):
            return self.create_bind_parameter_from_value(value.value)
        if isinstance(value, PurePath):
            return str(value)
        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)
        return value

    def _bind(self, params: Optional[Iterable[Any]]) -> List[BindValue]:
        return [self.create_bind_parameter_from_value(value) for value in params or ()]

    def _guarded(self, name: str, sql: str, params: List[BindValue], operation):
        client = self.client
        try:
            with time_call(
                f"{self.dialect.name}.{name}",
                self.logger,
                sql=sql,
                params=redact_params(params),
                threshold_ms=self.slow_query_ms,
            ):
                return operation(sql, params)
        except DatabaseError:
            raise
        except self.inner_error_types() as exc:
            if client is self._client:
                self._inspect_failure(exc)
            raise self.create_error_from_inner_error(exc) from exc

    def _run(self, name: str, sql: str, params: Optional[Iterable[Any]], operation):
        bind_parameters = self._bind(params)
        fixed = self.fix_placeholder(sql)
        self._apply_statement_timeout()
        return self._guarded(name, fixed, bind_parameters, operation)

    def execute(self, sql: str, params: Optional[Iterable[Any]] = None) -> int:
        """
        Execute a statement written with ``?`` placeholders and return the
        number of affected rows.
        """
        return self._run("execute", sql, params, self._execute_on_client)

    def fetch_records(self, sql: str, params: Optional[Iterable[Any]] = None) -> List[Row]:
        return self._run("fetch", sql, params, self._fetch_on_client)

    def fetch_record(self, sql: str, params: Optional[Iterable[Any]] = None) -> Row:
        rows = self.fetch_records(sql, params)
        if not rows:
            raise DataNotFoundError()
        return rows[0]

    def fetch_field(self, sql: str, params: Optional[Iterable[Any]] = None) -> Any:
        row = self.fetch_record(sql, params)
        for value in row.values():
            return value
        raise DataNotFoundError()

    # ------------------------------------------------------------------ #
    # Record writes
    # ------------------------------------------------------------------ #
    @staticmethod
    def _writable_items(record: Mapping[Any, Any], table: Table | str) -> List[Tuple[str, Any]]:
        items = [(column_name(key), value) for key, value in record.items()]
        if isinstance(table, Table):
            items = [
                (name, value)
                for name, value in items
                if not (value is None and name in table.primary_key)
            ]
        return items

    def insert(self, record: Mapping[Any, Any], table: Table | str) -> int:
        items = self._writable_items(record, table)
        if not items:
            raise DatabaseError("Record for inserting has no columns.")
        columns = ", ".join(name for name, _ in items)
        placeholders = ", ".join("?" for _ in items)
        sql = f"INSERT INTO {table_name(table)} ({columns}) VALUES ({placeholders})"
        return self.execute(sql, [value for _, value in items])

    def update(self, record: Mapping[Any, Any], table: Table | str, where_set: WhereSet) -> int:
        """
        Update the rows matched by ``where_set``; raises
        :class:`DataNotFoundError` when no row was changed.
        """
        items = [(column_name(key), value) for key, value in record.items()]
        if not items:
            raise DatabaseError("Record for updating has no columns.")
        if where_set.is_empty():
            raise DatabaseError("Search condition for updating is missing.")
        assignments = ", ".join(f"{name} = ?" for name, _ in items)
        sql = f"UPDATE {table_name(table)} SET {assignments} WHERE {where_set.build_placeholder_clause()}"
        parameters = [value for _, value in items] + where_set.build_parameters()
        affected = self.execute(sql, parameters)
        if affected == 0:
            raise DataNotFoundError()
        return affected

    # ------------------------------------------------------------------ #
    # Schema introspection
    # ------------------------------------------------------------------ #
    def exists_table(self, table: Table | str) -> bool:
        sql, params = self.dialect.exists_table_query(table_name(table))
        return int(self.fetch_field(sql, params)) > 0

    def fetch_columns(self, table: Table | str) -> List[str]:
        sql, params = self.dialect.fetch_columns_query(table_name(table))
        return [row["column_name"] for row in self.fetch_records(sql, params)]

    def fetch_last_inserted_id(self, sequence_name: Optional[str] = None) -> Any:
        sql, params = self.dialect.last_insert_id_query(sequence_name)
        return self.fetch_field(sql, params)

    # ------------------------------------------------------------------ #
    # Transactions and locks
    # ------------------------------------------------------------------ #
    @property
    def in_transaction(self) -> bool:
        return self._transaction_begun

    def begin(self) -> None:
        self.execute(self.dialect.begin_sql())
        self._transaction_begun = True

    def commit(self) -> None:
        self.execute(self.dialect.commit_sql())
        self._transaction_begun = False

    def rollback(self) -> None:
        try:
            self.execute(self.dialect.rollback_sql())
        finally:
            self._transaction_begun = False

    @contextmanager
    def transaction(self) -> Generator["Connector", None, None]:
        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        else:
            self.commit()

    def lock_table_as_readonly(self, table: Table | str) -> None:
        """
        Lock ``table`` against writes without waiting; fails immediately with
        :class:`DatabaseError` when the lock is held elsewhere.
        """
        self._lock(table, readonly=True)

    def lock_table(self, table: Table | str) -> None:
        """
        Lock ``table`` against reads and writes without waiting; fails
        immediately with :class:`DatabaseError` when the lock is held elsewhere.
        """
        self._lock(table, readonly=False)

    @abstractmethod
    def _lock(self, table: Table | str, *, readonly: bool) -> None:
        ...

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def make_case_clause(column: Any, mapping: Mapping[Any, Any]) -> str:
        """
        Render ``CASE column WHEN key THEN 'label' ... END``; without entries
        the bare column name is returned.
        """
        name = column_name(column)
        if not mapping:
            return name
        parts = [f"CASE {name}"]
        for key, label in mapping.items():
            parts.append(f"WHEN {_sql_literal(key)} THEN {_sql_literal(str(label))}")
        parts.append("END")
        return " ".join(parts)


def _sql_literal(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        escaped = str(value).replace("'", "''")
        return f"'{escaped}'"
    return str(value)
