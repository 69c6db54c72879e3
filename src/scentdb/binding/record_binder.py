"""
Binding of database rows to in-memory records for editing.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, List, Optional, Tuple

from ..adapters.base import Connector
from ..core.record import RecordMap
from ..core.table import Column, Table
from ..errors import DatabaseError, RecordConflictError, RecordMapValidationError
from ..query.where import WhereSet
from ..security.redaction import redact_record
from ..utils import get_logger
from .editing import EditMarker

CONNECTOR_MISSING = "Connector instance is missing."
TRANSACTION_NOT_STARTED = "Transaction has not been started."


class RecordBinder:
    """
    Binds the rows of :attr:`table` matched by :attr:`where_set` for editing.

    ``edit()`` fetches the rows and keeps a snapshot; ``update()`` checks the
    stored rows against that snapshot, then replaces them with the bound
    records inside the caller's transaction.
    """

    table: Table
    allow_update_without_condition: bool = False
    edit_marker: Optional[EditMarker] = None

    def __init__(
        self,
        connector: Optional[Connector] = None,
        *,
        where_set: Optional[WhereSet] = None,
        edit_marker: Optional[EditMarker] = None,
    ) -> None:
        if getattr(self, "table", None) is None:
            raise TypeError(f"{type(self).__name__} must define a table.")
        self._connector = connector
        self.where_set = where_set
        if edit_marker is not None:
            self.edit_marker = edit_marker
        self._records: List[RecordMap] = []
        self._pre_edit_records: Optional[List[RecordMap]] = None
        self.is_conflict_ignored = False
        self._is_editing = False
        self.logger = get_logger("binding.record_binder")

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def connector(self) -> Connector:
        if self._connector is None:
            raise DatabaseError(CONNECTOR_MISSING)
        return self._connector

    @connector.setter
    def connector(self, connector: Optional[Connector]) -> None:
        self._connector = connector

    @property
    def records(self) -> List[RecordMap]:
        return self._records

    @records.setter
    def records(self, records: List[RecordMap]) -> None:
        self._records = list(records)

    @property
    def record_count(self) -> int:
        return len(self._records)

    @property
    def pre_edit_records(self) -> Optional[List[RecordMap]]:
        return self._pre_edit_records

    @property
    def is_editing(self) -> bool:
        return self._is_editing

    def _has_condition(self) -> bool:
        return self.where_set is not None and not self.where_set.is_empty()

    def _unbind(self) -> None:
        self._records = []
        self._pre_edit_records = None

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #
    def create_default_record(self) -> RecordMap:
        return self.table.create_record()

    def get_identifier(self, record: RecordMap) -> Hashable:
        columns = self.table.primary_key or tuple(self.table.columns)
        return tuple(record.get(name) for name in columns)

    def get_last_update_time(self, record: RecordMap) -> Any:
        if self.table.version_column is None:
            return None
        return record.get(self.table.version_column)

    def get_order_by_columns_for_edit(self) -> List[str]:
        return list(self.table.primary_key)

    def value_validate(self, record: RecordMap, column: Column) -> None:
        column.validate(record.get(column.physical_name))

    def value_normalize(self, record: RecordMap, column: Column) -> Any:
        return record.get(column.physical_name)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #
    def set_default_record(self) -> None:
        try:
            record = self.create_default_record()
        except Exception as exc:
            self.logger.warning(
                "Default record for %s could not be created; using column defaults: %s",
                self.table,
                exc,
            )
            record = self.table.create_record()
        self.records = [record]

    def fetch_records_for_edit(self) -> List[RecordMap]:
        sql = f"SELECT * FROM {self.table.physical_name}"
        params: List[Any] = []
        if self._has_condition():
            sql += f" WHERE {self.where_set.build_placeholder_clause()}"
            params = self.where_set.build_parameters()
        order_by = self.get_order_by_columns_for_edit()
        if order_by:
            sql += " ORDER BY " + ", ".join(order_by)
        return [self.table.create_record(row, fetched=True) for row in self.connector.fetch_records(sql, params)]

    def _bind_for_edit(self, records: List[RecordMap]) -> None:
        self._pre_edit_records = [record.clone() for record in records]
        self._records = records

    def edit(self) -> None:
        """
        Fetch the matching rows and bind them. With an :attr:`edit_marker`
        the rows are also marked as being edited; a binder that is already
        editing keeps its rows.
        """
        if self._is_editing:
            return
        self._bind_for_edit(self.fetch_records_for_edit())
        self._mark_editing()

    def _mark_editing(self) -> None:
        marker = self.edit_marker
        if marker is None:
            return
        connector = marker.create_connector()
        connector.connect()
        try:
            marker.lock(connector)
            if marker.is_editing_by_another(connector, self):
                raise DatabaseError("The record is being edited by another.")
            marker.mark_editing(connector, self)
            connector.commit()
            self._is_editing = True
        except DatabaseError:
            self._unbind()
            raise
        finally:
            connector.close()

    def _clear_mark(self, marker: EditMarker) -> None:
        connector = marker.create_connector()
        connector.connect()
        try:
            with connector.transaction():
                marker.unmark_editing(connector, self)
        finally:
            connector.close()
        self._is_editing = False

    def close(self) -> None:
        """
        Finish editing: clear the edit mark if one was taken and unbind.
        """
        if self._is_editing and self.edit_marker is not None:
            self._clear_mark(self.edit_marker)
        self._unbind()

    def forcibly_close(self) -> None:
        """
        Clear the edit mark even if another binder took it, then unbind.
        """
        if self.edit_marker is None:
            raise DatabaseError("No edit marker is configured.")
        self._clear_mark(self.edit_marker)
        self._unbind()

    def insert(self) -> int:
        connector = self.connector
        if not self._records:
            raise DatabaseError("Record for inserting is missing.")
        self.validate()
        inserted = 0
        for record in self._records:
            inserted += connector.insert(record, self.table)
        return inserted

    def detect_conflict(self) -> None:
        """
        Compare the stored rows with the snapshot taken by :meth:`edit`.

        Rows that appeared since, or whose version is newer than the
        snapshot, raise :class:`RecordConflictError`. So do rows deleted
        meanwhile that are still bound.
        """
        if self.is_conflict_ignored:
            return
        if self._pre_edit_records is None:
            raise DatabaseError("No pre-edit record has been set.")
        pre_edit: Dict[Hashable, RecordMap] = {
            self.get_identifier(record): record for record in self._pre_edit_records
        }
        current: Dict[Hashable, RecordMap] = {}
        conflicts: List[RecordMap] = []
        for record in self.fetch_records_for_edit():
            identifier = self.get_identifier(record)
            if identifier in pre_edit:
                current[identifier] = record
            else:
                conflicts.append(record)

        deleted: List[Tuple[Hashable, RecordMap]] = []
        for identifier, snapshot in pre_edit.items():
            stored = current.get(identifier)
            if stored is None:
                deleted.append((identifier, snapshot))
                continue
            before = self.get_last_update_time(snapshot)
            after = self.get_last_update_time(stored)
            if before is not None and after is not None and before < after:
                conflicts.append(stored)
        if conflicts:
            self._log_conflict("changed", conflicts)
            raise RecordConflictError(conflicts)

        bound = {self.get_identifier(record) for record in self._records}
        if any(identifier in bound for identifier, _ in deleted):
            removed = [snapshot for _, snapshot in deleted]
            self._log_conflict("deleted", removed)
            raise RecordConflictError(removed, "A record being edited was deleted by another.")

    def _log_conflict(self, kind: str, records: List[RecordMap]) -> None:
        self.logger.warning(
            "Conflict on %s: %d record(s) %s by another",
            self.table,
            len(records),
            kind,
            extra={"records": [redact_record(record) for record in records]},
        )

    def update(self) -> None:
        """
        Replace the matching rows with the bound records. Must run inside a
        transaction opened on :attr:`connector`.
        """
        connector = self.connector
        if not connector.in_transaction:
            raise DatabaseError(TRANSACTION_NOT_STARTED)
        if not self._records and self._pre_edit_records is None:
            raise DatabaseError("Record for updating is missing.")
        if not self._has_condition() and not self.allow_update_without_condition:
            raise DatabaseError("Search condition for updating is missing.")
        self.validate()
        self.detect_conflict()
        sql = f"DELETE FROM {self.table.physical_name}"
        params: List[Any] = []
        if self._has_condition():
            sql += f" WHERE {self.where_set.build_placeholder_clause()}"
            params = self.where_set.build_parameters()
        connector.execute(sql, params)
        for record in self._records:
            connector.insert(record, self.table)
        self._mark_saved()

    def _mark_saved(self) -> None:
        """
        Make the bound records the new origin after a successful write, so
        the next save compares against what this binder stored.
        """
        for record in self._records:
            record.mark_fetched()
        if self._pre_edit_records is not None:
            self._pre_edit_records = [record.clone() for record in self._records]

    def exists(self) -> bool:
        connector = self.connector
        if not self._has_condition():
            raise DatabaseError("Search condition for identification is missing.")
        sql = f"SELECT COUNT(*) FROM {self.table.physical_name} WHERE {self.where_set.build_placeholder_clause()}"
        return int(connector.fetch_field(sql, self.where_set.build_parameters())) > 0

    def validate(self) -> None:
        for record in self._records:
            errors: Dict[str, str] = {}
            for column in self.table.get_columns():
                try:
                    self.value_validate(record, column)
                except (ValueError, TypeError) as exc:
                    errors[column.physical_name] = str(exc)
            if errors:
                raise RecordMapValidationError(record, errors)

    def normalize(self) -> None:
        for record in self._records:
            for column in self.table.get_columns():
                if column.physical_name in record:
                    record[column.physical_name] = self.value_normalize(record, column)
