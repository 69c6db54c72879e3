"""
Binder specialised for exactly one row.
"""

from __future__ import annotations

from typing import Any

from ..core.record import RecordMap
from ..errors import DatabaseError, DataNotFoundError
from .record_binder import CONNECTOR_MISSING, RecordBinder


class SingleRecordBinder(RecordBinder):
    """
    Binds the single row matched by :attr:`where_set`.

    Tables with a ``soft_delete_column`` are deleted logically: the column is
    set to :meth:`create_deleted_marker` and such rows count as missing when
    editing.
    """

    @property
    def record(self) -> RecordMap:
        if not self._records:
            raise DatabaseError("No record is bound.")
        return self._records[0]

    @record.setter
    def record(self, record: RecordMap) -> None:
        self._records = [record]

    def _require_condition(self, action: str) -> None:
        if not self._has_condition():
            raise DatabaseError(f"Search condition for {action} is missing.")

    def get_order_by_columns_for_edit(self) -> list[str]:
        return []

    def is_deleted(self) -> bool:
        column = self.table.soft_delete_column
        if column is None:
            return False
        return bool(self.record.get(column))

    def create_deleted_marker(self) -> Any:
        return True

    def edit(self) -> None:
        """
        Bind the one matching row. Raises :class:`DataNotFoundError` when
        nothing (or only a soft-deleted row) matches and
        :class:`DatabaseError` when several rows match; the binder is left
        unbound on failure.
        """
        if self._connector is None:
            raise DatabaseError(CONNECTOR_MISSING)
        self._require_condition("editing")
        if self._is_editing:
            return
        try:
            records = self.fetch_records_for_edit()
            if not records:
                raise DataNotFoundError()
            if len(records) > 1:
                raise DatabaseError("Multiple records found.")
            self._bind_for_edit(records)
            if self.is_deleted():
                raise DataNotFoundError()
        except DatabaseError:
            self._unbind()
            raise
        self._mark_editing()

    def update(self) -> int:
        connector = self.connector
        record = self.record
        self._require_condition("updating")
        self.validate()
        if self._pre_edit_records is not None:
            self.detect_conflict()
        updated = connector.update(record, self.table, self.where_set)
        self._mark_saved()
        return updated

    def delete(self) -> int:
        """
        Delete the bound row: logically when the table has a soft-delete
        column, physically otherwise.
        """
        column = self.table.soft_delete_column
        if column is None:
            return self.physical_delete()
        self.record[column] = self.create_deleted_marker()
        return self.update()

    def physical_delete(self) -> int:
        connector = self.connector
        self._require_condition("deleting")
        sql = f"DELETE FROM {self.table.physical_name} WHERE {self.where_set.build_placeholder_clause()}"
        return connector.execute(sql, self.where_set.build_parameters())
