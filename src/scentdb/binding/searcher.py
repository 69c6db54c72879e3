"""
Read-only searches over a table with OR-combined conditions.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from ..adapters.base import Connector, Row
from ..core.table import Column, Table
from ..errors import DatabaseError
from ..query.where import WhereSet
from .record_binder import CONNECTOR_MISSING


class RecordSearcher:
    """
    Builds ``SELECT <result columns> FROM <table> WHERE ...`` searches.
    Each non-empty WhereSet becomes one OR branch.
    """

    table: Table

    def __init__(self, connector: Optional[Connector] = None) -> None:
        if getattr(self, "table", None) is None:
            raise TypeError(f"{type(self).__name__} must define a table.")
        self._connector = connector

    @property
    def connector(self) -> Connector:
        if self._connector is None:
            raise DatabaseError(CONNECTOR_MISSING)
        return self._connector

    @connector.setter
    def connector(self, connector: Optional[Connector]) -> None:
        self._connector = connector

    def get_result_columns(self) -> List[Column]:
        return self.table.get_columns()

    def get_function_instead_of_result_column(self, column: Column) -> Optional[str]:
        """
        SQL expression selected in place of ``column`` (aliased back to its
        name), or ``None`` to select the column itself.
        """
        return None

    def _select_list(self) -> str:
        parts = []
        for column in self.get_result_columns():
            function = self.get_function_instead_of_result_column(column)
            if function:
                parts.append(f"{function} AS {column.physical_name}")
            else:
                parts.append(column.physical_name)
        return ", ".join(parts)

    def search(
        self,
        where_sets: Iterable[WhereSet] = (),
        part_before_where: Optional[str] = None,
        part_after_where: Optional[str] = None,
    ) -> List[Row]:
        """
        Run the search. ``part_before_where`` replaces the generated
        ``SELECT ... FROM ...``; ``part_after_where`` is appended as is
        (``GROUP BY``, ``ORDER BY``, ``LIMIT`` ...).
        """
        connector = self.connector
        sql = part_before_where or f"SELECT {self._select_list()} FROM {self.table.physical_name}"
        branches = [where_set for where_set in where_sets if not where_set.is_empty()]
        parameters: List[Any] = []
        if branches:
            if len(branches) == 1:
                clause = branches[0].build_placeholder_clause()
            else:
                clause = " OR ".join(f"({branch.build_placeholder_clause()})" for branch in branches)
            sql += f" WHERE {clause}"
            for branch in branches:
                parameters.extend(branch.build_parameters())
        if part_after_where:
            sql += f" {part_after_where}"
        return connector.fetch_records(sql, parameters)
