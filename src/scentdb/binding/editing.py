"""
Cross-session "being edited" marks for record binders.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional

from ..adapters.base import Connector
from ..core.table import Table
from ..errors import DatabaseError

if TYPE_CHECKING:
    from .record_binder import RecordBinder


class EditMarker(ABC):
    """
    Strategy that records which rows are being edited so a second binder
    refuses to edit them at the same time.

    The marker works on its own connector, separate from the binder's: the
    mark must be committed immediately and survive until the binder closes.
    ``table`` is the table locked while the mark is checked and written;
    subclasses store the mark there (or anywhere else :meth:`lock` protects).
    """

    table: Optional[Table | str] = None

    def __init__(
        self,
        connector_factory: Callable[[], Connector],
        table: Optional[Table | str] = None,
    ) -> None:
        self.connector_factory = connector_factory
        if table is not None:
            self.table = table

    def create_connector(self) -> Connector:
        return self.connector_factory()

    def lock(self, connector: Connector) -> None:
        """
        Take the fail-fast lock that serializes markers. Leaves a transaction open.
        """
        if self.table is None:
            raise DatabaseError("EditMarker needs a table to lock.")
        connector.lock_table(self.table)

    @abstractmethod
    def is_editing_by_another(self, connector: Connector, binder: "RecordBinder") -> bool:
        ...

    @abstractmethod
    def mark_editing(self, connector: Connector, binder: "RecordBinder") -> None:
        ...

    @abstractmethod
    def unmark_editing(self, connector: Connector, binder: "RecordBinder") -> None:
        ...
