"""
scentdb public package initialization.

Connectors for PostgreSQL and SQLite sharing one API, a process-wide pool
registry, search conditions, and record binders for edit/update workflows.
"""

from .adapters import (  # noqa: F401
    ConnectionParameters,
    Connector,
    PostgresConnectionParameters,
    PostgresConnector,
    SQLiteConnectionParameters,
    SQLiteConnector,
)
from .binding import EditMarker, RecordBinder, RecordSearcher, SingleRecordBinder  # noqa: F401
from .core import Column, RecordMap, Table  # noqa: F401
from .dialects import TransactionMode  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    DatabaseError,
    DataNotFoundError,
    RecordConflictError,
    RecordMapValidationError,
)
from .pool import PoolRegistry, pool_end, pool_start  # noqa: F401
from .query import Comparison, Operator, WhereSet  # noqa: F401

__all__ = [
    "ConnectionParameters",
    "Connector",
    "PostgresConnectionParameters",
    "PostgresConnector",
    "SQLiteConnectionParameters",
    "SQLiteConnector",
    "TransactionMode",
    "PoolRegistry",
    "pool_start",
    "pool_end",
    "WhereSet",
    "Comparison",
    "Operator",
    "Table",
    "Column",
    "RecordMap",
    "RecordBinder",
    "SingleRecordBinder",
    "RecordSearcher",
    "EditMarker",
    "DatabaseError",
    "DataNotFoundError",
    "ConfigurationError",
    "RecordConflictError",
    "RecordMapValidationError",
]
