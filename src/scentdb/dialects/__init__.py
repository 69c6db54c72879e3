"""
Dialect strategy registry.
"""

from .base import Dialect, DialectCapabilities, number_placeholders
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect, TransactionMode

__all__ = [
    "Dialect",
    "DialectCapabilities",
    "number_placeholders",
    "PostgresDialect",
    "SQLiteDialect",
    "TransactionMode",
]
