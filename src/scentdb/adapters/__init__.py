"""
Connectors and pools for the supported backends.
"""

from .base import ConnectionParameters, Connector
from .postgres import PostgresConnectionParameters, PostgresConnector, PostgresPool
from .sqlite import SQLiteConnectionParameters, SQLiteConnector, SQLitePool

__all__ = [
    "ConnectionParameters",
    "Connector",
    "PostgresConnectionParameters",
    "PostgresConnector",
    "PostgresPool",
    "SQLiteConnectionParameters",
    "SQLiteConnector",
    "SQLitePool",
]
