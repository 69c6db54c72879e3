"""
Schema descriptors and row containers.
"""

from .record import RecordMap, column_name
from .table import (
    Column,
    MaxLengthValidator,
    MaxValueValidator,
    MinValueValidator,
    RegexValidator,
    Table,
    TableConfigurationError,
    table_name,
)

__all__ = [
    "Column",
    "Table",
    "TableConfigurationError",
    "RecordMap",
    "column_name",
    "table_name",
    "MinValueValidator",
    "MaxValueValidator",
    "MaxLengthValidator",
    "RegexValidator",
]
