"""
Record binders and searchers built on connectors.
"""

from .editing import EditMarker
from .record_binder import RecordBinder
from .searcher import RecordSearcher
from .single_record_binder import SingleRecordBinder

__all__ = ["EditMarker", "RecordBinder", "RecordSearcher", "SingleRecordBinder"]
