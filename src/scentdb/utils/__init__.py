"""
Utility helpers shared across scentdb packages.
"""

from .logging import configure_logging, get_logger, set_correlation_id, time_call

__all__ = ["configure_logging", "get_logger", "set_correlation_id", "time_call"]
