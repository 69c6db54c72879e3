"""
Search-condition primitives.
"""

from .where import Comparison, Operator, WhereSet

__all__ = ["Comparison", "Operator", "WhereSet"]
