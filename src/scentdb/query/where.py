"""
Search conditions rendered as placeholder clauses with parallel parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List

from ..core.record import column_name

AND = " AND "


class Operator(str, Enum):
    EQUAL = "="
    NOT_EQUAL = "<>"
    LESS = "<"
    LESS_OR_EQUAL = "<="
    GREATER = ">"
    GREATER_OR_EQUAL = ">="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"

    @property
    def takes_value(self) -> bool:
        return self not in (Operator.IS_NULL, Operator.IS_NOT_NULL)


@dataclass(frozen=True)
class Comparison:
    """
    A single ``column OP ?`` condition.
    """

    column: str
    operator: Operator = Operator.EQUAL
    value: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "column", column_name(self.column))
        object.__setattr__(self, "operator", Operator(self.operator))

    def render(self) -> str:
        if self.operator.takes_value:
            return f"{self.column} {self.operator.value} ?"
        return f"{self.column} {self.operator.value}"

    def parameters(self) -> List[Any]:
        if self.operator.takes_value:
            return [self.value]
        return []


class WhereSet:
    """
    Ordered, AND-composed list of comparisons.

    ``WhereSet(id=1)`` is shorthand for ``WhereSet().add("id", 1)``; keyword
    equalities follow any positional comparisons, in keyword order.
    """

    def __init__(self, *comparisons: Comparison, **equalities: Any) -> None:
        self._comparisons: List[Comparison] = list(comparisons)
        for column, value in equalities.items():
            self._comparisons.append(Comparison(column, Operator.EQUAL, value))

    def add(self, column: Any, value: Any = None, operator: Operator | str = Operator.EQUAL) -> "WhereSet":
        self._comparisons.append(Comparison(column, Operator(operator), value))
        return self

    def extend(self, other: "WhereSet") -> "WhereSet":
        self._comparisons.extend(other)
        return self

    def __len__(self) -> int:
        return len(self._comparisons)

    def __iter__(self) -> Iterator[Comparison]:
        return iter(self._comparisons)

    def __repr__(self) -> str:
        return f"<WhereSet {self.build_placeholder_clause()!r} {self.build_parameters()!r}>"

    def is_empty(self) -> bool:
        return not self._comparisons

    def build_placeholder_clause(self) -> str:
        return AND.join(comparison.render() for comparison in self._comparisons)

    def build_parameters(self) -> List[Any]:
        parameters: List[Any] = []
        for comparison in self._comparisons:
            parameters.extend(comparison.parameters())
        return parameters
