"""Predicate and join clause types accumulated by the query builder.

Both types are immutable once built. Their text fragments have already been
validated by the mutator that created them, so the assembler can splice
``column``, ``operator``, ``table`` and ``on`` into SQL directly. Values are
never spliced: they are emitted as ``?`` placeholders and appended to the
parameter list in the same order.
"""

from typing import Any, List, Tuple

from pydantic import ConfigDict, Field

from querykit.constants.sql import (
    LIST_OPERATORS,
    NULL_OPERATORS,
    PLACEHOLDER,
    JoinType,
    LogicalOperator,
)
from querykit.types.base import QueryKitBaseModel


class Condition(QueryKitBaseModel):
    """A single WHERE or HAVING predicate.

    Attributes:
        column: Validated column name or aggregate expression
        operator: Upper-cased operator from the whitelist
        value: Bound value, or the precomputed placeholder text for IN/BETWEEN
        logic: Connective placed before this condition (ignored for the first one)
        params: Bound values for IN/BETWEEN, in placeholder order
    """
    model_config = ConfigDict(frozen=True, validate_default=True)

    column: str
    operator: str
    value: Any = None
    logic: LogicalOperator = LogicalOperator.AND
    params: Tuple[Any, ...] = Field(default_factory=tuple)

    @classmethod
    def in_list(
        cls,
        column: str,
        values: Tuple[Any, ...],
        negate: bool = False,
        logic: LogicalOperator = LogicalOperator.AND,
    ) -> "Condition":
        """Build an IN / NOT IN condition with one placeholder per value."""
        placeholders = ", ".join(PLACEHOLDER for _ in values)
        return cls(
            column=column,
            operator="NOT IN" if negate else "IN",
            value=f"({placeholders})",
            params=tuple(values),
            logic=logic,
        )

    @classmethod
    def between(
        cls,
        column: str,
        start: Any,
        end: Any,
        logic: LogicalOperator = LogicalOperator.AND,
    ) -> "Condition":
        """Build a BETWEEN condition."""
        return cls(
            column=column,
            operator="BETWEEN",
            value=f"{PLACEHOLDER} AND {PLACEHOLDER}",
            params=(start, end),
            logic=logic,
        )

    def render(self, params: List[Any], list_forms: bool = True) -> str:
        """Render this predicate and append its bound values to ``params``.

        Args:
            params: Output parameter list, extended in placeholder order
            list_forms: When False, IN/BETWEEN are rendered with the plain
                single-placeholder form (used for HAVING)

        Returns:
            SQL fragment without the leading connective
        """
        if self.operator in NULL_OPERATORS:
            return f"{self.column} {self.operator}"

        if list_forms and self.operator in LIST_OPERATORS:
            params.extend(self.params)
            return f"{self.column} {self.operator} {self.value}"

        params.append(self.value)
        return f"{self.column} {self.operator} {PLACEHOLDER}"


class JoinClause(QueryKitBaseModel):
    """One JOIN with a pre-validated ON condition."""
    model_config = ConfigDict(frozen=True, validate_default=True)

    join_type: JoinType = JoinType.INNER
    table: str
    on: str

    def render(self) -> str:
        return f"{self.join_type} JOIN {self.table} ON {self.on}"
