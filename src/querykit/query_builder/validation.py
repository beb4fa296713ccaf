"""Identifier, operator and expression validation.

Every table name, column name, operator, select expression and join
condition passed to the query builder goes through one of these checks
before it is allowed anywhere near SQL text. Values never do: they travel as
bound parameters. The patterns are compiled once at import time and are safe
for concurrent use.

Security Principles:
    1. **Whitelist Approach**: only known-safe shapes are accepted
    2. **No Literals**: join conditions may compare columns, never values
    3. **Pure Functions**: validators return bool and never raise
"""

import re
from typing import Any

from querykit.constants.sql import AGGREGATE_FUNCTIONS, VALID_OPERATORS, SortDirection

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"
_QUALIFIED_NAME = rf"{_NAME}\.{_NAME}"

IDENTIFIER_PATTERN = re.compile(rf"{_NAME}(\.{_NAME})?")

# Aggregate arguments are limited to *, an integer literal, or an optionally
# DISTINCT column.
AGGREGATE_PATTERN = re.compile(
    rf"({'|'.join(AGGREGATE_FUNCTIONS)})\s*\(\s*(\*|\d+|(DISTINCT\s+)?{_NAME}(\.{_NAME})?)\s*\)(\s+AS\s+{_NAME})?"
)

ALIAS_PATTERN = re.compile(rf"{_NAME}(\.{_NAME})?\s+AS\s+{_NAME}")

_JOIN_COMPARISON = rf"{_QUALIFIED_NAME}\s*=\s*{_QUALIFIED_NAME}"
JOIN_CONDITION_PATTERN = re.compile(
    rf"{_JOIN_COMPARISON}(\s+(AND|OR)\s+{_JOIN_COMPARISON})*"
)

_QUOTE_CHARS = ("`", '"')


def is_valid_identifier(value: Any) -> bool:
    """Check a table or column name.

    Accepts a bare identifier, optionally qualified once (``table.column``),
    or a whole-string quoted identifier using backticks or double quotes
    whose non-empty body contains no quote character.

    Args:
        value: Candidate identifier

    Returns:
        True if the identifier is safe to splice into SQL
    """
    if not isinstance(value, str):
        return False

    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTE_CHARS:
        inner = value[1:-1]
        return len(inner) > 0 and not any(q in inner for q in _QUOTE_CHARS)

    return IDENTIFIER_PATTERN.fullmatch(value) is not None


def is_valid_operator(operator: Any) -> bool:
    """Check a comparison operator against the whitelist (case-insensitive)."""
    if not isinstance(operator, str):
        return False
    return operator.upper() in VALID_OPERATORS


def is_valid_select_expression(expression: Any) -> bool:
    """Check an aggregate call or an aliased column.

    Accepted shapes:
        - ``COUNT(*)``, ``SUM(amount)``, ``max(id) AS top`` (keyword case-insensitive)
        - ``users.name AS author``
    """
    if not isinstance(expression, str):
        return False
    if AGGREGATE_PATTERN.fullmatch(expression.upper()):
        return True
    return ALIAS_PATTERN.fullmatch(expression) is not None


def is_valid_join_condition(condition: Any) -> bool:
    """Check a JOIN ... ON condition.

    Only ``a.col = b.col`` comparisons chained with AND/OR are accepted.
    Literals, parentheses and other operators are rejected.
    """
    if not isinstance(condition, str):
        return False
    return JOIN_CONDITION_PATTERN.fullmatch(condition) is not None


def is_valid_order_direction(direction: Any) -> bool:
    """Check an ORDER BY direction (case-insensitive ASC/DESC)."""
    if not isinstance(direction, str):
        return False
    return direction.upper() in (SortDirection.ASC.value, SortDirection.DESC.value)
