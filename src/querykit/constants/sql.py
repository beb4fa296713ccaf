"""SQL and query-related constants.

This module contains the enums and fixed vocabularies used by the query
builder, the statement assembler and the execution port. It has no
dependencies on other querykit modules.
"""

from enum import Enum
from typing import FrozenSet


class QueryType(str, Enum):
    """SQL statement type enumeration.

    Used to label statements for logging and tracing.
    """

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RAW = "RAW"


class JoinType(str, Enum):
    """Supported JOIN kinds."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class LogicalOperator(str, Enum):
    """Connective placed before a condition when it is not the first one."""

    AND = "AND"
    OR = "OR"


class SortDirection(str, Enum):
    """ORDER BY directions."""

    ASC = "ASC"
    DESC = "DESC"


# Comparison operators accepted by where()/having(), compared upper-cased.
VALID_OPERATORS: FrozenSet[str] = frozenset({
    "=", "!=", "<>", "<", ">", "<=", ">=",
    "LIKE", "NOT LIKE",
    "IN", "NOT IN",
    "BETWEEN",
    "IS NULL", "IS NOT NULL",
    "REGEXP",
})

# Operators rendered without a placeholder.
NULL_OPERATORS: FrozenSet[str] = frozenset({"IS NULL", "IS NOT NULL"})

# Operators whose value text and parameters are precomputed by the mutator.
LIST_OPERATORS: FrozenSet[str] = frozenset({"IN", "NOT IN", "BETWEEN"})

AGGREGATE_FUNCTIONS = ("COUNT", "SUM", "AVG", "MIN", "MAX", "GROUP_CONCAT")

PLACEHOLDER = "?"

DEFAULT_PRIMARY_KEY = "id"
DEFAULT_SOFT_DELETE_COLUMN = "deleted_at"
DEFAULT_TIMESTAMP_COLUMN = "created_at"
DEFAULT_PER_PAGE = 15
