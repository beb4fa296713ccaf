"""Constants module for querykit.

This module contains all constant values and enumerations used throughout
querykit. It has no dependencies on other querykit modules.
"""

from querykit.constants.sql import (
    AGGREGATE_FUNCTIONS,
    DEFAULT_PER_PAGE,
    DEFAULT_PRIMARY_KEY,
    DEFAULT_SOFT_DELETE_COLUMN,
    DEFAULT_TIMESTAMP_COLUMN,
    LIST_OPERATORS,
    NULL_OPERATORS,
    PLACEHOLDER,
    VALID_OPERATORS,
    JoinType,
    LogicalOperator,
    QueryType,
    SortDirection,
)

__all__ = [
    "QueryType",
    "JoinType",
    "LogicalOperator",
    "SortDirection",
    "VALID_OPERATORS",
    "NULL_OPERATORS",
    "LIST_OPERATORS",
    "AGGREGATE_FUNCTIONS",
    "PLACEHOLDER",
    "DEFAULT_PRIMARY_KEY",
    "DEFAULT_SOFT_DELETE_COLUMN",
    "DEFAULT_TIMESTAMP_COLUMN",
    "DEFAULT_PER_PAGE",
]
