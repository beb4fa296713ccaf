"""Query builder module for safe SQL generation.

Application code composes statements through chainable mutators; the
builder validates every identifier, operator and expression on the way in
and emits parameterized SQL (``?`` placeholders) on the way out. Execution
is delegated to any object satisfying ``querykit.protocols.QueryExecutor``.

Architecture:
    - validation.py: whitelist checks for identifiers, operators, expressions
    - conditions.py: immutable WHERE/HAVING predicates and JOIN clauses
    - compiler.py: deterministic SELECT/INSERT/UPDATE/DELETE assembly
    - builder.py: the fluent ``QueryBuilder`` and its execution facade
    - scopes.py: reusable query fragments

Design Principles:
    1. **Security First**: nothing unvalidated is spliced into SQL text
    2. **First Error Wins**: mutators record, terminal calls raise
    3. **Values Are Parameters**: every value is a bound placeholder

Example:
    >>> from querykit.query_builder import QueryBuilder, active
    >>> QueryBuilder().table("users").scope(active).limit(10).to_sql()
    ('SELECT * FROM users WHERE active = ? LIMIT 10', [True])
"""

from querykit.query_builder.builder import QueryBuilder
from querykit.query_builder.compiler import StatementCompiler, compile_conditions
from querykit.query_builder.conditions import Condition, JoinClause
from querykit.query_builder.scopes import Scope, active, draft, oldest, published, recent
from querykit.query_builder.validation import (
    is_valid_identifier,
    is_valid_join_condition,
    is_valid_operator,
    is_valid_order_direction,
    is_valid_select_expression,
)

__all__ = [
    "QueryBuilder",
    "StatementCompiler",
    "compile_conditions",
    "Condition",
    "JoinClause",
    # Scopes
    "Scope",
    "active",
    "recent",
    "oldest",
    "published",
    "draft",
    # Validation
    "is_valid_identifier",
    "is_valid_operator",
    "is_valid_select_expression",
    "is_valid_join_condition",
    "is_valid_order_direction",
]
