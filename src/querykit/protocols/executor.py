"""Execution port protocol definitions.

The query builder never talks to a database directly. It hands finished SQL
text (``?`` placeholders) and an ordered parameter list to an object that
satisfies these protocols. A connection pool and an open transaction both
implement ``QueryExecutor``; only the pool also implements
``TransactionBeginner``.
"""

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from querykit.types.results import ExecResult

Row = Mapping[str, Any]


@runtime_checkable
class PreparedStatementProtocol(Protocol):
    """A statement text bound to an executor for repeated use."""

    sql: str

    def query(self, params: Sequence[Any] = ()) -> Sequence[Row]:
        """Run the statement and return all rows."""
        ...

    def execute(self, params: Sequence[Any] = ()) -> ExecResult:
        """Run the statement for its side effects."""
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """Protocol for objects able to run statements.

    The protocol is marked as runtime_checkable so builders can verify
    capabilities with isinstance() before relying on them.
    """

    def query(self, sql: str, params: Sequence[Any] = ()) -> Sequence[Row]:
        """Execute a statement returning rows.

        Args:
            sql: Statement text with ``?`` placeholders
            params: Positional parameters, one per placeholder

        Returns:
            Buffered rows, each addressable by column name
        """
        ...

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Row]:
        """Execute a statement and return its first row, or None."""
        ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        """Execute a statement for its side effects.

        Returns:
            ExecResult with last-inserted id and affected row count
        """
        ...

    def prepare(self, sql: str) -> PreparedStatementProtocol:
        """Bind a statement text for repeated execution."""
        ...


@runtime_checkable
class Transaction(QueryExecutor, Protocol):
    """An open transaction. Statements run sequentially on one connection."""

    def commit(self) -> None:
        """Commit the transaction."""
        ...

    def rollback(self) -> None:
        """Roll the transaction back."""
        ...


@runtime_checkable
class TransactionBeginner(Protocol):
    """Capability to open a transaction. Implemented by pools only."""

    def begin(self) -> Transaction:
        """Open a new transaction."""
        ...
