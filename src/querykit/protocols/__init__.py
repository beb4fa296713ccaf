"""Protocol definitions for the execution port."""

from querykit.protocols.executor import (
    PreparedStatementProtocol,
    QueryExecutor,
    Row,
    Transaction,
    TransactionBeginner,
)

__all__ = [
    "PreparedStatementProtocol",
    "QueryExecutor",
    "Row",
    "Transaction",
    "TransactionBeginner",
]
