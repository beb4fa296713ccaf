"""Execution port implementations.

``SQLAlchemyExecutor`` satisfies both ``QueryExecutor`` and
``TransactionBeginner``; ``SQLAlchemyTransaction`` satisfies ``Transaction``.
"""

from querykit.engines.sqlalchemy_engine import (
    PreparedStatement,
    SQLAlchemyExecutor,
    SQLAlchemyTransaction,
)

__all__ = [
    "SQLAlchemyExecutor",
    "SQLAlchemyTransaction",
    "PreparedStatement",
]
