import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ContextManager, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine, make_url

from querykit.common.exceptions import configuration_error, query_execution_error
from querykit.logging import get_logger
from querykit.protocols.executor import Row
from querykit.types.results import ExecResult
from querykit.utils.decorators import traced

if TYPE_CHECKING:
    from querykit.settings import QueryKitSettings

logger = get_logger(__name__)


class _SQLAlchemyRunner(ABC):
    """Shared statement execution over a SQLAlchemy connection.

    Subclasses decide where connections come from: the executor checks one
    out of the pool per call, a transaction reuses the connection it holds.
    Statements are sent with ``exec_driver_sql`` so the builder's ``?``
    placeholders reach the DBAPI driver untouched.
    """

    _settings: Optional["QueryKitSettings"] = None

    @property
    def settings(self) -> "QueryKitSettings":
        if self._settings is None:
            from querykit.settings import get_settings
            return get_settings()
        return self._settings

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        pass

    @property
    def in_transaction(self) -> bool:
        return False

    @abstractmethod
    def _read_connection(self) -> ContextManager[Connection]:
        """Connection for a statement that only reads."""
        pass

    @abstractmethod
    def _write_connection(self) -> ContextManager[Connection]:
        """Connection for a statement that must be committed."""
        pass

    def _span_attributes(self, sql: str, *, operation: str) -> Dict[str, Any]:
        """Build OpenTelemetry span attributes for a statement."""
        limit = self.settings.max_statement_log_length
        statement = (sql or "").strip()
        if len(statement) > limit:
            statement = f"{statement[:limit - 3]}..."

        attributes: Dict[str, Any] = {
            "db.system": self.dialect_name,
            "db.operation": operation,
            "querykit.in_transaction": self.in_transaction,
        }
        if statement:
            attributes["db.statement"] = statement
            attributes["db.statement.length"] = len(statement)
        return attributes

    def _payload(self, operation: str, params: Sequence[Any]) -> Dict[str, Any]:
        return {
            "db.system": self.dialect_name,
            "db.operation": operation,
            "param_count": len(params),
            "in_transaction": self.in_transaction,
        }

    @traced(
        span_name="querykit.db.query",
        attribute_getter=lambda self, sql, params=(): self._span_attributes(sql, operation="query"),
    )
    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        """Execute a statement and fetch every row as a mapping."""
        start_time = time.time()
        payload = self._payload("query", params)

        try:
            with self._read_connection() as conn:
                result = conn.exec_driver_sql(sql, tuple(params))
                rows = result.mappings().all()

            duration = time.time() - start_time
            logger.info(
                "Results fetched",
                extra={**payload, "row_count": len(rows), "duration.seconds": f"{duration:.6f}"},
            )
            return list(rows)

        except Exception as exc:
            duration = time.time() - start_time
            logger.error(
                "Fetch failed",
                extra={**payload, "duration.seconds": f"{duration:.6f}", "error": str(exc)},
                exc_info=True,
            )
            raise query_execution_error(sql, exc) from exc

    @traced(
        span_name="querykit.db.query_one",
        attribute_getter=lambda self, sql, params=(): self._span_attributes(sql, operation="query_one"),
    )
    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Row]:
        """Execute a statement and return its first row, or None."""
        start_time = time.time()
        payload = self._payload("query_one", params)

        try:
            with self._read_connection() as conn:
                result = conn.exec_driver_sql(sql, tuple(params))
                row = result.mappings().first()

            duration = time.time() - start_time
            logger.info(
                "Row fetched",
                extra={**payload, "found": row is not None, "duration.seconds": f"{duration:.6f}"},
            )
            return row

        except Exception as exc:
            duration = time.time() - start_time
            logger.error(
                "Row fetch failed",
                extra={**payload, "duration.seconds": f"{duration:.6f}", "error": str(exc)},
                exc_info=True,
            )
            raise query_execution_error(sql, exc) from exc

    @traced(
        span_name="querykit.db.execute",
        attribute_getter=lambda self, sql, params=(): self._span_attributes(sql, operation="execute"),
    )
    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        """Execute a statement for its side effects."""
        start_time = time.time()
        payload = self._payload("execute", params)

        try:
            with self._write_connection() as conn:
                result = conn.exec_driver_sql(sql, tuple(params))
                outcome = ExecResult(
                    last_insert_id=getattr(result, "lastrowid", None),
                    rows_affected=result.rowcount,
                )

            duration = time.time() - start_time
            logger.info(
                "SQL statement executed",
                extra={**payload, "rows_affected": outcome.rows_affected, "duration.seconds": f"{duration:.6f}"},
            )
            return outcome

        except Exception as exc:
            duration = time.time() - start_time
            logger.error(
                "SQL statement failed",
                extra={**payload, "duration.seconds": f"{duration:.6f}", "error": str(exc)},
                exc_info=True,
            )
            raise query_execution_error(sql, exc) from exc

    def prepare(self, sql: str) -> "PreparedStatement":
        """Bind a statement text to this runner for repeated use."""
        return PreparedStatement(self, sql)


class PreparedStatement:
    """Statement text bound to an executor or transaction."""

    def __init__(self, runner: _SQLAlchemyRunner, sql: str):
        self._runner = runner
        self.sql = sql

    def query(self, params: Sequence[Any] = ()) -> List[Row]:
        return self._runner.query(self.sql, params)

    def query_one(self, params: Sequence[Any] = ()) -> Optional[Row]:
        return self._runner.query_one(self.sql, params)

    def execute(self, params: Sequence[Any] = ()) -> ExecResult:
        return self._runner.execute(self.sql, params)


class SQLAlchemyTransaction(_SQLAlchemyRunner):
    """One open transaction on a dedicated connection.

    Statements run sequentially on the held connection. ``commit`` and
    ``rollback`` end the transaction and return the connection to the pool.
    """

    def __init__(self, connection: Connection, settings: Optional["QueryKitSettings"] = None):
        self._settings = settings
        self._connection = connection
        self._transaction = connection.begin()

    @property
    def dialect_name(self) -> str:
        return self._connection.dialect.name

    @property
    def in_transaction(self) -> bool:
        return True

    @property
    def is_active(self) -> bool:
        return self._transaction.is_active

    @contextmanager
    def _read_connection(self) -> Iterator[Connection]:
        yield self._connection

    @contextmanager
    def _write_connection(self) -> Iterator[Connection]:
        yield self._connection

    def commit(self) -> None:
        try:
            self._transaction.commit()
            logger.debug("Transaction committed", extra={"db.system": self.dialect_name})
        finally:
            self._connection.close()

    def rollback(self) -> None:
        try:
            self._transaction.rollback()
            logger.debug("Transaction rolled back", extra={"db.system": self.dialect_name})
        finally:
            self._connection.close()


class SQLAlchemyExecutor(_SQLAlchemyRunner):
    """Execution port backed by a SQLAlchemy ``Engine`` and its pool.

    Reads check a connection out for the duration of one call; writes run in
    their own short transaction and commit on success. ``begin()`` opens a
    long-lived transaction for the builder's transaction coordinator.

    The builder emits ``?`` placeholders, so the engine's driver must use
    the qmark paramstyle (sqlite3 does).

    Example:
        >>> executor = SQLAlchemyExecutor.from_settings()
        >>> QueryBuilder(executor).table("users").where("id", "=", 1).first()
    """

    def __init__(self, engine: Engine, settings: Optional["QueryKitSettings"] = None):
        self._engine = engine
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: Optional["QueryKitSettings"] = None) -> "SQLAlchemyExecutor":
        """Create an executor with an engine configured from settings.

        Raises:
            QueryKitError: CONFIG_ERROR if the engine cannot be created
        """
        if settings is None:
            from querykit.settings import get_settings
            settings = get_settings()

        try:
            url = make_url(settings.database_url)
            options: Dict[str, Any] = {"echo": settings.echo_sql, "pool_pre_ping": True}
            # sqlite pools do not accept sizing arguments
            if url.get_backend_name() != "sqlite":
                options.update(
                    pool_size=settings.pool_size,
                    max_overflow=settings.max_overflow,
                    pool_timeout=settings.pool_timeout,
                )
            engine = create_engine(url, **options)
        except Exception as exc:
            raise configuration_error(
                f"Failed to create database engine: {exc}",
                config_key="database_url",
                cause=exc,
            ) from exc

        logger.info("Created database engine", extra={"db.system": engine.dialect.name})
        return cls(engine, settings)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    @contextmanager
    def _read_connection(self) -> Iterator[Connection]:
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def _write_connection(self) -> Iterator[Connection]:
        with self._engine.begin() as conn:
            yield conn

    def begin(self) -> SQLAlchemyTransaction:
        """Open a transaction on a dedicated pooled connection."""
        conn = self._engine.connect()
        try:
            transaction = SQLAlchemyTransaction(conn, self._settings)
        except Exception:
            conn.close()
            raise
        logger.debug("Transaction started", extra={"db.system": self.dialect_name})
        return transaction

    def test_connection(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            row = self.query_one("SELECT 1 AS ok")
            return row is not None and row["ok"] == 1
        except Exception as exc:
            logger.error(
                "Connection test failed",
                extra={"db.system": self.dialect_name, "error": str(exc)},
                exc_info=True,
            )
            return False

    def dispose(self) -> None:
        """Close every pooled connection."""
        self._engine.dispose()
