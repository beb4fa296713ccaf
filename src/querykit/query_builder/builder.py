"""Fluent, injection-resistant query builder.

A ``QueryBuilder`` accumulates clauses through chainable mutators and turns
them into SQL only at a terminal call (``to_sql``, ``get``, ``insert`` ...).
Every identifier, operator and expression is validated when it is added;
values always travel as bound parameters.

Mutators never raise. The first validation failure is recorded on the
builder and is never cleared; every later terminal call raises that same
error. Call ``validate()`` to surface it explicitly.

Example:
    >>> qb = QueryBuilder().table("users").where("age", ">", 18).order_by("name")
    >>> qb.to_sql()
    ('SELECT * FROM users WHERE age > ? ORDER BY name ASC', [18])
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from querykit.common.exceptions import (
    ErrorCode,
    QueryKitError,
    configuration_error,
    precondition_error,
    transaction_error,
    validation_error,
)
from querykit.constants.sql import (
    NULL_OPERATORS,
    JoinType,
    LogicalOperator,
    QueryType,
    SortDirection,
)
from querykit.logging import get_logger
from querykit.protocols.executor import QueryExecutor, Row
from querykit.query_builder.compiler import StatementCompiler
from querykit.query_builder.conditions import Condition, JoinClause
from querykit.query_builder.validation import (
    is_valid_identifier,
    is_valid_join_condition,
    is_valid_operator,
    is_valid_order_direction,
    is_valid_select_expression,
)
from querykit.types.results import ExecResult
from querykit.utils.datetime import get_current_timestamp

if TYPE_CHECKING:
    from querykit.query_builder.scopes import Scope
    from querykit.settings import QueryKitSettings

logger = get_logger(__name__)

T = TypeVar("T")

ChunkCallback = Callable[[Sequence[Row]], Optional[bool]]

_compiler = StatementCompiler()


def _as_values(value: Any) -> Tuple[Any, ...]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(value)
    return (value,)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _row_key(column: str) -> str:
    """Key under which a (possibly qualified or quoted) column appears in a row."""
    if column[0] in "`\"":
        return column[1:-1]
    return column.rsplit(".", 1)[-1]


class QueryBuilder:
    """Builds and runs one logical query.

    Args:
        executor: Execution port used by terminal calls. A pool should also
            implement ``TransactionBeginner`` for ``transaction()``.
        settings: Optional settings override; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        settings: Optional["QueryKitSettings"] = None,
        *,
        in_transaction: bool = False,
    ):
        self._executor = executor
        self._settings = settings
        self._in_transaction = in_transaction
        self._error: Optional[QueryKitError] = None

        self.table_name: str = ""
        self.columns: List[str] = []
        self.wheres: List[Condition] = []
        self.havings: List[Condition] = []
        self.joins: List[JoinClause] = []
        self.orders: List[str] = []
        self.groups: List[str] = []
        self.limit_count: int = 0
        self.offset_count: int = 0
        self.union_query: Optional["QueryBuilder"] = None
        self.is_union_all: bool = False
        self.include_trashed: bool = False
        self.soft_delete_column: Optional[str] = None

    @property
    def settings(self) -> "QueryKitSettings":
        if self._settings is None:
            from querykit.settings import get_settings
            return get_settings()
        return self._settings

    @property
    def executor(self) -> Optional[QueryExecutor]:
        return self._executor

    @property
    def error(self) -> Optional[QueryKitError]:
        """The first recorded validation error, if any."""
        return self._error

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def _fail(
        self,
        message: str,
        field: str,
        value: Any,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> "QueryBuilder":
        if self._error is None:
            self._error = validation_error(message, field=field, value=value, error_code=error_code)
        return self

    def _child(self) -> "QueryBuilder":
        """Fresh builder sharing only the execution handle."""
        return QueryBuilder(self._executor, self._settings, in_transaction=self._in_transaction)

    def _copy(self) -> "QueryBuilder":
        """Child builder carrying this builder's clauses (not its union)."""
        clone = self._child()
        clone._error = self._error
        clone.table_name = self.table_name
        clone.columns = list(self.columns)
        clone.wheres = list(self.wheres)
        clone.havings = list(self.havings)
        clone.joins = list(self.joins)
        clone.orders = list(self.orders)
        clone.groups = list(self.groups)
        clone.limit_count = self.limit_count
        clone.offset_count = self.offset_count
        clone.include_trashed = self.include_trashed
        clone.soft_delete_column = self.soft_delete_column
        return clone

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def table(self, name: str) -> "QueryBuilder":
        if not is_valid_identifier(name):
            return self._fail(f"invalid table name: {name!r}", "table", name, ErrorCode.INVALID_IDENTIFIER)
        self.table_name = name
        return self

    def select(self, *columns: str) -> "QueryBuilder":
        """Replace the selected columns. No columns means ``*``."""
        for column in columns:
            if column == "*" or is_valid_select_expression(column):
                continue
            if not is_valid_identifier(column):
                return self._fail(f"invalid column name: {column!r}", "select", column, ErrorCode.INVALID_IDENTIFIER)
        self.columns = list(columns)
        return self

    def _add_where(self, column: str, operator: str, value: Any, logic: LogicalOperator, mutation: str) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in {mutation}: {column!r}", mutation, column, ErrorCode.INVALID_IDENTIFIER
            )
        if not is_valid_operator(operator):
            return self._fail(
                f"invalid operator in {mutation}: {operator!r}", mutation, operator, ErrorCode.INVALID_OPERATOR
            )

        op = operator.upper()
        if op in NULL_OPERATORS:
            condition = Condition(column=column, operator=op, logic=logic)
        elif op in ("IN", "NOT IN"):
            condition = Condition.in_list(column, _as_values(value), negate=(op == "NOT IN"), logic=logic)
        elif op == "BETWEEN":
            bounds = _as_values(value)
            if len(bounds) != 2:
                return self._fail(
                    f"BETWEEN in {mutation} expects two values, got {len(bounds)}", mutation, value
                )
            condition = Condition.between(column, bounds[0], bounds[1], logic=logic)
        else:
            condition = Condition(column=column, operator=op, value=value, logic=logic)

        self.wheres.append(condition)
        return self

    def where(self, column: str, operator: str, value: Any = None) -> "QueryBuilder":
        """Add an AND condition.

        IN/NOT IN take a sequence (a scalar is treated as a one-element
        list), BETWEEN takes a pair, IS NULL/IS NOT NULL ignore ``value``.
        """
        return self._add_where(column, operator, value, LogicalOperator.AND, "where")

    def or_where(self, column: str, operator: str, value: Any = None) -> "QueryBuilder":
        return self._add_where(column, operator, value, LogicalOperator.OR, "or_where")

    def where_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in where_in: {column!r}", "where_in", column, ErrorCode.INVALID_IDENTIFIER
            )
        self.wheres.append(Condition.in_list(column, tuple(values)))
        return self

    def where_not_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in where_not_in: {column!r}", "where_not_in", column, ErrorCode.INVALID_IDENTIFIER
            )
        self.wheres.append(Condition.in_list(column, tuple(values), negate=True))
        return self

    def where_between(self, column: str, start: Any, end: Any) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in where_between: {column!r}", "where_between", column, ErrorCode.INVALID_IDENTIFIER
            )
        self.wheres.append(Condition.between(column, start, end))
        return self

    def where_null(self, column: str) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in where_null: {column!r}", "where_null", column, ErrorCode.INVALID_IDENTIFIER
            )
        self.wheres.append(Condition(column=column, operator="IS NULL"))
        return self

    def where_not_null(self, column: str) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in where_not_null: {column!r}", "where_not_null", column, ErrorCode.INVALID_IDENTIFIER
            )
        self.wheres.append(Condition(column=column, operator="IS NOT NULL"))
        return self

    def _add_join(self, join_type: JoinType, table: str, on: str, mutation: str) -> "QueryBuilder":
        if not is_valid_identifier(table):
            return self._fail(
                f"invalid table name in {mutation}: {table!r}", mutation, table, ErrorCode.INVALID_IDENTIFIER
            )
        if not is_valid_join_condition(on):
            label = "JOIN" if join_type == JoinType.INNER else f"{join_type.value} JOIN"
            return self._fail(f"invalid {label} condition: {on!r}", mutation, on, ErrorCode.INVALID_EXPRESSION)
        self.joins.append(JoinClause(join_type=join_type, table=table, on=on))
        return self

    def join(self, table: str, on: str) -> "QueryBuilder":
        """Add an INNER JOIN. ``on`` must compare qualified columns only."""
        return self._add_join(JoinType.INNER, table, on, "join")

    def left_join(self, table: str, on: str) -> "QueryBuilder":
        return self._add_join(JoinType.LEFT, table, on, "left_join")

    def right_join(self, table: str, on: str) -> "QueryBuilder":
        return self._add_join(JoinType.RIGHT, table, on, "right_join")

    def order_by(self, column: str, direction: str = SortDirection.ASC.value) -> "QueryBuilder":
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid column name in order_by: {column!r}", "order_by", column, ErrorCode.INVALID_IDENTIFIER
            )
        if not direction:
            direction = SortDirection.ASC.value
        if not is_valid_order_direction(direction):
            return self._fail(f"invalid ORDER BY direction: {direction!r}", "order_by", direction)
        self.orders.append(f"{column} {direction.upper()}")
        return self

    def group_by(self, *columns: str) -> "QueryBuilder":
        for column in columns:
            if not is_valid_identifier(column):
                return self._fail(
                    f"invalid column name in group_by: {column!r}", "group_by", column, ErrorCode.INVALID_IDENTIFIER
                )
        self.groups.extend(columns)
        return self

    def having(self, column: str, operator: str, value: Any = None) -> "QueryBuilder":
        """Add a HAVING condition on a column or aggregate such as ``COUNT(*)``.

        Every operator renders with a single placeholder here, IN/BETWEEN
        included; ``value`` is bound as-is.
        """
        if not is_valid_identifier(column) and not is_valid_select_expression(column):
            return self._fail(
                f"invalid column/expression in having: {column!r}", "having", column, ErrorCode.INVALID_EXPRESSION
            )
        if not is_valid_operator(operator):
            return self._fail(f"invalid operator in having: {operator!r}", "having", operator, ErrorCode.INVALID_OPERATOR)
        self.havings.append(Condition(column=column, operator=operator.upper(), value=value))
        return self

    def limit(self, count: int) -> "QueryBuilder":
        """Set LIMIT. Zero or less omits the clause."""
        if not _is_int(count):
            return self._fail(f"invalid limit: {count!r}", "limit", count)
        self.limit_count = count
        return self

    def offset(self, count: int) -> "QueryBuilder":
        """Set OFFSET. Zero or less omits the clause."""
        if not _is_int(count):
            return self._fail(f"invalid offset: {count!r}", "offset", count)
        self.offset_count = count
        return self

    def paginate(self, page: int, per_page: Optional[int] = None) -> "QueryBuilder":
        """Limit to one 1-based page.

        A page below 1 is treated as 1; a missing or non-positive page size
        falls back to the ``default_per_page`` setting.
        """
        if not _is_int(page) or page < 1:
            page = 1
        if not _is_int(per_page) or per_page < 1:
            per_page = self.settings.default_per_page
        return self.limit(per_page).offset((page - 1) * per_page)

    def union(self, query: "QueryBuilder") -> "QueryBuilder":
        return self._set_union(query, False)

    def union_all(self, query: "QueryBuilder") -> "QueryBuilder":
        return self._set_union(query, True)

    def _set_union(self, query: "QueryBuilder", union_all: bool) -> "QueryBuilder":
        mutation = "union_all" if union_all else "union"
        if not isinstance(query, QueryBuilder):
            return self._fail(f"invalid {mutation} query: {query!r}", mutation, query)
        self.union_query = query
        self.is_union_all = union_all
        return self

    def with_soft_deletes(self, column: Optional[str] = None) -> "QueryBuilder":
        """Hide soft-deleted rows unless ``with_trashed``/``only_trashed`` is applied.

        The ``<column> IS NULL`` predicate is emitted as the first WHERE
        condition when the statement is assembled.
        """
        column = column or self.settings.soft_delete_column
        if not is_valid_identifier(column):
            return self._fail(
                f"invalid soft delete column: {column!r}", "with_soft_deletes", column, ErrorCode.INVALID_IDENTIFIER
            )
        self.soft_delete_column = column
        return self

    def with_trashed(self) -> "QueryBuilder":
        """Include soft-deleted rows."""
        self.include_trashed = True
        return self

    def only_trashed(self) -> "QueryBuilder":
        """Return only soft-deleted rows."""
        self.include_trashed = True
        return self.where_not_null(self._trash_column())

    def scope(self, *scopes: "Scope") -> "QueryBuilder":
        """Apply scopes left to right, feeding each one's result to the next."""
        builder = self
        for apply_scope in scopes:
            builder = apply_scope(builder)
        return builder

    def _trash_column(self) -> str:
        return self.soft_delete_column or self.settings.soft_delete_column

    def effective_wheres(self) -> List[Condition]:
        """WHERE conditions including the implicit soft-delete filter."""
        if self.soft_delete_column and not self.include_trashed:
            return [Condition(column=self.soft_delete_column, operator="IS NULL"), *self.wheres]
        return list(self.wheres)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Raise the recorded validation error, or a missing-table error.

        Raises:
            QueryKitError: If any mutator failed or no table was set
        """
        if self._error is not None:
            # Stored instance is raised again on every call; drop the old frames
            raise self._error.with_traceback(None)
        if not self.table_name:
            raise validation_error("table name is required", field="table", error_code=ErrorCode.MISSING_TABLE)

    def to_sql(self) -> Tuple[str, List[Any]]:
        """Assemble the SELECT statement.

        Returns:
            Tuple of SQL text and ordered parameters

        Raises:
            QueryKitError: If the builder is invalid
        """
        return _compiler.compile(QueryType.SELECT, self)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _require_executor(self) -> QueryExecutor:
        if self._executor is None:
            raise configuration_error("no database connection configured", config_key="executor")
        return self._executor

    def get(self) -> List[Row]:
        """Run the SELECT and return all rows."""
        sql, params = self.to_sql()
        return list(self._require_executor().query(sql, params))

    def first(self) -> Optional[Row]:
        """Run the SELECT with LIMIT 1 and return the row, or None.

        Assembly errors are logged and turned into None here; call
        ``to_sql()`` or ``validate()`` when the error itself matters.
        """
        self.limit(1)
        try:
            sql, params = self.to_sql()
        except QueryKitError as exc:
            logger.warning("first() skipped an invalid query", extra={"error": exc.message})
            return None
        return self._require_executor().query_one(sql, params)

    def count(self) -> int:
        """Count matching rows. The selected columns are left untouched."""
        original_columns = self.columns
        self.columns = ["COUNT(*)"]
        try:
            sql, params = self.to_sql()
        finally:
            self.columns = original_columns

        row = self._require_executor().query_one(sql, params)
        if not row:
            return 0
        value = next(iter(row.values()))
        return int(value or 0)

    def exists(self) -> bool:
        return self.count() > 0

    def insert(self, data: Mapping[str, Any]) -> ExecResult:
        """Insert one row. Column order follows ``data``."""
        sql, params = _compiler.compile(QueryType.INSERT, self, data)
        return self._require_executor().execute(sql, params)

    def update(self, data: Mapping[str, Any]) -> ExecResult:
        """Update rows matching the current WHERE conditions."""
        sql, params = _compiler.compile(QueryType.UPDATE, self, data)
        return self._require_executor().execute(sql, params)

    def delete(self) -> ExecResult:
        """Delete rows matching the current WHERE conditions."""
        sql, params = _compiler.compile(QueryType.DELETE, self)
        return self._require_executor().execute(sql, params)

    def soft_delete(self) -> ExecResult:
        """Mark matching rows deleted by stamping the soft-delete column."""
        return self.update({self._trash_column(): get_current_timestamp()})

    def restore(self) -> ExecResult:
        """Clear the soft-delete column on matching rows, trashed ones included."""
        self.include_trashed = True
        return self.update({self._trash_column(): None})

    def force_delete(self) -> ExecResult:
        """Permanently delete matching rows."""
        return self.delete()

    def raw(self, sql: str, *params: Any) -> List[Row]:
        """Run caller-supplied SQL unvalidated. Bind every value through ``params``."""
        executor = self._require_executor()
        logger.debug("Raw statement", extra={"db.operation": QueryType.RAW.value, "param_count": len(params)})
        return list(executor.query(sql, list(params)))

    def raw_exec(self, sql: str, *params: Any) -> ExecResult:
        """Execute caller-supplied SQL unvalidated. Bind every value through ``params``."""
        executor = self._require_executor()
        logger.debug("Raw statement", extra={"db.operation": QueryType.RAW.value, "param_count": len(params)})
        return executor.execute(sql, list(params))

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def transaction(self, fn: Callable[["QueryBuilder"], T]) -> T:
        """Run ``fn`` with a builder bound to a new transaction.

        The transaction commits when ``fn`` returns and rolls back when it
        raises, ``KeyboardInterrupt`` and ``SystemExit`` included. The
        exception from ``fn`` is re-raised unchanged unless the
        rollback fails too, in which case a ROLLBACK_ERROR carrying both is
        raised instead.

        Args:
            fn: Callback receiving the transaction-bound builder

        Returns:
            Whatever ``fn`` returns

        Raises:
            QueryKitError: CONFIG_ERROR without a transaction-capable
                executor, TRANSACTION_* on begin/commit/rollback failures
        """
        if self._in_transaction:
            raise transaction_error("nested transactions are not supported")
        # Only pools implement begin(); an open transaction does not
        begin = getattr(self._executor, "begin", None)
        if not callable(begin):
            raise configuration_error("cannot start transaction: no database connection", config_key="executor")

        try:
            tx = begin()
        except Exception as exc:
            raise transaction_error(f"failed to begin transaction: {exc}", exc) from exc

        logger.debug("Transaction started")
        tx_builder = QueryBuilder(tx, self._settings, in_transaction=True)

        try:
            result = fn(tx_builder)
        except BaseException as exc:
            try:
                tx.rollback()
            except Exception as rollback_exc:
                raise transaction_error(
                    f"rollback failed: {rollback_exc} (original error: {exc})",
                    rollback_exc,
                    error_code=ErrorCode.ROLLBACK_ERROR,
                    details={"original_error": str(exc)},
                ) from rollback_exc
            logger.debug("Transaction rolled back", extra={"error": str(exc)})
            raise

        try:
            tx.commit()
        except Exception as exc:
            raise transaction_error(
                f"failed to commit transaction: {exc}", exc, error_code=ErrorCode.COMMIT_ERROR
            ) from exc

        logger.debug("Transaction committed")
        return result

    # ------------------------------------------------------------------
    # Chunked iteration
    # ------------------------------------------------------------------

    def chunk(self, size: int, callback: ChunkCallback) -> None:
        """Process matching rows one page at a time.

        Pages are fetched with LIMIT/OFFSET and handed to ``callback`` as
        buffered row lists. Iteration stops at the first empty page or when
        ``callback`` returns ``False``.

        Raises:
            QueryKitError: PRECONDITION_ERROR for a non-positive size;
                the first assembly or execution error otherwise
        """
        if not _is_int(size) or size <= 0:
            raise precondition_error("chunk size must be positive", argument="size", value=size)

        offset = 0
        while True:
            page = self._copy()
            page.limit_count = size
            page.offset_count = offset

            rows = page.get()
            logger.debug("Chunk fetched", extra={"offset": offset, "row_count": len(rows)})
            if not rows:
                break
            if callback(rows) is False:
                break
            offset += size

    def chunk_by_id(self, size: int, column: str, callback: ChunkCallback) -> None:
        """Process matching rows in pages keyed on a monotonic column.

        Each page selects ``column > last_id ORDER BY column ASC LIMIT size``.
        ``last_id`` starts at 0 and advances to the key of the last row of
        each page, so the selected columns must include ``column``.

        The key predicate is appended with AND to the flat condition list, so
        an ``or_where`` in the parent is not bounded by it. A page whose
        first key does not exceed ``last_id`` therefore raises instead of
        being handed to ``callback`` again.

        Raises:
            QueryKitError: PRECONDITION_ERROR for a non-positive size, an
                invalid column, rows missing the key column, or a page that
                does not advance past ``last_id``
        """
        if not _is_int(size) or size <= 0:
            raise precondition_error("chunk size must be positive", argument="size", value=size)
        if not is_valid_identifier(column):
            raise precondition_error(f"invalid column name: {column!r}", argument="column", value=column)

        key = _row_key(column)
        last_id: Any = 0
        first_page = True
        while True:
            page = self._copy()
            page.wheres.append(Condition(column=column, operator=">", value=last_id))
            page.orders = [f"{column} {SortDirection.ASC.value}"]
            page.limit_count = size
            page.offset_count = 0

            rows = page.get()
            logger.debug("Chunk fetched", extra={"last_id": last_id, "row_count": len(rows)})
            if not rows:
                break

            if key not in rows[0] or key not in rows[-1]:
                raise precondition_error(
                    f"chunk_by_id rows do not include key column {key!r}", argument="column", value=column
                )
            if not first_page and not rows[0][key] > last_id:
                raise precondition_error(
                    f"chunk_by_id page did not advance past {column} = {last_id!r};"
                    " OR conditions are not bounded by the key predicate",
                    argument="column",
                    value=column,
                )

            if callback(rows) is False:
                break
            last_id = rows[-1][key]
            first_page = False

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def has_many(self, related_table: str, foreign_key: str, value: Any) -> "QueryBuilder":
        """Builder for rows of ``related_table`` whose ``foreign_key`` equals ``value``."""
        return self._child().table(related_table).where(foreign_key, "=", value)

    def belongs_to(self, related_table: str, foreign_key_value: Any, owner_key: str = "id") -> "QueryBuilder":
        """Builder for the parent row of ``related_table`` referenced by ``foreign_key_value``."""
        return self._child().table(related_table).where(owner_key, "=", foreign_key_value)
