"""Statement assembly.

Turns the state accumulated by a ``QueryBuilder`` into SQL text plus an
ordered parameter list. Assembly is deterministic: the same builder state
always yields the same text and parameters, and the number of ``?``
placeholders always equals the number of parameters.

SELECT clause order is fixed::

    SELECT, FROM, JOIN..., WHERE, GROUP BY, HAVING, ORDER BY, LIMIT, OFFSET, UNION

INSERT/UPDATE/DELETE build their own text but share the WHERE renderer.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from querykit.common.exceptions import ErrorCode, validation_error
from querykit.constants.sql import PLACEHOLDER, QueryType
from querykit.logging import get_logger
from querykit.query_builder.conditions import Condition
from querykit.query_builder.validation import is_valid_identifier

if TYPE_CHECKING:
    from querykit.query_builder.builder import QueryBuilder

logger = get_logger(__name__)

Statement = Tuple[str, List[Any]]


def compile_conditions(
    conditions: Sequence[Condition],
    params: List[Any],
    list_forms: bool = True,
) -> str:
    """Join conditions with their own connectives.

    The first condition's connective is ignored.

    Args:
        conditions: Conditions in the order they were added
        params: Output parameter list, extended in placeholder order
        list_forms: Render IN/BETWEEN with their precomputed placeholder text

    Returns:
        Condition text without the WHERE/HAVING keyword
    """
    parts: List[str] = []
    for index, condition in enumerate(conditions):
        if index > 0:
            parts.append(f" {condition.logic} ")
        parts.append(condition.render(params, list_forms=list_forms))
    return "".join(parts)


class StatementCompiler:
    """Assembles SQL statements from builder state.

    The compiler never validates identifiers that the builder has already
    validated; it only checks the builder's sticky error and the deferred
    table-name requirement, and validates the column keys of INSERT/UPDATE
    payloads, which never pass through a mutator.
    """

    def compile(
        self,
        query_type: QueryType,
        builder: "QueryBuilder",
        data: Optional[Mapping[str, Any]] = None,
    ) -> Statement:
        """Build a statement for the given builder.

        Args:
            query_type: SELECT, INSERT, UPDATE or DELETE
            builder: Builder holding the accumulated clauses
            data: Column -> value payload for INSERT/UPDATE

        Returns:
            Tuple of SQL text and ordered parameters

        Raises:
            QueryKitError: If the builder carries a validation error, has no
                table, or the payload is invalid
        """
        builder.validate()

        statement_mapping: Dict[QueryType, Callable[..., Statement]] = {
            QueryType.SELECT: lambda: self._build_select(builder),
            QueryType.INSERT: lambda: self._build_insert(builder, data),
            QueryType.UPDATE: lambda: self._build_update(builder, data),
            QueryType.DELETE: lambda: self._build_delete(builder),
        }

        build = statement_mapping.get(query_type)
        if build is None:
            raise NotImplementedError(
                f"Statement type {query_type} not supported by {self.__class__.__name__}"
            )

        sql, params = build()
        logger.debug(
            "Statement assembled",
            extra={"db.operation": query_type.value, "db.statement": sql, "param_count": len(params)},
        )
        return sql, params

    def _build_select(self, builder: "QueryBuilder") -> Statement:
        params: List[Any] = []
        columns = ", ".join(builder.columns) if builder.columns else "*"
        parts = [f"SELECT {columns}", f"FROM {builder.table_name}"]

        for join in builder.joins:
            parts.append(join.render())

        wheres = builder.effective_wheres()
        if wheres:
            parts.append(f"WHERE {compile_conditions(wheres, params)}")

        if builder.groups:
            parts.append(f"GROUP BY {', '.join(builder.groups)}")

        if builder.havings:
            parts.append(f"HAVING {compile_conditions(builder.havings, params, list_forms=False)}")

        if builder.orders:
            parts.append(f"ORDER BY {', '.join(builder.orders)}")

        if builder.limit_count > 0:
            parts.append(f"LIMIT {builder.limit_count}")

        if builder.offset_count > 0:
            parts.append(f"OFFSET {builder.offset_count}")

        if builder.union_query is not None:
            union_sql, union_params = self.compile(QueryType.SELECT, builder.union_query)
            keyword = "UNION ALL" if builder.is_union_all else "UNION"
            parts.append(f"{keyword} {union_sql}")
            params.extend(union_params)

        return " ".join(parts), params

    def _validate_payload(self, data: Optional[Mapping[str, Any]], statement: str) -> Mapping[str, Any]:
        if not data:
            raise validation_error(
                f"{statement} requires at least one column",
                field=statement.lower(),
            )
        for column in data:
            if not is_valid_identifier(column):
                raise validation_error(
                    f"invalid column name in {statement.lower()}: {column!r}",
                    field=statement.lower(),
                    value=column,
                    error_code=ErrorCode.INVALID_IDENTIFIER,
                )
        return data

    def _build_insert(self, builder: "QueryBuilder", data: Optional[Mapping[str, Any]]) -> Statement:
        payload = self._validate_payload(data, "INSERT")
        columns = ", ".join(payload.keys())
        placeholders = ", ".join(PLACEHOLDER for _ in payload)
        sql = f"INSERT INTO {builder.table_name} ({columns}) VALUES ({placeholders})"
        return sql, list(payload.values())

    def _build_update(self, builder: "QueryBuilder", data: Optional[Mapping[str, Any]]) -> Statement:
        payload = self._validate_payload(data, "UPDATE")
        params: List[Any] = list(payload.values())
        assignments = ", ".join(f"{column} = {PLACEHOLDER}" for column in payload)
        sql = f"UPDATE {builder.table_name} SET {assignments}"

        wheres = builder.effective_wheres()
        if wheres:
            sql += f" WHERE {compile_conditions(wheres, params)}"
        return sql, params

    def _build_delete(self, builder: "QueryBuilder") -> Statement:
        params: List[Any] = []
        sql = f"DELETE FROM {builder.table_name}"

        wheres = builder.effective_wheres()
        if wheres:
            sql += f" WHERE {compile_conditions(wheres, params)}"
        return sql, params
