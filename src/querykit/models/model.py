"""Table abstraction on top of the query builder."""

from typing import TYPE_CHECKING, Any, List, Mapping, Optional

from querykit.constants.sql import DEFAULT_PRIMARY_KEY
from querykit.logging import get_logger
from querykit.protocols.executor import QueryExecutor, Row
from querykit.query_builder.builder import QueryBuilder
from querykit.types.results import ExecResult

if TYPE_CHECKING:
    from querykit.settings import QueryKitSettings

logger = get_logger(__name__)


class Model:
    """Table metadata that hands out pre-configured builders.

    ``query()`` is the root of every read. When soft delete is enabled it
    hides rows whose ``deleted_at`` is set, unless the chain applies
    ``with_trashed()`` or ``only_trashed()``. Writes (``create``, ``update``,
    ``delete``) always use a plain builder for the table.

    Args:
        table: Table name, validated when the first builder is created
        primary_key: Primary key column used by ``find``/``update``/``delete``
        soft_delete: Whether reads exclude soft-deleted rows
        executor: Execution port shared by every builder this model creates
        settings: Optional settings override passed through to builders

    Example:
        >>> users = Model("users", soft_delete=True, executor=executor)
        >>> users.query().where("age", ">", 18).to_sql()
        ('SELECT * FROM users WHERE deleted_at IS NULL AND age > ?', [18])
    """

    def __init__(
        self,
        table: str,
        primary_key: str = DEFAULT_PRIMARY_KEY,
        soft_delete: bool = False,
        executor: Optional[QueryExecutor] = None,
        settings: Optional["QueryKitSettings"] = None,
    ):
        self._table = table
        self._primary_key = primary_key
        self._soft_delete = soft_delete
        self._executor = executor
        self._settings = settings

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(table={self._table!r}, "
            f"primary_key={self._primary_key!r}, soft_delete={self._soft_delete})"
        )

    @property
    def table(self) -> str:
        return self._table

    @property
    def primary_key(self) -> str:
        return self._primary_key

    @property
    def has_soft_delete(self) -> bool:
        return self._soft_delete

    def with_primary_key(self, primary_key: str) -> "Model":
        self._primary_key = primary_key
        return self

    def with_soft_delete(self) -> "Model":
        self._soft_delete = True
        return self

    def _builder(self) -> QueryBuilder:
        return QueryBuilder(self._executor, self._settings).table(self._table)

    def query(self) -> QueryBuilder:
        """Builder for this table, soft-delete filtering applied when enabled."""
        qb = self._builder()
        if self._soft_delete:
            qb = qb.with_soft_deletes()
        return qb

    def find(self, id: Any) -> Optional[Row]:
        """Fetch one row by primary key, or None."""
        return self.query().where(self._primary_key, "=", id).first()

    def all(self) -> List[Row]:
        return self.query().get()

    def create(self, data: Mapping[str, Any]) -> ExecResult:
        return self._builder().insert(data)

    def update(self, id: Any, data: Mapping[str, Any]) -> ExecResult:
        return self._builder().where(self._primary_key, "=", id).update(data)

    def delete(self, id: Any) -> ExecResult:
        """Hard delete by primary key. Use ``query().where(...).soft_delete()`` to trash instead."""
        logger.debug("Deleting row", extra={"table": self._table, "primary_key": self._primary_key})
        return self._builder().where(self._primary_key, "=", id).delete()

    def has_many(self, related_table: str, foreign_key: str, id: Any) -> QueryBuilder:
        """Builder for child rows of ``related_table`` pointing at ``id``."""
        return self.query().has_many(related_table, foreign_key, id)

    def belongs_to(self, related_table: str, foreign_key_value: Any, owner_key: str = DEFAULT_PRIMARY_KEY) -> QueryBuilder:
        """Builder for the parent row in ``related_table``."""
        return self.query().belongs_to(related_table, foreign_key_value, owner_key)
