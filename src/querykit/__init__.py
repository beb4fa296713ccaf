from querykit.__version__ import __version__

from querykit.query_builder import (
    QueryBuilder,
    Scope,
    active,
    recent,
    oldest,
    published,
    draft,
)
from querykit.models import Model

from querykit.engines import SQLAlchemyExecutor, SQLAlchemyTransaction

from querykit.common.exceptions import QueryKitError, ErrorCode
from querykit.types import ExecResult

# Utils (public API)
from querykit.utils import (
    get_current_timestamp,
    traced,
)


__all__ = [
    "__version__",

    "QueryBuilder",
    "Model",
    "Scope",
    "active",
    "recent",
    "oldest",
    "published",
    "draft",

    # Execution port
    "SQLAlchemyExecutor",
    "SQLAlchemyTransaction",
    "ExecResult",

    # Exceptions (public API)
    "QueryKitError",
    "ErrorCode",

    # Utilities (public API)
    "get_current_timestamp",
    "traced",
]
