"""Value types shared across querykit."""

from querykit.types.base import QueryKitBaseModel
from querykit.types.results import ExecResult

__all__ = [
    "QueryKitBaseModel",
    "ExecResult",
]
