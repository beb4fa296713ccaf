"""Result types returned by the execution port."""

from typing import Optional

from pydantic import ConfigDict, Field

from querykit.types.base import QueryKitBaseModel


class ExecResult(QueryKitBaseModel):
    """Outcome of an INSERT/UPDATE/DELETE or raw statement.

    Attributes:
        last_insert_id: Row id generated by the statement, when the driver reports one
        rows_affected: Number of rows changed; -1 when the driver cannot tell
    """
    model_config = ConfigDict(frozen=True)

    last_insert_id: Optional[int] = Field(default=None)
    rows_affected: int = Field(default=0)
