"""Base model class for all querykit models with serialization support."""

from typing import Any, Dict
from pydantic import BaseModel, ConfigDict


class QueryKitBaseModel(BaseModel):
    """Base model for querykit value types.

    Provides consistent configuration and ``to_dict()`` serialization for
    conditions, join clauses and execution results.
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        use_enum_values=True,
        validate_assignment=True
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary for serialization.

        Nested QueryKitBaseModel instances are converted recursively and
        enums are reduced to their values.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        data = self.model_dump(by_alias=False, exclude_none=True)

        def convert_nested(obj):
            if isinstance(obj, QueryKitBaseModel):
                return obj.to_dict()
            elif isinstance(obj, dict):
                return {k: convert_nested(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [convert_nested(item) for item in obj]
            return obj

        return convert_nested(data)
