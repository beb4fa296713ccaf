import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from querykit.constants.sql import DEFAULT_PER_PAGE, DEFAULT_SOFT_DELETE_COLUMN
from .base import QueryKitBaseSettings

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class QueryKitSettings(QueryKitBaseSettings):
    """Runtime configuration for the query builder and its SQLAlchemy port.

    Environment variables use the ``QUERYKIT_`` prefix, for example
    ``QUERYKIT_DATABASE_URL`` or ``QUERYKIT_DEFAULT_PER_PAGE``.
    """

    model_config = SettingsConfigDict(
        env_prefix="QUERYKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    database_url: str = Field(
        default="sqlite://",
        description="SQLAlchemy URL used by SQLAlchemyExecutor.from_settings(). The builder emits '?' placeholders, so the driver must use the qmark paramstyle."
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo every statement through SQLAlchemy's own logger"
    )

    pool_size: int = Field(default=5, ge=1, le=100)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: int = Field(default=30, ge=1)

    default_per_page: int = Field(
        default=DEFAULT_PER_PAGE,
        ge=1,
        description="Page size used by paginate() when the caller passes a non-positive value"
    )
    soft_delete_column: str = Field(
        default=DEFAULT_SOFT_DELETE_COLUMN,
        description="Timestamp column marking soft-deleted rows"
    )
    max_statement_log_length: int = Field(
        default=4096,
        ge=64,
        description="Statements longer than this are truncated in spans and logs"
    )
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Expected one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("soft_delete_column")
    @classmethod
    def validate_soft_delete_column(cls, v: str) -> str:
        # Lazy import: validation lives in the query builder package
        from querykit.query_builder.validation import is_valid_identifier
        if not is_valid_identifier(v):
            raise ValueError(f"Invalid soft delete column '{v}'")
        return v


# Singleton instance
_settings: Optional[QueryKitSettings] = None


def get_settings(force_reload: bool = False) -> QueryKitSettings:
    """Get the singleton settings instance.

    Args:
        force_reload: If True, creates a new settings instance even if one
            already exists. Useful for tests or when environment variables
            have changed.

    Returns:
        QueryKitSettings: The singleton settings instance
    """
    global _settings

    if _settings is None or force_reload:
        _settings = QueryKitSettings()
        logger.debug("Loaded querykit settings")

    return _settings


def reload_settings() -> QueryKitSettings:
    """Force reload of settings from the environment."""
    global _settings
    _settings = None
    return get_settings(force_reload=True)
