from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class QueryKitBaseSettings(BaseSettings):
    """Base class for querykit settings.

    Values are read from the process environment and an optional ``.env``
    file. Subclasses pick their own ``env_prefix`` so domain settings stay
    namespaced.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    @classmethod
    def get_env_prefix(cls) -> str:
        """Get the environment variable prefix for this settings class.

        Returns:
            str: Environment variable prefix (empty string for base class)
        """
        return cls.model_config.get("env_prefix", "")

    def model_post_init(self, __context: Any) -> None:
        """Post initialization hook for additional setup.

        Subclasses should override this method and call super() to add
        cross-field checks that need every field populated.
        """
        super().model_post_init(__context)
