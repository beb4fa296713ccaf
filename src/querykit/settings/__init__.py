"""Settings module providing configuration management for querykit.

Settings are built on Pydantic Settings, so every field can be supplied
through the environment (``QUERYKIT_`` prefix) or a ``.env`` file.

Quick Start:
    >>> from querykit.settings import get_settings
    >>> settings = get_settings()
    >>> settings.default_per_page
    15
"""

from .base import QueryKitBaseSettings
from .main import QueryKitSettings, get_settings, reload_settings

__all__ = [
    "QueryKitBaseSettings",
    "QueryKitSettings",
    "get_settings",
    "reload_settings",
]
