"""Logging filters for context injection.

This module provides filters that inject context variables into log records,
enabling correlation of statements issued on behalf of the same request.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

_static_environment: Optional[str] = None
_static_extra: Dict[str, Any] = {}


def _sdk_version() -> str:
    from querykit.__version__ import __version__
    return __version__


class ContextFilter(logging.Filter):
    """Logging filter that adds context variables to log records.

    Static context (environment, extra attributes) is set once per process
    with ``set_logging_context``; request context is tracked per task or
    thread through context variables.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context variables to the log record.

        Args:
            record: Log record to enhance

        Returns:
            Always True (doesn't filter out any records)
        """
        if _static_environment is not None:
            setattr(record, "environment", _static_environment)
        for key, value in _static_extra.items():
            setattr(record, key, value)

        setattr(record, "request_id", request_id_var.get())
        setattr(record, "user_id", user_id_var.get())
        setattr(record, "sdk_name", "querykit")
        setattr(record, "sdk_version", _sdk_version())

        return True


def set_logging_context(
    environment: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Set process-wide context attached to every record."""
    global _static_environment, _static_extra
    _static_environment = environment
    _static_extra = dict(extra or {})


def set_request_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> None:
    """Set request context variables."""
    if request_id is not None:
        request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)


def clear_request_context() -> None:
    """Clear all request context variables."""
    request_id_var.set(None)
    user_id_var.set(None)
