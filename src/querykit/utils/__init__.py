"""Utility functions and helpers for querykit."""

from querykit.utils.datetime import get_current_timestamp
from querykit.utils.decorators import traced

__all__ = [
    "get_current_timestamp",
    "traced",
]
