"""Reusable query fragments.

A scope is any callable taking a builder and returning a builder. Scopes
compose through ``QueryBuilder.scope``, which applies them left to right::

    qb.table("posts").scope(published, recent).get()
"""

from typing import TYPE_CHECKING, Callable

from querykit.constants.sql import DEFAULT_TIMESTAMP_COLUMN, SortDirection

if TYPE_CHECKING:
    from querykit.query_builder.builder import QueryBuilder

Scope = Callable[["QueryBuilder"], "QueryBuilder"]


def active(qb: "QueryBuilder") -> "QueryBuilder":
    """Rows with ``active = true``."""
    return qb.where("active", "=", True)


def recent(qb: "QueryBuilder") -> "QueryBuilder":
    """Newest first by ``created_at``."""
    return qb.order_by(DEFAULT_TIMESTAMP_COLUMN, SortDirection.DESC.value)


def oldest(qb: "QueryBuilder") -> "QueryBuilder":
    return qb.order_by(DEFAULT_TIMESTAMP_COLUMN, SortDirection.ASC.value)


def published(qb: "QueryBuilder") -> "QueryBuilder":
    """Published content that carries a publication timestamp."""
    return qb.where("published", "=", True).where_not_null("published_at")


def draft(qb: "QueryBuilder") -> "QueryBuilder":
    return qb.where("published", "=", False)
