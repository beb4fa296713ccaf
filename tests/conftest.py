"""Shared fixtures: mock execution ports and deterministic settings."""

from unittest.mock import Mock

import pytest

from querykit.settings import QueryKitSettings
from querykit.types.results import ExecResult


@pytest.fixture
def settings():
    return QueryKitSettings(default_per_page=15, soft_delete_column="deleted_at")


@pytest.fixture
def executor():
    """Pool-like port: runs statements and can begin transactions."""
    port = Mock(spec=["query", "query_one", "execute", "prepare", "begin"])
    port.query.return_value = []
    port.query_one.return_value = None
    port.execute.return_value = ExecResult(last_insert_id=1, rows_affected=1)
    return port


@pytest.fixture
def tx():
    """Open-transaction port."""
    port = Mock(spec=["query", "query_one", "execute", "prepare", "commit", "rollback"])
    port.query.return_value = []
    port.query_one.return_value = None
    port.execute.return_value = ExecResult(last_insert_id=1, rows_affected=1)
    return port
