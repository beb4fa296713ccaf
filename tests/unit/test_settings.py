"""Unit tests for settings loading."""

import pytest
from pydantic import ValidationError

from querykit.settings import QueryKitSettings, get_settings, reload_settings
from querykit.settings import main as settings_module


@pytest.fixture(autouse=True)
def reset_singleton():
    yield
    settings_module._settings = None


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("QUERYKIT_DEFAULT_PER_PAGE", "QUERYKIT_SOFT_DELETE_COLUMN", "QUERYKIT_DATABASE_URL"):
            monkeypatch.delenv(name, raising=False)
        settings = QueryKitSettings(_env_file=None)
        assert settings.default_per_page == 15
        assert settings.soft_delete_column == "deleted_at"
        assert settings.database_url == "sqlite://"
        assert settings.max_statement_log_length == 4096

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("QUERYKIT_DEFAULT_PER_PAGE", "25")
        monkeypatch.setenv("QUERYKIT_LOG_LEVEL", "debug")
        settings = get_settings(force_reload=True)
        assert settings.default_per_page == 25
        assert settings.log_level == "DEBUG"

    def test_singleton(self):
        assert get_settings() is get_settings()

    def test_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("QUERYKIT_POOL_SIZE", "9")
        second = reload_settings()
        assert second is not first
        assert second.pool_size == 9

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            QueryKitSettings(log_level="LOUD")

    def test_invalid_soft_delete_column(self):
        with pytest.raises(ValidationError):
            QueryKitSettings(soft_delete_column="deleted_at; DROP TABLE users")

    def test_per_page_must_be_positive(self):
        with pytest.raises(ValidationError):
            QueryKitSettings(default_per_page=0)
