"""Unit tests for core.config module.

Tests cover:
- Settings model_validator database URL checks
- is_sqlite / docs_enabled properties
- allowed_origins computed property with deduplication
- get_settings / clear_settings_cache lru_cache behavior
"""

import pytest
from pydantic import ValidationError

from core.config import Settings, clear_settings_cache, get_settings

pytestmark = pytest.mark.unit

PG_URL = "postgresql+asyncpg://localhost/bookstore"


@pytest.fixture(autouse=True)
def _clear_settings():
    """Clear lru_cache between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# ---------------------------------------------------------------------------
# Settings validation
# ---------------------------------------------------------------------------


class TestSettingsValidation:
    def test_defaults_to_local_sqlite(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.database_url == "sqlite+aiosqlite:///./bookstore.db"
        assert settings.ratelimit_default == "100/minute"

    def test_requires_database_config(self):
        with pytest.raises(ValidationError, match="Database configuration"):
            Settings(database_url="")

    def test_rejects_sync_driver(self):
        with pytest.raises(ValidationError, match="async driver"):
            Settings(database_url="postgresql+psycopg2://localhost/bookstore")

    def test_accepts_asyncpg(self):
        assert Settings(database_url=PG_URL).database_url == PG_URL

    def test_is_frozen(self):
        settings = Settings(database_url=PG_URL)
        with pytest.raises(ValidationError):
            settings.debug = True


# ---------------------------------------------------------------------------
# Derived properties
# ---------------------------------------------------------------------------


class TestDerivedProperties:
    def test_is_sqlite(self):
        assert Settings(database_url="sqlite+aiosqlite://").is_sqlite is True
        assert Settings(database_url=PG_URL).is_sqlite is False

    @pytest.mark.parametrize(
        ("debug", "enable_docs", "expected"),
        [(False, False, False), (True, False, True), (False, True, True)],
    )
    def test_docs_enabled(self, debug, enable_docs, expected):
        settings = Settings(database_url=PG_URL, debug=debug, enable_docs=enable_docs)
        assert settings.docs_enabled is expected


# ---------------------------------------------------------------------------
# allowed_origins
# ---------------------------------------------------------------------------


class TestAllowedOrigins:
    def test_debug_includes_localhost(self):
        s = Settings(database_url=PG_URL, debug=True)
        assert "http://localhost:3000" in s.allowed_origins

    def test_prod_excludes_localhost(self):
        s = Settings(database_url=PG_URL, debug=False)
        assert s.allowed_origins == []

    def test_cors_allowed_origins_csv_parsed(self):
        s = Settings(
            database_url=PG_URL,
            cors_allowed_origins="https://a.com, https://b.com,",
        )
        assert s.allowed_origins == ["https://a.com", "https://b.com"]

    def test_deduplication(self):
        s = Settings(
            database_url=PG_URL,
            debug=True,
            cors_allowed_origins="http://localhost:8000,http://localhost:8000",
        )
        assert s.allowed_origins.count("http://localhost:8000") == 1


# ---------------------------------------------------------------------------
# get_settings / clear_settings_cache
# ---------------------------------------------------------------------------


class TestGetSettings:
    def test_returns_same_instance(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", PG_URL)
        assert get_settings() is get_settings()

    def test_clear_cache_resets(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", PG_URL)
        s1 = get_settings()
        clear_settings_cache()
        s2 = get_settings()
        assert s1 is not s2

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", PG_URL)
        monkeypatch.setenv("RATELIMIT_DEFAULT", "5/second")
        assert get_settings().ratelimit_default == "5/second"
