import pytest
from pydantic import ValidationError

from spotfinder.services.settings.app_settings import (
    DEFAULT_AVAILABILITY_API_URL,
    DEFAULT_REGION_BOUNDS,
    DEFAULT_SQLITE_URL,
    AppSettings,
)


ENV_VARS = [
    "DEBUG", "LOG_LEVEL", "DATABASE_URL", "CACHE_URL", "AVAILABILITY_API_URL",
    "AVAILABILITY_API_KEY", "AVAILABILITY_TIMEOUT", "AVAILABILITY_CACHE_TTL", "CORS_ORIGINS",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:

    def test_from_env_without_variables(self, clean_env):
        settings = AppSettings.from_env()

        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.database_url == DEFAULT_SQLITE_URL
        assert settings.database_url.startswith("sqlite+aiosqlite:///")
        assert settings.cache_url == "memory://"
        assert settings.availability_api_url == DEFAULT_AVAILABILITY_API_URL
        assert settings.availability_api_key is None
        assert settings.availability_timeout == 10.0
        assert settings.availability_cache_ttl == 300
        assert settings.cors_origins == ["http://localhost:3000", "http://localhost:3001"]

    def test_region_bounds(self):
        settings = AppSettings()
        assert settings.region_lat_range == (1.15, 1.48)
        assert settings.region_lon_range == (103.60, 104.10)

    def test_region_bounds_are_copied(self):
        settings = AppSettings()
        settings.region_bounds["min_lat"] = 0
        assert DEFAULT_REGION_BOUNDS["min_lat"] == 1.15


class TestFromEnv:

    def test_reads_variables(self, clean_env):
        clean_env.setenv("DEBUG", "true")
        clean_env.setenv("LOG_LEVEL", "DEBUG")
        clean_env.setenv("DATABASE_URL", "sqlite+aiosqlite:///tmp/x.db")
        clean_env.setenv("CACHE_URL", "redis://cache:6379/1")
        clean_env.setenv("AVAILABILITY_API_KEY", "k-123")
        clean_env.setenv("AVAILABILITY_TIMEOUT", "2.5")
        clean_env.setenv("AVAILABILITY_CACHE_TTL", "60")
        clean_env.setenv("CORS_ORIGINS", "https://a.example, https://b.example ,")

        settings = AppSettings.from_env()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.database_url == "sqlite+aiosqlite:///tmp/x.db"
        assert settings.cache_url == "redis://cache:6379/1"
        assert settings.availability_api_key == "k-123"
        assert settings.availability_timeout == 2.5
        assert settings.availability_cache_ttl == 60
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    @pytest.mark.parametrize("raw, expected", [("1", True), ("yes", True), ("on", True), ("0", False), ("no", False)])
    def test_debug_values(self, clean_env, raw, expected):
        clean_env.setenv("DEBUG", raw)
        assert AppSettings.from_env().debug is expected

    def test_empty_api_key_is_none(self, clean_env):
        clean_env.setenv("AVAILABILITY_API_KEY", "")
        assert AppSettings.from_env().availability_api_key is None

    def test_invalid_ttl_is_rejected(self, clean_env):
        clean_env.setenv("AVAILABILITY_CACHE_TTL", "0")
        with pytest.raises(ValidationError):
            AppSettings.from_env()
