"""Tests for environment-driven settings."""

import pytest

from core.config import DEFAULT_CACHE_DIR, DEFAULT_GUTENDEX_BASE_URL, Settings, is_truthy


@pytest.mark.parametrize("value,expected", [
    ("1", True), ("true", True), ("TRUE", True), (" True ", True),
    ("0", False), ("false", False), ("yes", False), ("", False), (None, False),
])
def test_is_truthy(value, expected):
    assert is_truthy(value) is expected


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.debug is False
        assert settings.cache_dir == DEFAULT_CACHE_DIR
        assert settings.cache_capacity == 10
        assert settings.gutendex_base_url == DEFAULT_GUTENDEX_BASE_URL
        assert settings.transport == "stdio"
        assert settings.port == 8000

    def test_overrides(self):
        settings = Settings.from_env({
            "DEBUG": "true",
            "CACHE_DIR": "/var/cache/books",
            "CACHE_CAPACITY": "25",
            "HTTP_TIMEOUT": "2.5",
            "MCP_TRANSPORT": "HTTP",
            "HOST": "0.0.0.0",
            "PORT": "9000",
        })
        assert settings.debug is True
        assert settings.cache_dir == "/var/cache/books"
        assert settings.cache_capacity == 25
        assert settings.http_timeout == 2.5
        assert settings.transport == "http"
        assert settings.host == "0.0.0.0"
        assert settings.port == 9000

    def test_bad_values_fall_back(self):
        settings = Settings.from_env({
            "CACHE_CAPACITY": "lots",
            "HTTP_TIMEOUT": "soon",
            "PORT": "eighty",
            "MCP_TRANSPORT": "carrier-pigeon",
        })
        assert settings.cache_capacity == 10
        assert settings.http_timeout == 10.0
        assert settings.port == 8000
        assert settings.transport == "stdio"

    def test_non_positive_capacity_falls_back(self):
        assert Settings.from_env({"CACHE_CAPACITY": "0"}).cache_capacity == 10

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("CACHE_CAPACITY", "3")
        assert Settings.from_env().cache_capacity == 3
