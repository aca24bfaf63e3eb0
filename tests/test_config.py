"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from limit.core.config import Settings


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self, monkeypatch):
        for name in ("LIMIT_STORAGE_BACKEND", "LIMIT_USE_CACHE", "LIMIT_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.storage_backend == "memory"
        assert settings.use_cache is False
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("LIMIT_STORAGE_BACKEND", "Redis")
        monkeypatch.setenv("LIMIT_REDIS_URL", "redis://cache:6379/2")
        monkeypatch.setenv("LIMIT_USE_CACHE", "true")
        monkeypatch.setenv("LIMIT_LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.storage_backend == "redis"
        assert settings.redis_url == "redis://cache:6379/2"
        assert settings.use_cache is True
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("storage_backend", "sqlite"),
            ("log_level", "LOUD"),
            ("log_format", "xml"),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})
