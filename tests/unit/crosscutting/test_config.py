"""
Name: Settings Tests

Responsibilities:
  - Verify defaults and field / cross-field validation
"""

import pytest
from pydantic import ValidationError

from docshare.crosscutting.config import LOCAL_DATABASE_URL, Settings

pytestmark = pytest.mark.unit


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        settings = Settings()
        assert settings.database_url == LOCAL_DATABASE_URL
        assert settings.download_token_default_ttl_seconds == 3600
        assert settings.download_token_max_ttl_seconds == 86400
        assert settings.default_policy_priority == 50

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DOWNLOAD_TOKEN_DEFAULT_TTL_SECONDS", "600")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = Settings()
        assert settings.download_token_default_ttl_seconds == 600
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "LOUD"},
            {"db_pool_min_size": 0},
            {"db_pool_min_size": 20, "db_pool_max_size": 5},
            {"db_statement_timeout_ms": -1},
            {"default_policy_priority": 0},
            {"default_policy_priority": 101},
            {"download_token_default_ttl_seconds": 0},
            {
                "download_token_default_ttl_seconds": 7200,
                "download_token_max_ttl_seconds": 3600,
            },
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_production_requires_explicit_database_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValidationError, match="DATABASE_URL"):
            Settings(app_env="production")

        settings = Settings(
            app_env="production", database_url="postgresql://prod-db/docshare"
        )
        assert settings.is_production()
