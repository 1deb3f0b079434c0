"""
Unit tests for environment-derived configuration.
"""

import os
from unittest.mock import MagicMock

import pytest

from airsync.core.config import (
    DEFAULT_TABLE_NAME,
    get_optional_env,
    get_required_env,
    load_environment,
    load_settings,
)
from airsync.exceptions import ConfigurationError
from airsync.models.sync import SyncStrategy

ENV_VARS = [
    "DATABASE_URL", "PG_TABLE_NAME", "WEBHOOK_SECRET", "FIELD_MAPPING_FILE",
    "SYNC_STRATEGY", "PORT", "LOG_LEVEL", "PG_POOL_MIN_SIZE", "PG_POOL_MAX_SIZE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestEnvHelpers:
    def test_required_missing(self):
        with pytest.raises(ConfigurationError, match="DATABASE_URL is not set"):
            get_required_env("DATABASE_URL")

    def test_required_present(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        assert get_required_env("DATABASE_URL") == "postgresql://x"

    def test_optional_default(self):
        assert get_optional_env("PG_TABLE_NAME", "fallback") == "fallback"

    def test_load_environment_from_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("PG_TABLE_NAME=from_file\n")
        try:
            load_environment(str(env_file))
            assert get_optional_env("PG_TABLE_NAME") == "from_file"
        finally:
            os.environ.pop("PG_TABLE_NAME", None)

    def test_load_environment_missing_file(self, tmp_path):
        load_environment(str(tmp_path / "absent.env"))  # Should not raise


class TestLoadSettings:
    def test_database_url_required(self):
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        settings = load_settings()
        assert settings.table_name == DEFAULT_TABLE_NAME == "airtable_contacts"
        assert settings.webhook_secret is None
        assert settings.field_mapping_file is None
        assert settings.sync_strategy == SyncStrategy.LOOKUP
        assert settings.port == 8000
        assert (settings.pool_min_size, settings.pool_max_size) == (1, 10)

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        monkeypatch.setenv("PG_TABLE_NAME", "startups")
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        monkeypatch.setenv("SYNC_STRATEGY", "UPSERT")
        monkeypatch.setenv("PORT", "9000")
        settings = load_settings()
        assert settings.table_name == "startups"
        assert settings.webhook_secret == "s3cret"
        assert settings.sync_strategy == SyncStrategy.UPSERT
        assert settings.port == 9000

    def test_empty_secret_disables_auth(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        monkeypatch.setenv("WEBHOOK_SECRET", "")
        assert load_settings().webhook_secret is None

    def test_invalid_strategy(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        monkeypatch.setenv("SYNC_STRATEGY", "merge")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_invalid_port(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        monkeypatch.setenv("PORT", "eighty")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_secret_service_takes_precedence(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://env")
        secrets = MagicMock()
        secrets.get_sync_credentials.return_value = {
            "DATABASE_URL": "postgresql://secret",
            "WEBHOOK_SECRET": "from-secret-manager",
        }
        settings = load_settings(secrets)
        assert settings.database_url == "postgresql://secret"
        assert settings.webhook_secret == "from-secret-manager"

    def test_secret_service_partial(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://env")
        secrets = MagicMock()
        secrets.get_sync_credentials.return_value = {}
        assert load_settings(secrets).database_url == "postgresql://env"

    def test_settings_frozen(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://x")
        settings = load_settings()
        with pytest.raises(Exception):
            settings.table_name = "other"
