"""
Unit tests for the Secret Manager service (client mocked).
"""

from unittest.mock import MagicMock, patch

import pytest

from airsync.services.secrets import SecretManagerService


def _response(value: str) -> MagicMock:
    response = MagicMock()
    response.payload.data = value.encode("UTF-8")
    return response


@pytest.fixture
def client():
    with patch("airsync.services.secrets.secretmanager.SecretManagerServiceClient") as cls:
        yield cls.return_value


class TestSecretManagerService:
    def test_requires_project(self, monkeypatch, client):
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
        with pytest.raises(ValueError):
            SecretManagerService()

    def test_get_secret_is_cached(self, client):
        client.access_secret_version.return_value = _response("postgresql://secret")
        service = SecretManagerService(project_id="proj")

        assert service.get_secret("database-url") == "postgresql://secret"
        assert service.get_secret("database-url") == "postgresql://secret"

        client.access_secret_version.assert_called_once_with(
            request={"name": "projects/proj/secrets/database-url/versions/latest"}
        )

    def test_get_secret_error_propagates(self, client):
        client.access_secret_version.side_effect = RuntimeError("permission denied")
        service = SecretManagerService(project_id="proj")
        with pytest.raises(RuntimeError):
            service.get_secret("database-url")

    def test_sync_credentials(self, client):
        client.access_secret_version.side_effect = [
            _response("postgresql://secret"),
            _response("hook"),
        ]
        service = SecretManagerService(project_id="proj")
        assert service.get_sync_credentials() == {
            "DATABASE_URL": "postgresql://secret",
            "WEBHOOK_SECRET": "hook",
        }

    def test_sync_credentials_fall_back_to_env(self, client, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://env")
        monkeypatch.delenv("WEBHOOK_SECRET", raising=False)
        client.access_secret_version.side_effect = RuntimeError("not found")
        service = SecretManagerService(project_id="proj")
        assert service.get_sync_credentials() == {"DATABASE_URL": "postgresql://env"}
