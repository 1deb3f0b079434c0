"""
Secret Manager service for retrieving the database DSN and webhook secret.
"""

import logging
import os
from typing import Dict, Optional
from google.cloud import secretmanager

logger = logging.getLogger(__name__)

# Environment variable -> Secret Manager secret name
SECRET_NAMES = {
    "DATABASE_URL": "database-url",
    "WEBHOOK_SECRET": "webhook-secret",
}


class SecretManagerService:
    """Service for retrieving secrets from Google Secret Manager."""

    def __init__(self, project_id: Optional[str] = None):
        """Initialize Secret Manager service."""
        self.project_id = project_id or os.getenv("GOOGLE_CLOUD_PROJECT")
        if not self.project_id:
            raise ValueError("GOOGLE_CLOUD_PROJECT environment variable must be set")

        self.client = secretmanager.SecretManagerServiceClient()
        self._cache: Dict[str, str] = {}

    def get_secret(self, secret_name: str, version: str = "latest") -> str:
        """Retrieve a secret value from Secret Manager."""
        cache_key = f"{secret_name}:{version}"

        if cache_key in self._cache:
            return self._cache[cache_key]

        secret_path = f"projects/{self.project_id}/secrets/{secret_name}/versions/{version}"
        try:
            response = self.client.access_secret_version(request={"name": secret_path})
        except Exception as e:
            logger.error(f"Failed to retrieve secret {secret_name}: {e}")
            raise

        secret_value = response.payload.data.decode("UTF-8")
        self._cache[cache_key] = secret_value
        logger.info(f"Retrieved secret: {secret_name}")
        return secret_value

    def get_sync_credentials(self) -> Dict[str, str]:
        """
        Get the credentials the sync service needs.

        A secret that cannot be read falls back to its environment variable;
        variables with neither are left out.
        """
        credentials = {}
        for env_var, secret_name in SECRET_NAMES.items():
            try:
                credentials[env_var] = self.get_secret(secret_name)
            except Exception as e:
                logger.warning(f"Falling back to {env_var} from environment: {e}")
                value = os.getenv(env_var)
                if value:
                    credentials[env_var] = value
        return credentials
