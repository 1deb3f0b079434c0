"""Configuration management for the sync service."""

import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ConfigurationError
from ..models.sync import SyncStrategy

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "airtable_contacts"


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def load_environment(env_file: Optional[str] = None) -> None:
    """Load environment variables from .env file.

    Variables already set in the process environment win.

    Args:
        env_file: Path to .env file. If None, looks for .env in current directory.
    """
    env_path = Path(env_file) if env_file else Path('.env')

    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded environment from {env_path}")
    else:
        logger.debug(f"No .env file found at {env_path}")


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Raises:
        ConfigurationError: If the environment variable is not set
    """
    value = os.getenv(key)
    if not value:
        raise ConfigurationError(f"{key} is not set")
    return value


def get_optional_env(key: str, default: str = "") -> str:
    """Get an optional environment variable, or ``default`` when unset."""
    return os.getenv(key, default)


class Settings(BaseModel):
    """Settings resolved once at process start."""
    database_url: str = Field(..., min_length=1)
    table_name: str = DEFAULT_TABLE_NAME
    webhook_secret: Optional[str] = None
    field_mapping_file: Optional[str] = None
    sync_strategy: SyncStrategy = SyncStrategy.LOOKUP
    port: int = 8000
    log_level: str = "INFO"
    pool_min_size: int = Field(1, ge=1)
    pool_max_size: int = Field(10, ge=1)

    model_config = {"frozen": True}


def load_settings(secret_service=None) -> Settings:
    """
    Build ``Settings`` from the environment.

    When a Secret Manager service is given, ``DATABASE_URL`` and
    ``WEBHOOK_SECRET`` are taken from it first.

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    credentials = secret_service.get_sync_credentials() if secret_service else {}

    database_url = credentials.get("DATABASE_URL") or get_required_env("DATABASE_URL")
    webhook_secret = credentials.get("WEBHOOK_SECRET") or get_optional_env("WEBHOOK_SECRET") or None

    try:
        return Settings(
            database_url=database_url,
            table_name=get_optional_env("PG_TABLE_NAME", DEFAULT_TABLE_NAME),
            webhook_secret=webhook_secret,
            field_mapping_file=get_optional_env("FIELD_MAPPING_FILE") or None,
            sync_strategy=get_optional_env("SYNC_STRATEGY", SyncStrategy.LOOKUP.value).lower(),
            port=get_optional_env("PORT", "8000"),
            log_level=get_optional_env("LOG_LEVEL", "INFO"),
            pool_min_size=get_optional_env("PG_POOL_MIN_SIZE", "1"),
            pool_max_size=get_optional_env("PG_POOL_MAX_SIZE", "10"),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
