"""Configuration for dynamic databases using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.paths import PROJECT_ROOT

_ENV_FILE = PROJECT_ROOT / ".env"


class DynamicDatabaseConfig(BaseSettings):
    """Configuration for the dynamic database service.

    All settings are loaded from environment variables with the NOTION_ prefix.

    :param integration_secret: Notion integration token.
    :param tasks_database_id: Reserved database ID managed outside the registry.
    :param parent_page_id: Default parent page for new databases.
    :param schema_dir: Directory holding one JSON schema file per database.
    :param default_page_size: Page size used when listing entries.
    :param batch_chunk_size: Number of items per batch chunk.
    :param batch_max_parallel: Maximum in-flight Notion requests per chunk.
    :param batch_delay_ms: Pause between chunks in milliseconds.
    :param batch_retry_attempts: Extra attempts given to failed batch items.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTION_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    integration_secret: str | None = Field(
        default=None,
        description="Notion integration token",
    )
    tasks_database_id: str | None = Field(
        default=None,
        description="Reserved Tasks database ID, excluded from the registry",
    )
    parent_page_id: str | None = Field(
        default=None,
        description="Default parent page for new databases",
    )
    schema_dir: Path = Field(
        default=PROJECT_ROOT / "schemas",
        description="Directory for persisted database schemas",
    )
    default_page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Default page size when listing entries",
    )
    batch_chunk_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Items per batch chunk",
    )
    batch_max_parallel: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum concurrent Notion requests within a chunk",
    )
    batch_delay_ms: int = Field(
        default=100,
        ge=0,
        le=60_000,
        description="Delay between chunks in milliseconds",
    )
    batch_retry_attempts: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Retry passes for failed batch items",
    )


@lru_cache
def get_dynamic_settings() -> DynamicDatabaseConfig:
    """Get cached dynamic database settings.

    Settings are loaded once and cached for the lifetime of the process.

    :returns: Configured DynamicDatabaseConfig instance.
    """
    return DynamicDatabaseConfig()
