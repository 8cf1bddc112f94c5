"""
Application Settings - Main Layer

Pydantic Settings for the client. Values come from environment variables,
a ``.env`` file or the defaults below. Secrets such as the tenant password
may be mounted as files and referenced through ``C8Y_PASSWORD_FILE``.
"""

from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from c8y_client.domain.entities.managed_object import SMART_RULE_TYPE
from c8y_client.shared import EnumEnvironment, EnumLogLevel
from c8y_client.shared.env import load_secret_file_variables


class C8ySettings(BaseSettings):
    """Cumulocity tenant connection settings."""

    base_url: str = Field(
        default="https://example.cumulocity.com", description="Tenant base URL"
    )
    tenant: Optional[str] = Field(
        default=None, description="Tenant id prefixed to the user name"
    )
    username: str = Field(default="", description="API user")
    password: SecretStr = Field(default=SecretStr(""), description="API password")
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    page_size: int = Field(
        default=50, ge=1, le=2000, description="Objects requested per page"
    )

    model_config = SettingsConfigDict(
        env_prefix="C8Y_", case_sensitive=False, extra="ignore"
    )


class AssetTreeSettings(BaseSettings):
    """Asset tree synchronisation settings."""

    include_groups: bool = Field(
        default=True,
        description="Keep sub-groups as tree nodes instead of flattening devices",
    )
    skipped_types: List[str] = Field(
        default_factory=lambda: [SMART_RULE_TYPE],
        description="Managed object types that are never mirrored",
    )
    external_id_concurrency: int = Field(
        default=10, ge=1, description="Concurrent external id requests"
    )

    model_config = SettingsConfigDict(
        env_prefix="ASSETS_", case_sensitive=False, extra="ignore"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: EnumLogLevel = Field(default=EnumLogLevel.INFO, description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Logging format",
    )
    file_path: Optional[str] = Field(
        default=None, description="Log file path (if None, logs to console)"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_", case_sensitive=False, extra="ignore"
    )


class AppSettings(BaseSettings):
    """Main application settings, aggregating all sub-settings."""

    environment: EnumEnvironment = Field(
        default=EnumEnvironment.DEVELOPMENT, description="Application environment"
    )

    c8y: C8ySettings = Field(default_factory=C8ySettings)
    assets: AssetTreeSettings = Field(default_factory=AssetTreeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


def get_settings() -> AppSettings:
    """
    Get application settings instance Factory.

    Secret files are resolved first so that ``C8Y_PASSWORD_FILE`` feeds
    ``C8Y_PASSWORD``. Tests patch this to build settings per environment.
    """
    load_secret_file_variables(prefixes=("C8Y_",))
    return AppSettings()


settings = get_settings()
