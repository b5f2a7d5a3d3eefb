"""Configuration management for Store Bridge using Pydantic.

Type-safe models for both store connections, the fixed-delay pacing of a
run, persisted state, logging and post-run validation.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from store_migration.client.exceptions import ConfigurationError


class SourceStoreConfig(BaseModel):
    """Connection to the source store (WooCommerce REST API v3)."""

    url: str = Field(..., description="Store base URL, e.g. https://shop.example.com")
    consumer_key: str = Field(..., description="REST API consumer key")
    consumer_secret: str = Field(..., description="REST API consumer secret")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate and normalize URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("consumer_key", "consumer_secret")
    @classmethod
    def validate_credential(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Credential cannot be empty")
        return v.strip()


class DestinationStoreConfig(BaseModel):
    """Connection to the destination store (BigCommerce API)."""

    store_hash: str = Field(..., description="Store hash from the API account")
    access_token: str = Field(..., description="API account access token")
    api_base_url: str = Field(
        default="https://api.bigcommerce.com/stores",
        description="API root; the store hash is appended to it",
    )
    timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")

    @field_validator("store_hash", "access_token")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v.rstrip("/")


class PerformanceConfig(BaseModel):
    """Pagination and pacing of a migration run."""

    page_size: int = Field(default=100, ge=1, le=100, description="Source items per page")
    max_pages: int = Field(
        default=100, ge=1, le=10000, description="Safety cap on source pages fetched per run"
    )
    request_delay: float = Field(
        default=0.2, ge=0.0, le=10.0, description="Fixed delay after each processed item (seconds)"
    )
    rate_limit: int = Field(
        default=10, ge=1, le=100, description="Maximum client requests per second"
    )


class StateConfig(BaseModel):
    """Persisted id mappings and run history."""

    db_path: str = Field(default="./migration_state.db", description="Path or URL of state database")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Console log level")
    file_level: str = Field(default="DEBUG", description="File log level")
    format: str = Field(default="json", description="Log file format (json or console)")
    file: str | None = Field(default="logs/migration.log", description="Log file path")
    log_payloads: bool = Field(
        default=False,
        description="Log request/response payloads at DEBUG level (secrets are redacted)",
    )
    max_payload_size: int = Field(
        default=10000, ge=100, le=1000000, description="Truncate logged payloads at this size"
    )

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "console"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(valid_formats)}")
        return v_lower


class ValidationConfig(BaseModel):
    """Post-migration reconciliation settings."""

    sample_size: int = Field(
        default=10, ge=1, le=250, description="Products sampled by the price and image checks"
    )
    image_timeout: float = Field(
        default=5.0, gt=0, le=60, description="Timeout for each image reachability probe"
    )
    price_tolerance: float = Field(
        default=0.01, ge=0, le=1, description="Largest accepted price difference"
    )


class EntitiesConfig(BaseModel):
    """Which entity types a migration run includes."""

    products: bool = Field(default=True)
    customers: bool = Field(default=True)
    orders: bool = Field(default=True)

    def enabled(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class MigrationConfig(BaseSettings):
    """Main migration configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORE_BRIDGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    source: SourceStoreConfig = Field(..., description="Source store configuration")
    destination: DestinationStoreConfig = Field(..., description="Destination store configuration")

    performance: PerformanceConfig = Field(
        default_factory=PerformanceConfig, description="Performance configuration"
    )
    state: StateConfig = Field(default_factory=StateConfig, description="State configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    validation: ValidationConfig = Field(
        default_factory=ValidationConfig, description="Validation configuration"
    )
    entities: EntitiesConfig = Field(
        default_factory=EntitiesConfig, description="Entity types to migrate"
    )

    # Built by the category sync that runs before a migration
    category_map: dict[str, int] = Field(
        default_factory=dict, description="Source category name to destination category id"
    )

    skip_validation: bool = Field(default=False, description="Skip post-run validation")


def load_config_from_yaml(config_path: str | Path) -> MigrationConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        MigrationConfig: Loaded configuration

    Raises:
        ConfigurationError: If the file is missing, empty, or references an
            unset environment variable
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        raise ConfigurationError(f"Empty configuration file: {config_path}")

    return MigrationConfig(**_expand_env_vars(config_data))


def _expand_env_vars(data: Any) -> Any:
    """Recursively replace ``${VAR_NAME}`` strings with environment values."""
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    if isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        var_name = data[2:-1]
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' not found. "
                f"Please set it in your environment or .env file."
            )
        return env_value
    return data
