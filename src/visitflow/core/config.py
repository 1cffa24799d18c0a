"""
Configuration management for VisitFlow.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("visitflow")


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection URI"
    )
    db_name: str = Field(default="visitflow", description="MongoDB database name")
    server_selection_timeout_ms: int = Field(
        default=15000, description="Server selection timeout in milliseconds"
    )

    @validator("uri")
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format."""
        if not v:
            raise ValueError("MongoDB URI is required. Please set MONGO_URI environment variable.")
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(
                "MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'"
            )
        return v


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )
    allowed_methods: List[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    allowed_headers: List[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )

    @validator("allowed_origins", pre=True)
    def parse_allowed_origins(cls, v):
        """Parse allowed origins from string or list."""
        if isinstance(v, str):
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v.strip()]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @validator("format")
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class AssemblyAISettings(BaseSettings):
    """AssemblyAI transcription provider settings."""

    model_config = SettingsConfigDict(env_prefix="ASSEMBLYAI_")

    api_key: str = Field(default="", description="AssemblyAI API key")
    base_url: str = Field(
        default="https://api.assemblyai.com/v2", description="AssemblyAI REST base URL"
    )
    webhook_url: str = Field(
        default="", description="Public URL AssemblyAI calls when a transcript finishes"
    )
    timeout_seconds: int = Field(default=30, description="HTTP timeout per provider call")
    language_code: str = Field(default="en_us", description="Transcription language code")

    @validator("base_url")
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class AzureBlobSettings(BaseSettings):
    """Azure Blob Storage configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AZURE_BLOB_")

    account_name: str = Field(default="", description="Azure Storage Account Name")
    account_key: str = Field(default="", description="Azure Storage Account Key")
    connection_string: str = Field(default="", description="Azure Storage Connection String")
    container_name: str = Field(default="visit-audio", description="Blob container name")
    signed_url_expiry_hours: int = Field(
        default=4, description="Expiry of signed audio URLs handed to the transcription provider"
    )

    @validator("connection_string")
    def validate_connection_string(cls, v: str) -> str:
        """Validate Azure Storage connection string."""
        if v and not v.startswith("DefaultEndpointsProtocol="):
            raise ValueError("Invalid Azure Storage connection string format")
        return v


class AzureOpenAISettings(BaseSettings):
    """Azure OpenAI configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AZURE_OPENAI_")

    endpoint: str = Field(default="", description="Azure OpenAI endpoint URL")
    api_key: str = Field(default="", description="Azure OpenAI API key")
    api_version: str = Field(default="2024-12-01-preview", description="Azure OpenAI API version")
    deployment_name: str = Field(default="gpt-4o-mini", description="Azure OpenAI chat deployment name")
    temperature: float = Field(default=0.2, description="Temperature for summarization")
    max_tokens: int = Field(default=2000, description="Maximum tokens for summarization")

    @validator("endpoint")
    def validate_endpoint(cls, v: str) -> str:
        """Validate Azure OpenAI endpoint format."""
        if v and not (v.startswith("https://") and ".openai.azure.com" in v):
            raise ValueError("Invalid Azure OpenAI endpoint format. Must be: https://xxx.openai.azure.com/")
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v


class RetrySettings(BaseSettings):
    """Client-initiated retry policy."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    throttle_seconds: int = Field(
        default=30, description="Minimum seconds between two retries of the same visit"
    )

    @validator("throttle_seconds")
    def validate_throttle(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Retry throttle must not be negative")
        return v


class PaginationSettings(BaseSettings):
    """Cursor pagination limits."""

    model_config = SettingsConfigDict(env_prefix="PAGINATION_")

    default_limit: int = Field(default=50, description="Page size when only a cursor is given")
    max_limit: int = Field(default=100, description="Upper bound applied to requested limits")

    @validator("default_limit", "max_limit")
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Pagination limits must be positive")
        return v


class RetentionSettings(BaseSettings):
    """Soft-delete retention purge settings."""

    model_config = SettingsConfigDict(env_prefix="RETENTION_")

    enabled: bool = Field(default=False, description="Run the scheduled purge worker")
    days: int = Field(default=90, description="Days a soft-deleted record is kept")
    page_size: int = Field(default=200, description="Records scanned per collection per run")
    batch_max: int = Field(default=500, description="Maximum deletes per batch request")
    interval_seconds: int = Field(default=86400, description="Seconds between purge runs")
    max_pages_per_run: int = Field(default=10, description="Pages purged per scheduled run")
    maintenance_key: str = Field(
        default="", description="X-Maintenance-Key for the manual purge endpoint; empty disables it"
    )

    @validator("days", "page_size", "batch_max", "interval_seconds", "max_pages_per_run")
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Retention settings must be positive integers")
        return v


class SweeperSettings(BaseSettings):
    """Stale visit sweeper (watchdog) settings."""

    model_config = SettingsConfigDict(env_prefix="STALE_SWEEPER_")

    enabled: bool = Field(default=False, description="Run the stale visit sweeper")
    interval_seconds: int = Field(default=900, description="Seconds between sweeps")
    transcribing_timeout_minutes: int = Field(default=30, description="Minutes before transcribing is stale")
    summarizing_timeout_minutes: int = Field(default=15, description="Minutes before summarizing is stale")
    max_retries: int = Field(default=3, description="Retry count after which a stale visit fails")
    batch_size: int = Field(default=50, description="Visits examined per status per sweep")


class WebhookSettings(BaseSettings):
    """Inbound provider webhook settings."""

    model_config = SettingsConfigDict(env_prefix="WEBHOOK_")

    secret: str = Field(default="", description="Shared secret expected on provider callbacks")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="VisitFlow", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")
    require_user_id: bool = Field(
        default=True, description="Reject requests without an X-User-ID header"
    )
    default_user_id: str = Field(
        default="", description="Caller ID used when X-User-ID is missing and not required"
    )

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    assemblyai: AssemblyAISettings = Field(default_factory=AssemblyAISettings)
    azure_blob: AzureBlobSettings = Field(default_factory=AzureBlobSettings)
    azure_openai: AzureOpenAISettings = Field(default_factory=AzureOpenAISettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    sweeper: SweeperSettings = Field(default_factory=SweeperSettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        # Re-read sub-settings so their env prefixes apply after .env loading
        self.database = DatabaseSettings()
        self.cors = CORSSettings()
        self.logging = LoggingSettings()
        self.assemblyai = AssemblyAISettings()
        self.azure_blob = AzureBlobSettings()
        self.azure_openai = AzureOpenAISettings()
        self.retry = RetrySettings()
        self.pagination = PaginationSettings()
        self.retention = RetentionSettings()
        self.sweeper = SweeperSettings()
        self.webhook = WebhookSettings()

    @validator("app_env")
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @validator("port")
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Best-effort load of .env by searching current and parent directories.

    This helps in environments where the working directory isn't the project
    root and pydantic's env_file doesn't get resolved as expected.
    """
    from dotenv import load_dotenv

    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            # Do not override already-set environment variables
            load_dotenv(dotenv_path=str(candidate), override=False)
            logger.debug("Loaded environment from %s", candidate)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
