"""Pydantic configuration models.

Environment variables are substituted in string values using the format
${VAR_NAME} with optional defaults: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from chetter.refs.batch_delete import MAX_CHUNK_SIZE, DeleteStrategy

from .exceptions import ConfigurationFileError

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Raises:
            ValueError: If required environment variable is missing
        """

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):

                def replacer(match: re.Match[str]) -> str:
                    var_name, default_value = match.group(1), match.group(2)

                    env_value = os.getenv(var_name)
                    if env_value is not None:
                        return env_value
                    elif default_value is not None:
                        return default_value
                    else:
                        raise ValueError(
                            f"Required environment variable '{var_name}' not found"
                        )

                return _ENV_PATTERN.sub(replacer, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            else:
                return value

        if not isinstance(values, dict):
            return values
        return {key: substitute_value(value) for key, value in values.items()}


class GitHubAppConfig(BaseConfigModel):
    """Identity of the GitHub App and how to reach the API."""

    app_id: int = Field(ge=1, description="GitHub App ID")

    private_key: str | None = Field(
        default=None, description="PEM encoded private key of the app"
    )

    private_key_path: str | None = Field(
        default=None, description="Path to a PEM file holding the private key"
    )

    api_url: str = Field(
        default="https://api.github.com", description="GitHub API base URL"
    )

    timeout: int = Field(
        default=30, ge=1, le=300, description="HTTP request timeout in seconds; deletes use refs.attempt_timeout",
    )

    webhook_secret: str | None = Field(
        default=None,
        description="Shared secret used to verify X-Hub-Signature-256 headers",
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_url must be an http(s) URL")
        return v.rstrip("/")

    @model_validator(mode="after")
    def check_private_key_source(self) -> "GitHubAppConfig":
        if bool(self.private_key) == bool(self.private_key_path):
            raise ValueError("Exactly one of private_key or private_key_path is required")
        return self

    def load_private_key(self) -> str:
        """Return the PEM key, reading it from disk if configured by path.

        Raises:
            ConfigurationFileError: If the key file can't be read
        """
        if self.private_key:
            return self.private_key

        path = Path(self.private_key_path or "")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read private key: {e}", file_path=str(path)
            ) from e


class ServerConfig(BaseConfigModel):
    """Webhook HTTP server settings."""

    host: str = Field(default="0.0.0.0", description="Address to bind")  # nosec B104

    port: int = Field(default=3333, ge=1, le=65535, description="Port to bind")

    events_path: str = Field(
        default="/github/events", description="Path GitHub delivers webhooks to"
    )

    @field_validator("events_path")
    @classmethod
    def validate_events_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("events_path must start with '/'")
        return v


class RefsConfig(BaseConfigModel):
    """How refs are deleted when a pull request closes."""

    delete_strategy: DeleteStrategy = Field(
        default=DeleteStrategy.BULK,
        description="bulk GraphQL mutations or concurrent REST deletes",
    )

    chunk_size: int = Field(
        default=MAX_CHUNK_SIZE,
        ge=1,
        le=MAX_CHUNK_SIZE,
        description="Refs deleted per bulk mutation",
    )

    max_concurrency: int = Field(
        default=10, ge=1, le=100, description="Concurrent single-ref deletions"
    )

    attempt_timeout: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Seconds before one delete request counts as failed",
    )


class SystemConfig(BaseConfigModel):
    """Process-wide settings."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    shutdown_timeout: float = Field(
        default=600.0,
        ge=0,
        description="Seconds to wait for background work on shutdown",
    )


class Config(BaseConfigModel):
    """Root configuration."""

    github: GitHubAppConfig

    server: ServerConfig = Field(default_factory=ServerConfig)

    refs: RefsConfig = Field(default_factory=RefsConfig)

    system: SystemConfig = Field(default_factory=SystemConfig)
