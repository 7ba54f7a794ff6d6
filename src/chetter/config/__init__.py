"""Configuration management.

Example usage:
    from chetter.config import load_config

    config = load_config("config.yaml")
    port = config.server.port
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader, load_config
from .models import (
    Config,
    GitHubAppConfig,
    LogLevel,
    RefsConfig,
    ServerConfig,
    SystemConfig,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationValidationError",
    "GitHubAppConfig",
    "LogLevel",
    "RefsConfig",
    "ServerConfig",
    "SystemConfig",
    "load_config",
]
