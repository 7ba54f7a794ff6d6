"""Errors raised while loading the configuration."""

from typing import Any


class ConfigurationError(Exception):
    """chetter can't be configured from what it was given."""


class ConfigurationFileError(ConfigurationError):
    """A configuration or key file is missing, unreadable or not YAML."""

    def __init__(self, message: str, file_path: str | None = None):
        super().__init__(message)
        self.file_path = file_path


class ConfigurationValidationError(ConfigurationError):
    """The configuration was read but its values are invalid."""

    def __init__(self, message: str, validation_errors: list[Any] | None = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []

    @property
    def fields(self) -> list[str]:
        """Dotted location of every invalid field, e.g. ``github.app_id``."""
        return [
            ".".join(str(part) for part in error.get("loc", ()))
            for error in self.validation_errors
        ]
