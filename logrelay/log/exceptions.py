"""
Custom exceptions for the logging system.

This module defines the exception hierarchy used by loggers and streams.
Every class also derives from the package-wide hierarchy so callers can catch
either the specific error or ``RelayError``.
"""

from typing import Any

from ..exceptions import ConfigError, LoggingError


class LogError(LoggingError):
    """Base exception for logging-related errors."""

    pass


class InvalidLogLevelError(LogError, ConfigError):
    """Raised when an invalid log level is specified."""

    def __init__(self, level: Any) -> None:
        self.level = level
        super().__init__(f"Invalid log level: {level!r}")


class LogConfigurationError(LogError, ConfigError):
    """Raised when there's an error in logger or stream configuration."""

    pass


class CallbackError(LogError):
    """Raised when a callback cannot be registered."""

    pass
