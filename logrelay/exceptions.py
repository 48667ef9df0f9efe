"""
Unified exception hierarchy for logrelay.

This module provides a consistent exception hierarchy for all library errors,
making it easier to catch and handle logrelay-specific exceptions.
"""

from typing import Any


class RelayError(Exception):
    """
    Base exception for all logrelay errors.

    All library-specific exceptions inherit from this base class,
    allowing users to catch all of them with a single except clause.

    Example:
        try:
            stream = RollingFileStream(RollingFileConfig.from_dict(conf))
        except RelayError as e:
            lg.error(f"bad logging setup: {e}")
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(RelayError):
    """
    Configuration-related errors.

    Raised when configuration is loaded, parsed or validated and found to be
    wrong. These indicate operator mistakes and are raised at start-up.

    Examples:
        - Config file not found or too large
        - Invalid YAML syntax
        - Port out of range
        - Wrong value type
    """

    pass


class ValidationError(RelayError):
    """
    Validation-related errors.

    Raised when an argument handed to a public operation is malformed.
    """

    pass


class LoggingError(RelayError):
    """
    Logging-related errors.

    Raised when the logger hierarchy is used incorrectly, for example when a
    child logger is asked to configure streams.
    """

    pass


class ServerError(RelayError):
    """
    Server-related errors.

    Raised when a listener (relay input/output or remote stream listener)
    cannot be bound or started.
    """

    pass


class ArchiveError(RelayError):
    """
    Archive-related errors.

    Delivered through archiver callbacks rather than raised, since archiving
    runs in the background.
    """

    pass


class ArchiverBusyError(ArchiveError):
    """Signalled when an archive is requested while another one is running."""

    def __init__(self) -> None:
        super().__init__("archiver is busy")
