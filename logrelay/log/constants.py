"""
Constants and level definitions for the logging system.

This module contains the log level model shared by loggers, streams and the
relay, together with the default values used throughout the package.
"""

from __future__ import annotations

import enum
from typing import Any

from .exceptions import InvalidLogLevelError


class LogLevel(enum.Enum):
    """
    Log levels, ordered from most to least verbose.

    SPECIAL is for data that is normally not logged and is toggled manually;
    it outranks every other level so it always passes a level filter.
    """

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    SPECIAL = "special"

    @property
    def rank(self) -> int:
        """Numeric rank used for comparisons (trace=0 ... special=5)."""
        return _RANKS[self]

    @property
    def tag(self) -> str:
        """Four-character tag used by console renderers."""
        return _TAGS[self]

    @classmethod
    def parse(cls, value: Any) -> LogLevel:
        """
        Resolve a level from a LogLevel or its lowercase name.

        Raises:
            InvalidLogLevelError: If the value does not name a level
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidLogLevelError(value)

    @classmethod
    def from_rank(cls, rank: int) -> LogLevel:
        """Get a level from its numeric rank."""
        for level, level_rank in _RANKS.items():
            if level_rank == rank:
                return level
        raise InvalidLogLevelError(rank)

    def __lt__(self, other: LogLevel) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: LogLevel) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: LogLevel) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: LogLevel) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.rank >= other.rank


_RANKS: dict[LogLevel, int] = {level: i for i, level in enumerate(LogLevel)}

_TAGS: dict[LogLevel, str] = {
    LogLevel.TRACE: "TRAC",
    LogLevel.DEBUG: "DBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARN: "WARN",
    LogLevel.ERROR: "ERRR",
    LogLevel.SPECIAL: "****",
}


def can_log(level: LogLevel | str, min_level: LogLevel | str) -> bool:
    """Determine if an entry at ``level`` passes a ``min_level`` filter."""
    return LogLevel.parse(level) >= LogLevel.parse(min_level)


class LogConstants:
    """Defaults for streams, archiver and relay."""

    # Rolling file stream
    DEFAULT_LOG_DIR: str = "./logs"
    DEFAULT_FILE_PREFIX: str = "log"
    DEFAULT_MAX_SIZE_MB: int = 10
    ARCHIVE_DELAY_SECS: float = 7.0

    # Remote log stream
    RECONNECT_DELAY_SECS: float = 3.0

    # Relay
    DEFAULT_INPUT_HOST: str = "0.0.0.0"
    DEFAULT_INPUT_PORT: int = 18002
    DEFAULT_OUTPUT_HOST: str = "127.0.0.1"
    DEFAULT_OUTPUT_PORT: int = 18001
    HISTORY_SIZE: int = 1024
    HISTORY_CHUNK: int = 32
    DEFAULT_EXCLUDE_CONTEXTS: tuple[str, ...] = ("webTraffic", "apiTraffic", "smtp-email")
    DEFAULT_MACHINE_NAMES: dict[str, str] = {"127.0.0.1": "localhost"}

    # Console
    DEFAULT_TAGS: tuple[str, ...] = ("timeMs", "host", "ip", "context", "process")
    DEFAULT_TIME_FORMAT: str = "%y-%m-%d %H:%M:%S %z"

    # Read size for socket loops
    READ_CHUNK: int = 65536

    # ANSI reset sequence
    RESET: str = "\x1b[0m"
