"""
Logging package for logrelay.

Provides the level model, the record type, callbacks and the logger
hierarchy (MasterLogger in the parent process, ForkLogger in workers).

Basic usage:
    from logrelay.log import MasterLogger

    root = MasterLogger("app")
    root.configure({"level": "info", "streams": [{"name": "console"}]})
    root.create_logger("db").info("connected")
"""

# Import order matters: streams depend on constants and record
from .constants import LogConstants, LogLevel, can_log
from .exceptions import (
    CallbackError,
    InvalidLogLevelError,
    LogConfigurationError,
    LogError,
)
from .record import LogRecord, dumps, message_of
from .callback import CallbackRegistry, LogEvent, listens_for
from .colors import ColorManager
from .config import LoggerConfig
from .logger import ForkLogger, Logger, MasterLogger
from .mp import ForkMessageType, WorkerChannel

__all__ = [
    # Levels and defaults
    "LogLevel",
    "LogConstants",
    "can_log",
    # Records
    "LogRecord",
    "dumps",
    "message_of",
    # Callbacks
    "CallbackRegistry",
    "LogEvent",
    "listens_for",
    "ColorManager",
    # Loggers
    "LoggerConfig",
    "Logger",
    "MasterLogger",
    "ForkLogger",
    # Multiprocessing
    "ForkMessageType",
    "WorkerChannel",
    # Exceptions
    "LogError",
    "InvalidLogLevelError",
    "LogConfigurationError",
    "CallbackError",
]
