from importlib.metadata import PackageNotFoundError, version

# Import order matters: the log package loads the streams it depends on
from .exceptions import (
    ArchiveError,
    ArchiverBusyError,
    ConfigError,
    LoggingError,
    RelayError,
    ServerError,
    ValidationError,
)
from .log import (
    ForkLogger,
    Logger,
    LoggerConfig,
    LogLevel,
    LogRecord,
    MasterLogger,
)
from .archiver import LogArchiver
from .config import Config
from .identity import ProcessIdentity
from .relay import RelayConfig, RelayServer
from .size import InvalidSizeError, size_str, size_to_bytes
from .streams import (
    ConsoleStream,
    LogStream,
    RemoteLogStream,
    RollingFileStream,
)

# Version is read from package metadata (pyproject.toml)
try:
    __version__ = version("logrelay")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.1.0-dev"

# Explicit public API
__all__ = [
    # Version
    "__version__",
    # Core classes
    "Config",
    "ProcessIdentity",
    "LogArchiver",
    # Loggers
    "Logger",
    "MasterLogger",
    "ForkLogger",
    "LoggerConfig",
    "LogLevel",
    "LogRecord",
    # Streams
    "LogStream",
    "ConsoleStream",
    "RollingFileStream",
    "RemoteLogStream",
    # Relay
    "RelayServer",
    "RelayConfig",
    # Size utilities
    "size_str",
    "size_to_bytes",
    "InvalidSizeError",
    # Exceptions
    "RelayError",
    "ConfigError",
    "ValidationError",
    "LoggingError",
    "ServerError",
    "ArchiveError",
    "ArchiverBusyError",
]
