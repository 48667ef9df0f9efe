"""
Log streams: the sinks a root logger writes records to.
"""

from .base import LogStream
from .config import (
    ConsoleConfig,
    Endpoint,
    RemoteLogConfig,
    RollingFileConfig,
    StreamConfig,
    validate_port,
)
from .console import ConsoleStream, format_entry
from .remote import Listener, RemoteLogStream
from .rolling_file import RollingFileStream

__all__ = [
    "LogStream",
    "StreamConfig",
    "ConsoleConfig",
    "RollingFileConfig",
    "RemoteLogConfig",
    "Endpoint",
    "validate_port",
    "ConsoleStream",
    "format_entry",
    "RollingFileStream",
    "RemoteLogStream",
    "Listener",
]
