"""
Abstract log stream.

A stream is a sink that receives every record the root logger produces, both
as its serialized JSON line and as the structured record, and decides on its
own whether to write it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..log.constants import LogLevel, can_log
from ..log.record import LogRecord
from .config import StreamConfig


class LogStream(ABC):
    """Base class for all log sinks."""

    NAME: str = ""

    def __init__(self, config: StreamConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        """Name of the stream type."""
        return self.NAME

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def level(self) -> LogLevel:
        return self._config.level

    def accepts(self, level: LogLevel | str, serialized: str | None = "-") -> bool:
        """Check the enabled flag, level filter and (optionally) the payload."""
        return bool(serialized) and self.enabled and can_log(level, self.level)

    @abstractmethod
    def write(self, level: LogLevel, serialized: str, record: LogRecord) -> None:
        """
        Write a record to the stream.

        Args:
            level: Level of the record
            serialized: JSON serialization of the record (single line)
            record: The structured record
        """

    def end(self) -> None:
        """Release resources held by the stream."""
