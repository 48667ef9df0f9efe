"""
Configuration for the root logger.

LoggerConfig holds the logger level, the base fields merged into every record
and the typed configuration of each configured stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..streams.config import (
    ConsoleConfig,
    RemoteLogConfig,
    RollingFileConfig,
    StreamConfig,
)
from .constants import LogLevel
from .exceptions import LogConfigurationError

# Stream names as they appear in configuration files
CONSOLE = "console"
ROLLING_FILE = "rollingFile"
REMOTE_LOG = "remoteLog"

_STREAM_TYPES: dict[str, type[StreamConfig]] = {
    CONSOLE: ConsoleConfig,
    ROLLING_FILE: RollingFileConfig,
    "rolling_file": RollingFileConfig,
    REMOTE_LOG: RemoteLogConfig,
    "remote_log": RemoteLogConfig,
}


def _stream_entries(streams: Any) -> list[dict[str, Any]]:
    """Normalize a list of named stream mappings or a {name: settings} mapping."""
    if streams is None:
        return []
    if isinstance(streams, dict):
        return [{**(settings or {}), "name": name} for name, settings in streams.items()]
    if not isinstance(streams, (list, tuple)):
        raise LogConfigurationError("'streams' must be a list or a mapping")
    return list(streams)


@dataclass(frozen=True)
class LoggerConfig:
    """Immutable configuration for a root logger."""

    level: LogLevel = LogLevel.INFO
    base_log: dict[str, Any] = field(default_factory=dict)
    streams: tuple[StreamConfig, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", LogLevel.parse(self.level))
        if not isinstance(self.base_log, dict):
            raise LogConfigurationError("'base_log' must be a mapping")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggerConfig:
        """
        Build from a plain mapping.

        Unknown stream names are skipped, as are entries without a name.

        Raises:
            LogConfigurationError: If the structure is invalid
            ConfigError: If a stream setting is invalid
        """
        if not isinstance(data, dict):
            raise LogConfigurationError("logger configuration must be a mapping")

        streams: list[StreamConfig] = []
        for entry in _stream_entries(data.get("streams")):
            if not isinstance(entry, dict):
                raise LogConfigurationError("stream entry must be a mapping", value=entry)
            config_cls = _STREAM_TYPES.get(str(entry.get("name")))
            if config_cls is None:
                continue
            streams.append(config_cls.from_dict(entry))  # type: ignore[attr-defined]

        base_log = data.get("base_log", data.get("baseLog")) or {}
        return cls(
            level=data.get("level") or LogLevel.INFO,
            base_log=base_log,
            streams=tuple(streams),
        )

    @classmethod
    def from_config(cls, config_dict: dict, section: str = "logging") -> LoggerConfig:
        """
        Create LoggerConfig from a configuration dictionary.

        Args:
            config_dict: Configuration dictionary (e.g., from Config.dict())
            section: Dotted path of the section to use (default: "logging")

        Example:
            config = Config("etc/logrelay.yaml")
            logger_config = LoggerConfig.from_config(config.dict())
        """
        current: Any = config_dict
        for part in section.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                # Missing section means defaults
                return cls()
        return cls.from_dict(current or {})
