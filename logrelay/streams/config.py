"""
Configuration classes for log streams.

Immutable, eagerly validated configuration for the console, rolling file and
remote streams. Each class can be built from a plain mapping (for example a
section of a YAML file) with ``from_dict``; snake_case keys are preferred and
the camelCase keys of the original configuration format are accepted too.
Invalid values raise at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ConfigError
from ..log.constants import LogConstants, LogLevel
from ..size import InvalidSizeError, megabytes


def _pick(data: dict[str, Any], key: str, alias: str | None, default: Any) -> Any:
    """Get a key (or its camelCase alias) from a mapping, None meaning unset."""
    value = data.get(key)
    if value is None and alias is not None:
        value = data.get(alias)
    return default if value is None else value


def _check_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{name}' must be a boolean", value=value)
    return value


def _check_str(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{name}' must be a non-empty string", value=value)
    return value


def _check_str_list(value: Any, name: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{name}' must be a list of strings", value=value)
    if not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{name}' must be a list of strings", value=value)
    return tuple(value)


def validate_port(port: Any, name: str = "port", allow_zero: bool = False) -> int:
    """
    Validate a TCP port number.

    Args:
        port: Port value to check
        name: Setting name used in the error message
        allow_zero: Accept 0 (ephemeral port) for listeners

    Raises:
        ConfigError: If port is not an integer in range
    """
    if isinstance(port, bool) or not isinstance(port, int):
        if isinstance(port, str) and port.isdigit():
            port = int(port)
        else:
            raise ConfigError(f"'{name}' must be an integer", value=port)
    low = 0 if allow_zero else 1
    if not low <= port <= 65535:
        raise ConfigError(f"'{name}' must be in range {low}-65535", value=port)
    return port


@dataclass(frozen=True)
class Endpoint:
    """A host/port pair."""

    host: str
    port: int

    @classmethod
    def from_value(cls, value: Any, allow_zero: bool = False) -> Endpoint:
        if isinstance(value, Endpoint):
            return value
        if not isinstance(value, dict):
            raise ConfigError("endpoint must be a mapping with host and port", value=value)
        host = _check_str(value.get("host"), "host")
        return cls(host, validate_port(value.get("port"), allow_zero=allow_zero))

    @classmethod
    def many(cls, value: Any, allow_zero: bool = False) -> tuple[Endpoint, ...]:
        """Parse a single endpoint mapping or a list of them."""
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(cls.from_value(v, allow_zero) for v in value)
        return (cls.from_value(value, allow_zero),)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class StreamConfig:
    """Settings shared by every stream."""

    enabled: bool = True
    level: LogLevel = LogLevel.TRACE

    def __post_init__(self) -> None:
        _check_bool(self.enabled, "enabled")
        object.__setattr__(self, "level", LogLevel.parse(self.level))

    @staticmethod
    def _common(data: dict[str, Any]) -> dict[str, Any]:
        return {
            "enabled": _pick(data, "enabled", None, True),
            "level": _pick(data, "level", None, LogLevel.TRACE),
        }


@dataclass(frozen=True)
class ConsoleConfig(StreamConfig):
    """Console stream settings."""

    use_colors: bool = True
    time_format: str = LogConstants.DEFAULT_TIME_FORMAT
    tags: tuple[str, ...] = LogConstants.DEFAULT_TAGS
    exclude_properties: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_bool(self.use_colors, "use_colors")
        _check_str(self.time_format, "time_format")
        object.__setattr__(self, "tags", _check_str_list(self.tags, "tags"))
        object.__setattr__(
            self,
            "exclude_properties",
            _check_str_list(self.exclude_properties, "exclude_properties"),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConsoleConfig:
        return cls(
            **cls._common(data),
            use_colors=_pick(data, "use_colors", "useColors", True),
            time_format=_pick(
                data, "time_format", "timeFormat", LogConstants.DEFAULT_TIME_FORMAT
            ),
            tags=_pick(data, "tags", None, LogConstants.DEFAULT_TAGS),
            exclude_properties=_pick(data, "exclude_properties", "excludeProperties", ()),
        )


@dataclass(frozen=True)
class RollingFileConfig(StreamConfig):
    """Rolling file stream settings."""

    auto_archive: bool = True
    log_dir: str = LogConstants.DEFAULT_LOG_DIR
    file: str = LogConstants.DEFAULT_FILE_PREFIX
    max_size_mb: int = LogConstants.DEFAULT_MAX_SIZE_MB

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_bool(self.auto_archive, "auto_archive")
        _check_str(self.log_dir, "log_dir")
        _check_str(self.file, "file")
        try:
            object.__setattr__(self, "max_size_mb", megabytes(self.max_size_mb))
        except InvalidSizeError as e:
            raise ConfigError(f"'max_size_mb' is invalid: {e}") from e

    @property
    def max_bytes(self) -> int:
        return self.max_size_mb * 1024 * 1024

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RollingFileConfig:
        return cls(
            **cls._common(data),
            auto_archive=_pick(data, "auto_archive", "autoArchive", True),
            log_dir=_pick(data, "log_dir", "logDir", LogConstants.DEFAULT_LOG_DIR),
            file=_pick(data, "file", None, LogConstants.DEFAULT_FILE_PREFIX),
            max_size_mb=_pick(
                data, "max_size_mb", "maxSizeMB", LogConstants.DEFAULT_MAX_SIZE_MB
            ),
        )


@dataclass(frozen=True)
class RemoteLogConfig(StreamConfig):
    """Remote log stream settings."""

    listen: tuple[Endpoint, ...] = field(default_factory=tuple)
    connect: tuple[Endpoint, ...] = field(default_factory=tuple)
    reconnect_delay: float = LogConstants.RECONNECT_DELAY_SECS

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "listen", Endpoint.many(self.listen, allow_zero=True))
        object.__setattr__(self, "connect", Endpoint.many(self.connect))
        delay = self.reconnect_delay
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
            raise ConfigError("'reconnect_delay' must be a non-negative number", value=delay)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteLogConfig:
        return cls(
            **cls._common(data),
            listen=data.get("listen") or (),
            connect=data.get("connect") or (),
            reconnect_delay=_pick(
                data, "reconnect_delay", "reconnectDelay", LogConstants.RECONNECT_DELAY_SECS
            ),
        )
