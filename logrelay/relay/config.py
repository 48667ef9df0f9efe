"""
Configuration for the relay server and the terminal client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ConfigError
from ..log.constants import LogConstants
from ..streams.config import ConsoleConfig, validate_port


def _section(config_dict: dict, section: str) -> dict:
    """Navigate to a dotted section; a missing section is empty."""
    current: Any = config_dict
    for part in section.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return {}
    if current is None:
        return {}
    if not isinstance(current, dict):
        raise ConfigError(f"section '{section}' must be a mapping")
    return current


def _str_tuple(value: Any, name: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{name}' must be a list of strings", value=value)
    if not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{name}' must be a list of strings", value=value)
    return tuple(value)


def _host(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{name}' must be a non-empty string", value=value)
    return value


@dataclass(frozen=True)
class RelayConfig:
    """Relay server settings."""

    input_host: str = LogConstants.DEFAULT_INPUT_HOST
    input_port: int = LogConstants.DEFAULT_INPUT_PORT
    output_host: str = LogConstants.DEFAULT_OUTPUT_HOST
    output_port: int = LogConstants.DEFAULT_OUTPUT_PORT
    history_size: int = LogConstants.HISTORY_SIZE
    history_chunk: int = LogConstants.HISTORY_CHUNK
    exclude_contexts: tuple[str, ...] = LogConstants.DEFAULT_EXCLUDE_CONTEXTS
    exclude_messages: tuple[str, ...] = ()
    machine_names: dict[str, str] = field(
        default_factory=lambda: dict(LogConstants.DEFAULT_MACHINE_NAMES)
    )

    def __post_init__(self) -> None:
        _host(self.input_host, "input_host")
        _host(self.output_host, "output_host")
        # 0 binds an ephemeral port
        object.__setattr__(
            self, "input_port", validate_port(self.input_port, "input_port", allow_zero=True)
        )
        object.__setattr__(
            self, "output_port", validate_port(self.output_port, "output_port", allow_zero=True)
        )
        for name in ("history_size", "history_chunk"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"'{name}' must be a positive integer", value=value)
        object.__setattr__(
            self, "exclude_contexts", _str_tuple(self.exclude_contexts, "exclude_contexts")
        )
        object.__setattr__(
            self, "exclude_messages", _str_tuple(self.exclude_messages, "exclude_messages")
        )
        if not isinstance(self.machine_names, dict):
            raise ConfigError("'machine_names' must be a mapping", value=self.machine_names)

    def machine_name(self, address: str) -> str:
        """Friendly name of a peer address."""
        return self.machine_names.get(address, address)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelayConfig:
        defaults = cls()
        return cls(
            input_host=data.get("input_host", defaults.input_host),
            input_port=data.get("input_port", defaults.input_port),
            output_host=data.get("output_host", defaults.output_host),
            output_port=data.get("output_port", defaults.output_port),
            history_size=data.get("history_size", defaults.history_size),
            history_chunk=data.get("history_chunk", defaults.history_chunk),
            exclude_contexts=data.get("exclude_contexts", defaults.exclude_contexts),
            exclude_messages=data.get("exclude_messages", defaults.exclude_messages),
            machine_names=data.get("machine_names", defaults.machine_names),
        )

    @classmethod
    def from_config(cls, config_dict: dict, section: str = "relay") -> RelayConfig:
        """
        Create RelayConfig from a configuration dictionary.

        Example:
            config = Config("etc/logrelay.yaml")
            relay_config = RelayConfig.from_config(config.dict())
        """
        return cls.from_dict(_section(config_dict, section))


@dataclass(frozen=True)
class ClientConfig:
    """Terminal client settings."""

    host: str = LogConstants.DEFAULT_OUTPUT_HOST
    port: int = LogConstants.DEFAULT_OUTPUT_PORT
    exclude_contexts: tuple[str, ...] = LogConstants.DEFAULT_EXCLUDE_CONTEXTS
    exclude_messages: tuple[str, ...] = ()
    console: ConsoleConfig = field(
        default_factory=lambda: ConsoleConfig(
            tags=("timeMs", "host", "ip", "context", "user", "process"),
            time_format="%Y-%m-%d %H:%M:%S %z",
        )
    )

    def __post_init__(self) -> None:
        _host(self.host, "host")
        object.__setattr__(self, "port", validate_port(self.port))
        object.__setattr__(
            self, "exclude_contexts", _str_tuple(self.exclude_contexts, "exclude_contexts")
        )
        object.__setattr__(
            self, "exclude_messages", _str_tuple(self.exclude_messages, "exclude_messages")
        )
        if not isinstance(self.console, ConsoleConfig):
            raise ConfigError("'console' must be a ConsoleConfig", value=self.console)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        defaults = cls()
        console = defaults.console
        console_data = data.get("console")
        if isinstance(console_data, dict):
            merged = dict(console_data)
            merged.setdefault("tags", list(console.tags))
            if "timeFormat" not in merged:
                merged.setdefault("time_format", console.time_format)
            console = ConsoleConfig.from_dict(merged)
        elif console_data is not None:
            raise ConfigError("'console' must be a mapping", value=console_data)

        return cls(
            host=data.get("host", defaults.host),
            port=data.get("port", defaults.port),
            exclude_contexts=data.get("exclude_contexts", defaults.exclude_contexts),
            exclude_messages=data.get("exclude_messages", defaults.exclude_messages),
            console=console,
        )

    @classmethod
    def from_config(cls, config_dict: dict, section: str = "client") -> ClientConfig:
        return cls.from_dict(_section(config_dict, section))
