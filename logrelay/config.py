"""
Configuration loading for logrelay.

Loads a YAML file, applies environment variable overrides and resolves
``${dotted.key}`` references to other values of the same file.

Environment Variable Override Format:
    LOGRELAY_<SECTION>__<KEY>=value

    A double underscore separates path parts, so keys may contain single
    underscores:

    LOGRELAY_LOGGING__LEVEL=debug
    LOGRELAY_RELAY__INPUT_PORT=19002
    LOGRELAY_RELAY__EXCLUDE_CONTEXTS=webTraffic,apiTraffic

Example:
    config = Config("etc/logrelay.yaml")
    relay_config = RelayConfig.from_config(config.dict())
    port = config.get("relay.output_port", 18001)
"""

from __future__ import annotations

import copy
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

MAX_CONFIG_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_ENV_PREFIX = "LOGRELAY_"

_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z0-9_.]+)\}")
_MISSING = object()


def _check_file_size(path: Path) -> None:
    size = os.path.getsize(path)
    if size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            f"Configuration file '{path}' is {size} bytes, exceeding maximum size "
            f"of {MAX_CONFIG_SIZE_BYTES} bytes ({MAX_CONFIG_SIZE_BYTES // (1024 * 1024)} MB)"
        )


def convert_env_value(value: str) -> bool | int | float | str | list[Any] | None:
    """
    Convert an environment variable string to the matching type.

    Handles null/none, booleans, comma separated lists, ints and floats;
    anything else stays a string.
    """
    if value.lower() in ("null", "none", ""):
        return None
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if "," in value:
        return [convert_env_value(v.strip()) for v in value.split(",")]
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


class Config:
    """
    YAML configuration with variable substitution and environment overrides.

    Values are reached with dotted paths (``config.get("relay.input_port")``)
    or as a plain dict with ``dict()``, which is what the typed configuration
    classes consume through their ``from_config`` constructors.
    """

    def __init__(
        self,
        fname: str | os.PathLike[str] | None = None,
        data: dict[str, Any] | None = None,
        enable_env_overrides: bool = True,
        env_prefix: str = DEFAULT_ENV_PREFIX,
    ) -> None:
        """
        Load configuration from a YAML file or a mapping.

        Args:
            fname: Path to the YAML file
            data: Configuration mapping (used when no file is given)
            enable_env_overrides: Apply ``{env_prefix}*`` environment variables
            env_prefix: Prefix of override variables

        Raises:
            ConfigError: If the file is missing, too large, malformed, or a
                ``${...}`` reference is undefined
        """
        self._enable_env_overrides = enable_env_overrides
        self._env_prefix = env_prefix
        self._path: Path | None = None

        if fname is not None:
            self._path = Path(fname).resolve()
            data = self._read(self._path)
        content = copy.deepcopy(data) if data is not None else {}
        if not isinstance(content, dict):
            raise ConfigError("configuration root must be a mapping")

        if enable_env_overrides:
            self._apply_env_overrides(content)
        self._data: dict[str, Any] = content
        self._data = self._resolve(content)

    @property
    def path(self) -> Path | None:
        return self._path

    def dict(self) -> dict[str, Any]:
        """Deep copy of the configuration as plain data."""
        return copy.deepcopy(self._data)

    def has(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted path."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def section(self, key: str) -> dict[str, Any]:
        """Get a mapping by dotted path; a missing section is empty."""
        value = self.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(f"'{key}' is not a section")
        return value

    def get_env_overrides(self) -> dict[str, Any]:
        """Environment overrides that apply, keyed by dotted path."""
        if not self._enable_env_overrides:
            return {}
        return {
            ".".join(self._env_key_to_path(key)): convert_env_value(value)
            for key, value in self._collect_env_vars().items()
        }

    def _read(self, path: Path) -> Any:
        if not path.is_file():
            raise ConfigError(f"Configuration file '{path}' not found")
        _check_file_size(path)
        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in '{path}': {e}") from e

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return _MISSING
        return current

    def _resolve(self, content: Any) -> Any:
        if isinstance(content, dict):
            for k in list(content.keys()):
                content[k] = self._resolve(content[k])
        elif isinstance(content, list):
            return [self._resolve(v) for v in content]
        elif isinstance(content, str):
            return _VAR_PATTERN.sub(self._substitute_var, content)
        return content

    def _substitute_var(self, match: re.Match) -> str:
        name = match.group(1)
        value = self._lookup(name)
        if value is _MISSING:
            raise ConfigError(f"Undefined configuration variable '{name}'")
        return str(value)

    def _collect_env_vars(self) -> dict[str, str]:
        return {k: v for k, v in os.environ.items() if k.startswith(self._env_prefix)}

    def _env_key_to_path(self, env_key: str) -> list[str]:
        return env_key[len(self._env_prefix) :].lower().split("__")

    def _apply_env_overrides(self, data: dict[str, Any]) -> None:
        for env_key, env_value in self._collect_env_vars().items():
            path = self._env_key_to_path(env_key)
            current = data
            for part in path[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[path[-1]] = convert_env_value(env_value)
