"""Tests for stream configuration classes."""

import pytest

from logrelay.exceptions import ConfigError
from logrelay.log.constants import LogLevel
from logrelay.streams.config import (
    ConsoleConfig,
    Endpoint,
    RemoteLogConfig,
    RollingFileConfig,
    StreamConfig,
    validate_port,
)


@pytest.mark.unit
class TestValidatePort:
    @pytest.mark.parametrize("port,expected", [(1, 1), (18002, 18002), ("8080", 8080), (65535, 65535)])
    def test_valid(self, port, expected):
        assert validate_port(port) == expected

    @pytest.mark.parametrize("port", [0, -1, 65536, "http", None, True, 80.0])
    def test_invalid(self, port):
        with pytest.raises(ConfigError):
            validate_port(port)

    def test_zero_allowed_for_listeners(self):
        assert validate_port(0, allow_zero=True) == 0


@pytest.mark.unit
class TestEndpoint:
    def test_many(self):
        single = Endpoint.many({"host": "a", "port": 1})
        several = Endpoint.many([{"host": "a", "port": 1}, {"host": "b", "port": "2"}])

        assert single == (Endpoint("a", 1),)
        assert several == (Endpoint("a", 1), Endpoint("b", 2))
        assert Endpoint.many(None) == ()

    @pytest.mark.parametrize("value", ["a:1", {"host": "", "port": 1}, {"host": "a"}])
    def test_invalid(self, value):
        with pytest.raises(ConfigError):
            Endpoint.from_value(value)


@pytest.mark.unit
class TestStreamConfigs:
    def test_common_defaults(self):
        config = StreamConfig()

        assert config.enabled is True
        assert config.level is LogLevel.TRACE

    def test_level_parsed(self):
        assert ConsoleConfig.from_dict({"level": "warn"}).level is LogLevel.WARN

    def test_console_aliases(self):
        config = ConsoleConfig.from_dict(
            {"useColors": False, "timeFormat": "%H", "excludeProperties": ["secret"]}
        )

        assert config.use_colors is False
        assert config.time_format == "%H"
        assert config.exclude_properties == ("secret",)

    def test_rolling_file_defaults(self):
        config = RollingFileConfig.from_dict({})

        assert config.log_dir == "./logs"
        assert config.file == "log"
        assert config.max_size_mb == 10
        assert config.max_bytes == 10 * 1024 * 1024
        assert config.auto_archive is True

    def test_rolling_file_size_string(self):
        assert RollingFileConfig.from_dict({"maxSizeMB": "1.5MB"}).max_size_mb == 2

    def test_remote_endpoints(self):
        config = RemoteLogConfig.from_dict(
            {
                "listen": [{"host": "0.0.0.0", "port": 0}],
                "connect": {"host": "relay", "port": 18002},
                "reconnectDelay": 0.5,
            }
        )

        assert config.listen == (Endpoint("0.0.0.0", 0),)
        assert config.connect == (Endpoint("relay", 18002),)
        assert config.reconnect_delay == 0.5

    @pytest.mark.parametrize(
        "cls,data",
        [
            (ConsoleConfig, {"enabled": "yes"}),
            (ConsoleConfig, {"tags": "host"}),
            (ConsoleConfig, {"time_format": ""}),
            (RollingFileConfig, {"max_size_mb": 0}),
            (RollingFileConfig, {"max_size_mb": "huge"}),
            (RollingFileConfig, {"log_dir": 5}),
            (RemoteLogConfig, {"connect": {"host": "relay", "port": 0}}),
            (RemoteLogConfig, {"reconnect_delay": -1}),
            (StreamConfig, None),
        ],
    )
    def test_invalid(self, cls, data):
        with pytest.raises(ConfigError):
            if data is None:
                cls(level="loud")
            else:
                cls.from_dict(data)
