"""Tests for LoggerConfig."""

import pytest

from logrelay.exceptions import ConfigError
from logrelay.log.config import LoggerConfig
from logrelay.log.constants import LogLevel
from logrelay.log.exceptions import LogConfigurationError
from logrelay.streams.config import ConsoleConfig, RemoteLogConfig, RollingFileConfig


@pytest.mark.unit
class TestLoggerConfig:
    def test_defaults(self):
        config = LoggerConfig()

        assert config.level is LogLevel.INFO
        assert config.base_log == {}
        assert config.streams == ()

    def test_from_config(self, sample_config_dict):
        config = LoggerConfig.from_config(sample_config_dict)

        assert config.level is LogLevel.DEBUG
        assert config.base_log == {"service": "test"}
        assert [type(s) for s in config.streams] == [ConsoleConfig, RollingFileConfig]
        assert config.streams[1].max_size_mb == 1

    def test_missing_section(self):
        assert LoggerConfig.from_config({"relay": {}}) == LoggerConfig()

    def test_nested_section(self):
        config = LoggerConfig.from_config({"app": {"logging": {"level": "warn"}}}, "app.logging")

        assert config.level is LogLevel.WARN

    def test_stream_mapping_and_aliases(self):
        config = LoggerConfig.from_dict(
            {
                "baseLog": {"team": "ops"},
                "streams": {
                    "remote_log": {"connect": {"host": "10.0.0.5", "port": 18002}},
                    "rolling_file": None,
                },
            }
        )

        assert config.base_log == {"team": "ops"}
        remote, rolling = config.streams
        assert isinstance(remote, RemoteLogConfig)
        assert str(remote.connect[0]) == "10.0.0.5:18002"
        assert isinstance(rolling, RollingFileConfig)

    def test_unknown_and_unnamed_streams_skipped(self):
        config = LoggerConfig.from_dict({"streams": [{"name": "syslog"}, {"level": "info"}]})

        assert config.streams == ()

    @pytest.mark.parametrize(
        "data",
        [
            {"streams": "console"},
            {"streams": ["console"]},
            {"base_log": ["a"]},
            [],
        ],
    )
    def test_invalid_structure(self, data):
        with pytest.raises(LogConfigurationError):
            LoggerConfig.from_dict(data)

    def test_invalid_level(self):
        with pytest.raises(ConfigError):
            LoggerConfig.from_dict({"level": "loud"})
