"""Tests for MasterLogger and the shared Logger behaviour."""

import json
import os
import threading

import pytest

from logrelay.exceptions import ArchiverBusyError, ConfigError, LoggingError, ValidationError
from logrelay.log import LoggerConfig, LogLevel, MasterLogger
from logrelay.streams.console import ConsoleStream
from logrelay.streams.remote import RemoteLogStream
from logrelay.streams.rolling_file import RollingFileStream


def _records(stream):
    return [record for _, _, record in stream.written]


# =============================================================================
# Hierarchy
# =============================================================================


@pytest.mark.unit
class TestLoggerHierarchy:
    def test_root_defaults(self, root_logger):
        assert root_logger.is_root
        assert root_logger.context_name == "master"
        assert root_logger.group_id == "test-group"
        assert root_logger.root_logger is root_logger

    def test_child_context_names(self, root_logger):
        db = root_logger.create_logger("db")
        pool = db.create_logger("pool")

        assert db.context_name == "master.db"
        assert pool.context_name == "master.db.pool"
        assert pool.root_logger is root_logger
        assert not pool.is_root

    def test_child_shares_identity_and_streams(self, root_logger, memory_stream):
        child = root_logger.create_logger("db")

        child.info("from child")

        assert child.identity is root_logger.identity
        assert child.streams == (memory_stream,)
        assert _records(memory_stream)[0].context == "master.db"

    @pytest.mark.parametrize("name", ["", None, 3])
    def test_invalid_child_name(self, root_logger, name):
        with pytest.raises(ValidationError):
            root_logger.create_logger(name)

    def test_invalid_group(self, identity):
        with pytest.raises(ValidationError):
            MasterLogger("", identity=identity)


# =============================================================================
# Levels
# =============================================================================


@pytest.mark.unit
class TestLoggerLevels:
    def test_level_shared_by_hierarchy(self, root_logger):
        child = root_logger.create_logger("db")

        child.level = "warn"

        assert root_logger.level is LogLevel.WARN
        assert child.level is LogLevel.WARN

    def test_entries_below_level_dropped(self, root_logger, memory_stream):
        root_logger.level = LogLevel.INFO
        child = root_logger.create_logger("db")

        child.debug("hidden")
        child.info("shown")

        assert [r.log for r in _records(memory_stream)] == ["shown"]

    def test_special_always_logged(self, root_logger, memory_stream):
        root_logger.level = LogLevel.ERROR

        root_logger.special("dump")

        assert _records(memory_stream)[0].level is LogLevel.SPECIAL

    def test_can_flags(self, root_logger):
        root_logger.level = "info"

        assert not root_logger.can_trace
        assert not root_logger.can_debug
        assert root_logger.can_info
        assert root_logger.can_warn
        assert root_logger.can_error
        assert root_logger.is_enabled_for("warn")

    def test_invalid_level(self, root_logger):
        with pytest.raises(ConfigError):
            root_logger.level = "loud"

    def test_warning_alias(self, root_logger, memory_stream):
        root_logger.warning("careful")

        assert _records(memory_stream)[0].level is LogLevel.WARN


# =============================================================================
# Entries
# =============================================================================


@pytest.mark.unit
class TestLoggerEntries:
    def test_record_fields(self, root_logger, memory_stream, identity):
        root_logger.info({"msg": "started", "port": 80})

        level, serialized, record = memory_stream.written[0]
        assert level is LogLevel.INFO
        assert json.loads(serialized) == record.to_dict()
        assert record.log == {"msg": "started", "port": 80}
        assert record.host == identity.host
        assert record.pid == identity.pid

    def test_none_message_rejected(self, root_logger):
        with pytest.raises(ValidationError):
            root_logger.info(None)

    def test_error_captures_stack(self, root_logger, memory_stream):
        root_logger.error("failed")

        record = _records(memory_stream)[0]
        assert record.log_stack
        assert any("test_error_captures_stack" in line for line in record.log_stack)

    def test_info_has_no_stack(self, root_logger, memory_stream):
        root_logger.info("fine")

        assert _records(memory_stream)[0].log_stack is None

    def test_error_splits_string_stack(self, root_logger, memory_stream):
        root_logger.error({"msg": "boom", "stack": "line one\n  line two\n"})

        assert _records(memory_stream)[0].log["stack"] == ["line one", "line two"]

    def test_exception_payload(self, root_logger, memory_stream):
        try:
            raise KeyError("missing")
        except KeyError as e:
            root_logger.error(e)
            root_logger.warn(e)

        error, warn = _records(memory_stream)
        assert error.log["error"] == "KeyError"
        assert error.log["msg"] == "'missing'"
        assert any("raise KeyError" in line for line in error.log["stack"])
        assert "stack" not in warn.log

    def test_base_log_merged(self, identity, memory_stream):
        root = MasterLogger("g", identity=identity)
        root.configure({"level": "trace", "base_log": {"service": "api"}})
        root.add_stream(memory_stream)

        root.info("x")

        assert memory_stream.written[0][2].to_dict()["service"] == "api"
        root.end()

    def test_master_log_with_process(self, root_logger, memory_stream):
        record = root_logger.master_log("worker", 99, "jobs", LogLevel.INFO, "done")

        assert record.process == "worker"
        assert record.pid == 99
        assert _records(memory_stream) == [record]


# =============================================================================
# Events
# =============================================================================


@pytest.mark.unit
class TestLoggerEvents:
    def test_root_sees_child_events(self, root_logger):
        events = []
        root_logger.callbacks.register("info", lambda logger, event: events.append(event))
        child = root_logger.create_logger("db")

        child.info("hello")

        assert len(events) == 1
        assert events[0].context == "master.db"
        assert events[0].message == "hello"

    def test_child_callbacks_only_for_child(self, root_logger):
        events = []
        child = root_logger.create_logger("db")
        child.callbacks.register("info", lambda logger, event: events.append(event))

        root_logger.info("root entry")
        child.info("child entry")

        assert [e.message for e in events] == ["child entry"]

    def test_no_event_when_filtered(self, root_logger):
        events = []
        root_logger.callbacks.register("debug", lambda logger, event: events.append(event))
        root_logger.level = "info"

        root_logger.debug("hidden")

        assert events == []


# =============================================================================
# Configuration
# =============================================================================


@pytest.mark.unit
class TestLoggerConfigure:
    def test_configure_streams(self, identity, temp_dir):
        root = MasterLogger("g", identity=identity)

        root.configure(
            {
                "level": "debug",
                "streams": [
                    {"name": "console", "use_colors": False},
                    {"name": "rollingFile", "log_dir": str(temp_dir), "auto_archive": False},
                    {"name": "remoteLog"},
                    {"name": "unknown"},
                ],
            }
        )

        assert root.level is LogLevel.DEBUG
        assert isinstance(root.console_stream, ConsoleStream)
        assert isinstance(root.rolling_file_stream, RollingFileStream)
        assert isinstance(root.remote_stream, RemoteLogStream)
        assert len(root.streams) == 3
        root.end()
        assert root.streams == ()

    def test_reconfigure_ends_old_streams(self, root_logger, memory_stream):
        root_logger.configure(LoggerConfig(level=LogLevel.WARN))

        assert memory_stream.ended
        assert root_logger.streams == ()

    def test_child_cannot_configure(self, root_logger):
        with pytest.raises(LoggingError):
            root_logger.create_logger("db").configure({})

    def test_invalid_stream_setting(self, root_logger):
        with pytest.raises(ConfigError):
            root_logger.configure({"streams": [{"name": "console", "use_colors": "yes"}]})

    def test_rolling_file_writes(self, identity, temp_dir):
        root = MasterLogger("g", identity=identity)
        root.configure(
            {"streams": {"rollingFile": {"log_dir": str(temp_dir), "auto_archive": False}}}
        )

        root.info("to file")
        root.error("bad")
        path = root.rolling_file_stream.file
        root.end()

        with open(path) as f:
            lines = [json.loads(line) for line in f]
        assert [(e["level"], e["log"]) for e in lines] == [("info", "to file"), ("error", "bad")]


# =============================================================================
# Archive
# =============================================================================


@pytest.mark.unit
class TestLoggerArchive:
    def _configured(self, identity, log_dir):
        root = MasterLogger("g", identity=identity)
        root.configure(
            {"streams": [{"name": "rollingFile", "log_dir": str(log_dir), "auto_archive": False}]}
        )
        return root

    def test_archive_log_dir(self, identity, temp_dir):
        root = self._configured(identity, temp_dir)
        root.info("current")
        current = os.path.basename(root.rolling_file_stream.file)
        (temp_dir / "old.log").write_text("old\n")
        (temp_dir / "err.log").write_text("err\n")
        (temp_dir / "previous.tar.gz").write_bytes(b"")

        done = threading.Event()
        results = []

        def callback(error, target):
            results.append((error, target))
            done.set()

        assert root.archive(callback)
        assert done.wait(5.0)
        root.end()

        error, target = results[0]
        assert error is None
        assert os.path.basename(target).startswith("archive.")
        assert target.endswith(".tar.gz")
        remaining = sorted(os.listdir(temp_dir))
        assert "old.log" not in remaining
        assert current in remaining
        assert "previous.tar.gz" in remaining
        assert (temp_dir / "err.log").read_text() == ""

    def test_archive_busy(self, identity, temp_dir):
        root = self._configured(identity, temp_dir)
        results = []
        root.archiver._busy = True

        assert not root.archive(lambda error, target: results.append((error, target)))

        assert isinstance(results[0][0], ArchiverBusyError)
        assert results[0][1] is None
        root.archiver._busy = False
        root.end()
