"""Tests for the rolling file stream."""

import json
import os
import threading

import pytest

from logrelay.log.constants import LogLevel
from logrelay.streams.config import RollingFileConfig
from logrelay.streams.rolling_file import RollingFileStream, utc_ymd

DAY = 24 * 60 * 60
# 2021-06-01 12:00:00 UTC
NOON = 1622548800.0


class FakeClock:
    def __init__(self, now=NOON):
        self.now = now

    def __call__(self):
        return self.now


def _config(temp_dir, **kwargs):
    return RollingFileConfig(log_dir=str(temp_dir), **kwargs)


def _log_files(temp_dir):
    return sorted(name for name in os.listdir(temp_dir) if name.endswith(".log"))


def _lines(path):
    with open(path, encoding="utf-8") as f:
        return f.read().splitlines()


# =============================================================================
# Naming and basic writes
# =============================================================================


@pytest.mark.unit
class TestRollingFileWrites:
    def test_utc_ymd(self):
        assert utc_ymd(int(NOON * 1000)) == "2021-06-01"

    def test_creates_log_dir(self, temp_dir):
        log_dir = temp_dir / "nested" / "logs"
        RollingFileStream(RollingFileConfig(log_dir=str(log_dir)))

        assert log_dir.is_dir()

    def test_file_name(self, temp_dir, make_record):
        clock = FakeClock()
        stream = RollingFileStream(_config(temp_dir, file="app"), clock=clock)
        record = make_record()

        stream.write(record.level, record.to_json(), record)
        stream.end()

        start_ms = int(NOON * 1000)
        assert _log_files(temp_dir) == [f"app.2021-06-01.{start_ms}.00.log"]

    def test_info_and_error_lines(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        info = make_record("info", "first")
        error = make_record("error", {"msg": "second", "code": 3})

        stream.write(info.level, info.to_json(), info)
        stream.write(error.level, error.to_json(), error)
        stream.end()

        lines = _lines(stream.file)
        assert len(lines) == 2
        assert json.loads(lines[0])["log"] == "first"
        assert json.loads(lines[0])["level"] == "info"
        assert json.loads(lines[1])["log"] == {"msg": "second", "code": 3}
        assert json.loads(lines[1])["level"] == "error"

    def test_level_filter(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, level=LogLevel.WARN))
        debug = make_record("debug", "hidden")

        stream.write(debug.level, debug.to_json(), debug)

        assert stream.file is None
        assert _log_files(temp_dir) == []

    def test_disabled_stream_writes_nothing(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, enabled=False))
        record = make_record()

        stream.write(record.level, record.to_json(), record)

        assert _log_files(temp_dir) == []

    def test_empty_serialization_skipped(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir))
        record = make_record()

        stream.write(record.level, "", record)

        assert stream.written_bytes == 0

    def test_written_bytes_counted(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        record = make_record()
        serialized = record.to_json()

        stream.write(record.level, serialized, record)

        assert stream.written_bytes == len(serialized.encode("utf-8")) + 1
        stream.end()


# =============================================================================
# Rotation
# =============================================================================


@pytest.mark.unit
class TestRollingFileRotation:
    def test_size_rotation(self, temp_dir, make_record):
        stream = RollingFileStream(
            _config(temp_dir, max_size_mb=1, auto_archive=False), clock=FakeClock()
        )
        record = make_record(log="x" * (400 * 1024))
        serialized = record.to_json()

        # 3 x 400KB reaches 1MB, the fourth write rolls over
        for _ in range(4):
            stream.write(record.level, serialized, record)
        stream.end()

        files = _log_files(temp_dir)
        assert len(files) == 2
        assert files[0].endswith(".00.log")
        assert files[1].endswith(".01.log")
        assert len(_lines(temp_dir / files[0])) == 3
        assert len(_lines(temp_dir / files[1])) == 1
        assert stream.roll_count == 1

    def test_day_change_resets_count(self, temp_dir, make_record):
        clock = FakeClock()
        stream = RollingFileStream(
            _config(temp_dir, max_size_mb=1, auto_archive=False), clock=clock
        )
        big = make_record(log="x" * (1024 * 1024))

        stream.write(big.level, big.to_json(), big)
        stream.write(big.level, big.to_json(), big)
        assert stream.roll_count == 1

        clock.now += DAY
        small = make_record(log="next day")
        stream.write(small.level, small.to_json(), small)
        stream.end()

        assert stream.roll_count == 0
        assert os.path.basename(stream.file).startswith("log.2021-06-02.")
        assert stream.file.endswith(".00.log")
        assert len(_log_files(temp_dir)) == 3

    def test_day_change_resets_written_bytes(self, temp_dir, make_record):
        clock = FakeClock()
        stream = RollingFileStream(
            _config(temp_dir, max_size_mb=1, auto_archive=False), clock=clock
        )
        day_one = make_record(log="x" * (900 * 1024))
        stream.write(day_one.level, day_one.to_json(), day_one)

        clock.now += DAY
        assert stream.written_bytes > 900 * 1024
        day_two = make_record(log="y" * (200 * 1024))
        stream.write(day_two.level, day_two.to_json(), day_two)
        stream.write(day_two.level, day_two.to_json(), day_two)
        stream.end()

        day_two_files = [f for f in _log_files(temp_dir) if ".2021-06-02." in f]
        assert len(day_two_files) == 1
        assert day_two_files[0].endswith(".00.log")
        assert len(_lines(temp_dir / day_two_files[0])) == 2
        assert stream.written_bytes < 500 * 1024

    def test_reopen_keeps_written_bytes(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        record = make_record()
        stream.write(record.level, record.to_json(), record)
        written = stream.written_bytes

        stream.end()
        stream.write(record.level, record.to_json(), record)
        stream.end()

        assert stream.written_bytes == 2 * written

    def test_rollover_logged_with_size(self, temp_dir, make_record, lib_logs):
        stream = RollingFileStream(
            _config(temp_dir, max_size_mb=1, auto_archive=False), clock=FakeClock()
        )
        big = make_record(log="x" * (1024 * 1024))

        stream.write(big.level, big.to_json(), big)
        stream.write(big.level, big.to_json(), big)
        stream.end()

        assert "rolling over log file" in lib_logs.text

    def test_same_day_appends(self, temp_dir, make_record):
        clock = FakeClock()
        stream = RollingFileStream(_config(temp_dir, auto_archive=False), clock=clock)
        record = make_record()

        stream.write(record.level, record.to_json(), record)
        clock.now += 60
        stream.write(record.level, record.to_json(), record)
        stream.end()

        assert len(_log_files(temp_dir)) == 1
        assert len(_lines(stream.file)) == 2


# =============================================================================
# Failures and lifecycle
# =============================================================================


@pytest.mark.unit
class TestRollingFileLifecycle:
    def test_end_is_idempotent(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        record = make_record()
        stream.write(record.level, record.to_json(), record)

        stream.end()
        stream.end()

    def test_write_after_end_reopens(self, temp_dir, make_record):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        record = make_record()

        stream.write(record.level, record.to_json(), record)
        stream.end()
        stream.write(record.level, record.to_json(), record)
        stream.end()

        assert len(_lines(stream.file)) == 2

    def test_write_failure_recovers(self, temp_dir, make_record, lib_logs):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        record = make_record()
        stream.write(record.level, record.to_json(), record)

        # Closing the handle underneath makes the next write fail
        stream._fh.close()
        stream.write(record.level, record.to_json(), record)
        stream.write(record.level, record.to_json(), record)
        stream.end()

        assert "failed to write log file" in lib_logs.text
        assert len(_lines(stream.file)) == 2

    def test_open_failure_logged(self, temp_dir, make_record, lib_logs):
        stream = RollingFileStream(_config(temp_dir, auto_archive=False))
        os.rmdir(temp_dir)
        record = make_record()

        stream.write(record.level, record.to_json(), record)

        assert "failed to open log file" in lib_logs.text
        assert stream.written_bytes == 0


# =============================================================================
# Archive scheduling
# =============================================================================


@pytest.mark.unit
class TestRollingFileArchive:
    def test_first_write_schedules_archive(self, temp_dir, make_record):
        called = threading.Event()
        stream = RollingFileStream(
            _config(temp_dir), archive_fn=called.set, archive_delay=0.01
        )
        record = make_record()

        stream.write(record.level, record.to_json(), record)

        assert called.wait(2.0)
        stream.end()

    def test_no_archive_when_disabled(self, temp_dir, make_record):
        called = threading.Event()
        stream = RollingFileStream(
            _config(temp_dir, auto_archive=False),
            archive_fn=called.set,
            archive_delay=0.01,
        )
        record = make_record()

        stream.write(record.level, record.to_json(), record)

        assert not called.wait(0.2)
        stream.end()

    def test_end_cancels_pending_archive(self, temp_dir, make_record):
        called = threading.Event()
        stream = RollingFileStream(
            _config(temp_dir), archive_fn=called.set, archive_delay=0.5
        )
        record = make_record()

        stream.write(record.level, record.to_json(), record)
        stream.end()

        assert not called.wait(0.8)

    def test_archive_failure_logged(self, temp_dir, make_record, lib_logs):
        done = threading.Event()

        def failing_archive():
            done.set()
            raise RuntimeError("disk full")

        stream = RollingFileStream(
            _config(temp_dir), archive_fn=failing_archive, archive_delay=0.01
        )
        record = make_record()
        stream.write(record.level, record.to_json(), record)

        assert done.wait(2.0)
        # The error is logged right after the callback raises
        for _ in range(100):
            if "scheduled archive failed" in lib_logs.text:
                break
            threading.Event().wait(0.01)
        assert "scheduled archive failed" in lib_logs.text
        stream.end()
