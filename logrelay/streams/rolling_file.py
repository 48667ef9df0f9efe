"""
Rolling file stream.

Appends one JSON line per record to a file under the log directory and rolls
over to a new file when the UTC day changes or when the bytes written since
the last rollover reach the configured maximum. Files are named

    {log_dir}/{file}.{YYYY-MM-DD}.{start_ms}.{NN}.log

where ``start_ms`` is the stream creation time and ``NN`` the zero padded
number of rollovers within the day. A day change (including the very first
write) schedules the archive callback after a short delay so the previous
files have settled.
"""

from __future__ import annotations

import datetime
import logging
import os
import threading
import time
from collections.abc import Callable
from typing import Any, TextIO

from ..log.constants import LogConstants, LogLevel
from ..log.record import LogRecord
from ..size import size_str
from .base import LogStream
from .config import RollingFileConfig

_DAY_MS = 24 * 60 * 60 * 1000


def utc_ymd(epoch_ms: int) -> str:
    """Format epoch milliseconds as a UTC YYYY-MM-DD date."""
    moment = datetime.datetime.fromtimestamp(epoch_ms / 1000, tz=datetime.timezone.utc)
    return moment.strftime("%Y-%m-%d")


class RollingFileStream(LogStream):
    """
    Writes records to size and day rotated files.

    Writes are serialized with a lock so records forwarded by worker listener
    threads can share the stream with the main thread.
    """

    NAME = "rollingFile"

    def __init__(
        self,
        config: RollingFileConfig | None = None,
        archive_fn: Callable[[], Any] | None = None,
        lg: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
        archive_delay: float = LogConstants.ARCHIVE_DELAY_SECS,
    ) -> None:
        """
        Initialize the stream and create the log directory.

        Args:
            config: Stream settings (defaults apply when omitted)
            archive_fn: Called (without arguments) after a day change
            lg: Logger for write failures
            clock: Time source in epoch seconds
            archive_delay: Seconds between a day change and the archive call
        """
        super().__init__(config or RollingFileConfig())
        self._archive_fn = archive_fn
        self._lg = lg or logging.getLogger(__name__)
        self._clock = clock
        self._archive_delay = archive_delay

        self._lock = threading.Lock()
        self._start_ms = int(clock() * 1000)
        self._day_start = 0
        self._roll_count = 0
        self._written_bytes = 0
        self._file: str | None = None
        self._fh: TextIO | None = None
        self._archive_timer: threading.Timer | None = None

        os.makedirs(self.config.log_dir, mode=0o2775, exist_ok=True)

    @property
    def config(self) -> RollingFileConfig:
        return self._config  # type: ignore[return-value]

    @property
    def file(self) -> str | None:
        """Path of the file currently written to."""
        return self._file

    @property
    def roll_count(self) -> int:
        """Number of rollovers within the current day."""
        return self._roll_count

    @property
    def written_bytes(self) -> int:
        return self._written_bytes

    def write(self, level: LogLevel, serialized: str, record: LogRecord) -> None:
        if not self.accepts(level, serialized):
            return

        with self._lock:
            today = self._day_start_ms()
            count = self._roll_count
            if self._written_bytes >= self.config.max_bytes:
                count += 1

            day_changed = today != self._day_start
            if day_changed:
                # Day change wins over a pending size rollover
                count = 0

            if day_changed or count != self._roll_count:
                if self._file is not None:
                    self._lg.debug(
                        "rolling over log file",
                        extra={"file": self._file, "size": size_str(self._written_bytes)},
                    )
                self._day_start = today
                self._roll_count = count
                self._written_bytes = 0
                self._open()
            elif self._fh is None:
                self._open()

            self._write_line(serialized)

            if day_changed and self.config.auto_archive and self._archive_fn:
                self._schedule_archive()

    def end(self) -> None:
        """Close the active file and cancel a pending archive; idempotent."""
        with self._lock:
            if self._archive_timer is not None:
                self._archive_timer.cancel()
                self._archive_timer = None
            self._close()

    def _day_start_ms(self) -> int:
        now_ms = int(self._clock() * 1000)
        return now_ms - now_ms % _DAY_MS

    def _file_path(self) -> str:
        name = (
            f"{self.config.file}.{utc_ymd(self._day_start)}."
            f"{self._start_ms}.{self._roll_count:02d}.log"
        )
        return os.path.join(self.config.log_dir, name)

    def _open(self) -> None:
        self._close()
        self._file = self._file_path()
        try:
            self._fh = open(self._file, "a", encoding="utf-8")
        except OSError as e:
            self._lg.error(
                "failed to open log file", extra={"exception": e, "file": self._file}
            )

    def _close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as e:
            self._lg.error("failed to close log file", extra={"exception": e})

    def _write_line(self, serialized: str) -> None:
        if self._fh is None:
            return
        line = serialized + "\n"
        try:
            self._fh.write(line)
            self._fh.flush()
        except (OSError, ValueError) as e:
            self._lg.error(
                "failed to write log file",
                extra={"exception": e, "file": self._file, "json": serialized},
            )
            # Reopened on the next write
            self._fh = None
            return
        self._written_bytes += len(line.encode("utf-8"))

    def _schedule_archive(self) -> None:
        if self._archive_timer is not None:
            self._archive_timer.cancel()
        timer = threading.Timer(self._archive_delay, self._run_archive)
        timer.daemon = True
        self._archive_timer = timer
        timer.start()

    def _run_archive(self) -> None:
        self._archive_timer = None
        try:
            self._archive_fn()  # type: ignore[misc]
        except Exception as e:
            self._lg.error("scheduled archive failed", extra={"exception": e})
