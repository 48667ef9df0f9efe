"""
Logger classes.

Loggers form a hierarchy per process: a root logger and children created with
``create_logger``, whose context names are dotted paths (``master.db.pool``).
All loggers of a hierarchy share the root's level.

- MasterLogger writes records through the configured streams and serves the
  worker processes attached to it.
- ForkLogger runs in a worker process and forwards every entry to the parent
  MasterLogger, keeping its level in sync with the parent's.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
import traceback
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..archiver import LogArchiver
from ..exceptions import ArchiverBusyError, LoggingError, ValidationError
from ..identity import ProcessIdentity
from ..streams.base import LogStream
from ..streams.config import ConsoleConfig, RemoteLogConfig, RollingFileConfig
from ..streams.console import ConsoleStream
from ..streams.remote import RemoteLogStream
from ..streams.rolling_file import RollingFileStream, utc_ymd
from .callback import CallbackRegistry, LogEvent
from .config import LoggerConfig
from .constants import LogConstants, LogLevel, can_log
from .mp import ForkMessageType, WorkerChannel, level_message, level_request, log_message
from .record import LogRecord

if TYPE_CHECKING:
    from multiprocessing.connection import Connection

ArchiveDone = Callable[[Exception | None, str | None], Any]


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _exception_payload(exc: BaseException, with_stack: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {"msg": str(exc), "error": type(exc).__name__}
    if with_stack:
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        payload["stack"] = _split_lines("".join(lines))
    return payload


class Logger(ABC):
    """
    Capability contract shared by every logger implementation.

    Subclasses provide ``create_logger`` and ``_log``; level handling,
    error stack capture and event callbacks live here.
    """

    def __init__(
        self, group_id: str, context_name: str = "", root_logger: Logger | None = None
    ) -> None:
        """
        Initialize the logger.

        Args:
            group_id: Logger group; parents only serve workers of the same group
            context_name: Dotted context name
            root_logger: Root of the hierarchy (None makes this logger a root)

        Raises:
            ValidationError: If group_id or context_name are not strings
        """
        if not isinstance(group_id, str) or not group_id:
            raise ValidationError("'group_id' must be a non-empty string")
        if not isinstance(context_name, str):
            raise ValidationError("'context_name' must be a string")

        self._group_id = group_id
        self._context_name = context_name
        self._root_logger: Logger = root_logger or self
        self._local_level = LogLevel.TRACE
        self._callbacks = CallbackRegistry()

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def context_name(self) -> str:
        return self._context_name

    @property
    def root_logger(self) -> Logger:
        return self._root_logger

    @property
    def is_root(self) -> bool:
        return self._root_logger is self

    @property
    def callbacks(self) -> CallbackRegistry:
        """Callbacks of this logger, triggered for each entry it logs."""
        return self._callbacks

    @property
    def level(self) -> LogLevel:
        """Minimum level, shared by the whole hierarchy."""
        return self._root_logger._local_level

    @level.setter
    def level(self, level: LogLevel | str) -> None:
        self._root_logger._local_level = LogLevel.parse(level)

    def is_enabled_for(self, level: LogLevel | str) -> bool:
        return can_log(level, self.level)

    @property
    def can_trace(self) -> bool:
        return self.level <= LogLevel.TRACE

    @property
    def can_debug(self) -> bool:
        return self.level <= LogLevel.DEBUG

    @property
    def can_info(self) -> bool:
        return self.level <= LogLevel.INFO

    @property
    def can_warn(self) -> bool:
        return self.level <= LogLevel.WARN

    @property
    def can_error(self) -> bool:
        return self.level <= LogLevel.ERROR

    @abstractmethod
    def create_logger(self, context_name: str) -> Logger:
        """Create a child logger with a sub context of this logger."""

    def trace(self, msg: Any) -> None:
        self._log_level(LogLevel.TRACE, msg)

    def debug(self, msg: Any) -> None:
        self._log_level(LogLevel.DEBUG, msg)

    def info(self, msg: Any) -> None:
        self._log_level(LogLevel.INFO, msg)

    def warn(self, msg: Any) -> None:
        self._log_level(LogLevel.WARN, msg)

    warning = warn

    def error(self, msg: Any) -> None:
        self._log_level(LogLevel.ERROR, msg)

    def special(self, msg: Any) -> None:
        """Log a special entry; it passes every level filter."""
        self._log_level(LogLevel.SPECIAL, msg)

    @abstractmethod
    def _log(self, level: LogLevel, log: Any, log_stack: list[str] | None) -> None:
        """Deliver one entry that passed the level filter."""

    def _child_context(self, context_name: str) -> str:
        if not isinstance(context_name, str) or not context_name:
            raise ValidationError("'context_name' must be a non-empty string")
        if self._context_name:
            return f"{self._context_name}.{context_name}"
        return context_name

    def _log_level(self, level: LogLevel, msg: Any) -> None:
        if msg is None:
            raise ValidationError("log message must not be None")
        if not can_log(level, self.level):
            return

        log_stack = None
        if level is LogLevel.ERROR:
            # Drop this frame and the level method that called it
            log_stack = _split_lines("".join(traceback.format_stack()[:-2]))
            if isinstance(msg, dict) and isinstance(msg.get("stack"), str):
                msg = {**msg, "stack": _split_lines(msg["stack"])}

        if isinstance(msg, BaseException):
            msg = _exception_payload(msg, with_stack=level is LogLevel.ERROR)

        self._log(level, msg, log_stack)
        self._emit(LogEvent(level, msg, log_stack, self._context_name))

    def _emit(self, event: LogEvent) -> None:
        self._callbacks.trigger(self, event)


class MasterLogger(Logger):
    """
    Root-process logger that writes records through its streams.

    Example:
        root = MasterLogger("app")
        root.configure({
            "level": "debug",
            "streams": [
                {"name": "console"},
                {"name": "rollingFile", "log_dir": "./logs"},
            ],
        })
        db = root.create_logger("db")
        db.info({"msg": "connected", "host": "localhost"})
    """

    def __init__(
        self,
        group_id: str,
        context_name: str | None = None,
        root_logger: MasterLogger | None = None,
        identity: ProcessIdentity | None = None,
        lg: logging.Logger | None = None,
    ) -> None:
        super().__init__(group_id, context_name or "master", root_logger)
        self._lg = lg or logging.getLogger(__name__)

        if root_logger is None:
            self._identity = identity or ProcessIdentity.resolve()
            self._base_log: dict[str, Any] = {}
            self._streams: list[LogStream] = []
            self._console: ConsoleStream | None = None
            self._rolling_file: RollingFileStream | None = None
            self._remote: RemoteLogStream | None = None
            self._archiver = LogArchiver(lg=self._lg)
            self._channels: list[WorkerChannel] = []
        else:
            self._identity = root_logger.identity

    @property
    def root_logger(self) -> MasterLogger:
        return self._root_logger  # type: ignore[return-value]

    @property
    def identity(self) -> ProcessIdentity:
        return self._identity

    @property
    def streams(self) -> tuple[LogStream, ...]:
        return tuple(self.root_logger._streams)

    @property
    def base_log(self) -> dict[str, Any]:
        return dict(self.root_logger._base_log)

    @property
    def archiver(self) -> LogArchiver:
        return self.root_logger._archiver

    @property
    def console_stream(self) -> ConsoleStream | None:
        return self.root_logger._console

    @property
    def rolling_file_stream(self) -> RollingFileStream | None:
        return self.root_logger._rolling_file

    @property
    def remote_stream(self) -> RemoteLogStream | None:
        return self.root_logger._remote

    @Logger.level.setter  # type: ignore[attr-defined]
    def level(self, level: LogLevel | str) -> None:
        root = self.root_logger
        root._local_level = LogLevel.parse(level)
        root._broadcast_level()

    def create_logger(self, context_name: str) -> MasterLogger:
        return MasterLogger(
            self._group_id, self._child_context(context_name), self.root_logger, lg=self._lg
        )

    def configure(self, config: LoggerConfig | dict[str, Any]) -> None:
        """
        Configure level, base fields and streams; root logger only.

        Existing streams are ended and replaced. Attached workers receive the
        new level. A remote stream starts its endpoints right away when an
        event loop is running, otherwise on ``await init_remotes()``.

        Raises:
            LoggingError: If called on a child logger
            ConfigError: If the configuration is invalid
        """
        if not self.is_root:
            raise LoggingError("Only root logger can be configured")
        if not isinstance(config, LoggerConfig):
            config = LoggerConfig.from_dict(config)

        self._local_level = config.level
        self._base_log = dict(config.base_log)

        self.end_streams()
        for stream_config in config.streams:
            self._load_stream(stream_config)

        self._broadcast_level()

    def add_stream(self, stream: LogStream) -> None:
        """Attach a stream to the root logger."""
        self.root_logger._streams.append(stream)

    def end_streams(self) -> None:
        root = self.root_logger
        streams, root._streams = root._streams, []
        for stream in streams:
            stream.end()
        root._console = root._rolling_file = root._remote = None

    async def init_remotes(self) -> None:
        """Start the listen/connect endpoints of the remote stream."""
        remote = self.root_logger._remote
        if remote is not None:
            await remote.init_remotes()

    def archive(self, callback: ArchiveDone | None = None) -> bool:
        """
        Archive the log directory into ``archive.{YYYY-MM-DD}.{now_ms}.tar.gz``.

        Archived logs are deleted, ``.gz`` files and the active rolling file
        are skipped and ``err.log``/``forever.log`` are truncated.

        Args:
            callback: Called with (error, target_file) when done; on a busy
                archiver with (ArchiverBusyError, None)

        Returns:
            True if archiving started, False if the archiver is busy
        """
        rolling = self.root_logger._rolling_file
        log_dir = rolling.config.log_dir if rolling else LogConstants.DEFAULT_LOG_DIR
        now_ms = int(time.time() * 1000)
        target = os.path.join(log_dir, f"archive.{utc_ymd(now_ms)}.{now_ms}.tar.gz")

        def ignore(path: str) -> bool:
            current = rolling.file if rolling else None
            if path.endswith(".gz"):
                return True
            return bool(current) and os.path.basename(path) == os.path.basename(current)

        def clear(path: str) -> bool:
            return os.path.basename(path) in ("err.log", "forever.log")

        def done(error: Exception | None) -> None:
            if callback is None:
                return
            if isinstance(error, ArchiverBusyError):
                callback(error, None)
            else:
                callback(error, target)

        return self.archiver.archive(
            target,
            should_delete_logs=True,
            source_dir=log_dir,
            ignore_fn=ignore,
            clear_fn=clear,
            callback=done,
        )

    def master_log(
        self,
        process: str | None,
        pid: int | None,
        context_name: str,
        level: LogLevel,
        log: Any,
        log_stack: list[str] | None = None,
    ) -> LogRecord:
        """Build a record and write it to every stream."""
        root = self.root_logger
        record = LogRecord.create(
            root._identity,
            context_name,
            level,
            log,
            log_stack=log_stack,
            process=process,
            pid=pid,
            extra=root._base_log,
        )
        serialized = record.to_json()
        for stream in list(root._streams):
            stream.write(record.level, serialized, record)
        return record

    def attach_worker(self, conn: Connection) -> WorkerChannel:
        """
        Serve a worker process over its end of a Pipe.

        The worker's entries are written through this logger's streams and
        its level requests answered.
        """
        root = self.root_logger
        channel = WorkerChannel(conn, self._group_id, root._on_worker_message)
        root._channels.append(channel)
        channel.start()
        return channel

    def detach_worker(self, channel: WorkerChannel) -> None:
        root = self.root_logger
        if channel in root._channels:
            root._channels.remove(channel)
        channel.stop()

    def end(self) -> None:
        """Stop worker channels and end all streams."""
        root = self.root_logger
        channels, root._channels = root._channels, []
        for channel in channels:
            channel.stop()
        self.end_streams()

    def _log(self, level: LogLevel, log: Any, log_stack: list[str] | None) -> None:
        self.master_log(None, None, self._context_name, level, log, log_stack)

    def _emit(self, event: LogEvent) -> None:
        if not self.is_root:
            self._callbacks.trigger(self, event)
        # The root sees the events of the whole hierarchy
        self.root_logger._callbacks.trigger(self, event)

    def _load_stream(self, config: Any) -> None:
        stream: LogStream
        if isinstance(config, ConsoleConfig):
            stream = self._console = ConsoleStream(config)
        elif isinstance(config, RollingFileConfig):
            stream = self._rolling_file = RollingFileStream(
                config, archive_fn=self.archive, lg=self._lg
            )
        elif isinstance(config, RemoteLogConfig):
            stream = self._remote = RemoteLogStream(config, lg=self._lg)
            self._start_remote(self._remote)
        else:
            return
        self._streams.append(stream)

    def _start_remote(self, remote: RemoteLogStream) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(remote.init_remotes())
        task.add_done_callback(self._remote_started)

    def _remote_started(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            self._lg.error(
                "failed to start remote log stream", extra={"exception": task.exception()}
            )

    def _broadcast_level(self) -> None:
        message = level_message(self._group_id, self._local_level)
        for channel in list(self._channels):
            channel.send(message)

    def _on_worker_message(self, channel: WorkerChannel, message: dict[str, Any]) -> None:
        kind = message.get("type")
        if kind == ForkMessageType.LOG:
            level = LogLevel.parse(message.get("level"))
            context = str(message.get("contextName") or "")
            self.master_log(
                message.get("process"),
                message.get("pid"),
                context,
                level,
                message.get("log"),
                message.get("logStack"),
            )
            self._callbacks.trigger(
                self, LogEvent(level, message.get("log"), message.get("logStack"), context)
            )
        elif kind == ForkMessageType.GET_LOGGER_LEVEL:
            channel.send(level_message(self._group_id, self.level))


class ForkLogger(Logger):
    """
    Worker-process logger that forwards entries to the parent.

    The root ForkLogger owns the worker's end of the pipe; on creation it asks
    the parent for the current level and then follows the parent's updates.
    """

    def __init__(
        self,
        group_id: str,
        conn: Connection | None = None,
        context_name: str | None = None,
        root_logger: ForkLogger | None = None,
    ) -> None:
        super().__init__(group_id, context_name or "", root_logger)
        self._channel: WorkerChannel | None = None

        if root_logger is None:
            if conn is None:
                raise ValidationError("a root ForkLogger requires a connection")
            self._process = ProcessIdentity.resolve().process
            self._channel = WorkerChannel(conn, group_id, self._on_parent_message)
            self._channel.start()
            self._channel.send(level_request(group_id))

    @property
    def root_logger(self) -> ForkLogger:
        return self._root_logger  # type: ignore[return-value]

    def create_logger(self, context_name: str) -> ForkLogger:
        return ForkLogger(
            self._group_id,
            context_name=self._child_context(context_name),
            root_logger=self.root_logger,
        )

    def close(self) -> None:
        """Stop listening for level updates."""
        channel = self.root_logger._channel
        if channel is not None:
            channel.stop()

    def _log(self, level: LogLevel, log: Any, log_stack: list[str] | None) -> None:
        root = self.root_logger
        if root._channel is None:
            return
        root._channel.send(
            log_message(
                self._group_id,
                root._process,
                os.getpid(),
                self._context_name,
                level,
                log,
                log_stack,
            )
        )

    def _on_parent_message(self, channel: WorkerChannel, message: dict[str, Any]) -> None:
        if message.get("type") != ForkMessageType.LOGGER_LEVEL:
            return
        level = message.get("level")
        if level:
            self._local_level = LogLevel.parse(level)
