"""
Console stream.

Renders records as a single human readable line:

    [21-06-01 12:00:00 +0000] [host] [10.0.0.1] [app.db] [worker] INFO: message { key: value; }

Error records go to stderr, everything else to stdout. The same renderer is
used by the ``logrelay-client`` tool for records received over TCP.
"""

from __future__ import annotations

import datetime
import sys
from typing import Any, TextIO

from ..log.colors import ColorManager
from ..log.constants import LogLevel
from ..log.record import LogRecord, dumps
from .base import LogStream
from .config import ConsoleConfig


def _format_time(time_ms: Any, time_format: str) -> str:
    try:
        moment = datetime.datetime.fromtimestamp(
            int(time_ms) / 1000, tz=datetime.timezone.utc
        )
    except (TypeError, ValueError, OverflowError, OSError):
        return str(time_ms)
    return moment.strftime(time_format)


def _format_props(log: Any, exclude: tuple[str, ...]) -> str:
    if not isinstance(log, dict):
        return ""
    parts = []
    for name, value in log.items():
        # msg is the message, private and excluded keys are hidden
        if name == "msg" or name.startswith("_") or name in exclude:
            continue
        if isinstance(value, (dict, list)):
            value = dumps(value)
        parts.append(f"{name}: {value}; ")
    return "".join(parts)


def format_entry(
    data: dict[str, Any], config: ConsoleConfig, level: LogLevel | None = None
) -> str:
    """
    Render a wire mapping as one console line (newline terminated).

    Args:
        data: Decoded record mapping
        config: Console settings (tags, time format, colors, exclusions)
        level: Level of the record; parsed from ``data`` when omitted

    Raises:
        InvalidLogLevelError: If the level cannot be resolved
    """
    level = level or LogLevel.parse(data.get("level"))

    tags = []
    for tag_name in config.tags:
        if tag_name not in data:
            continue
        if tag_name == "timeMs":
            tags.append(f"[{_format_time(data['timeMs'], config.time_format)}] ")
        else:
            tags.append(f"[{data[tag_name]}] ")
    tags.append(f"{level.tag}: ")

    log = data.get("log")
    msg = log if isinstance(log, str) else log.get("msg") if isinstance(log, dict) else None
    props = _format_props(log, config.exclude_properties)

    tag_text = "".join(tags)
    msg_text = str(msg).replace("\\n", "\n") if msg else ""
    props_text = f" {{ {props}}}" if props else ""

    if config.use_colors:
        tag_text = ColorManager.tag(level, tag_text)
        msg_text = ColorManager.message(level, msg_text)
        props_text = ColorManager.props(level, props_text)

    return f"{tag_text}{msg_text}{props_text}\n"


class ConsoleStream(LogStream):
    """Writes rendered records to stdout/stderr."""

    NAME = "console"

    def __init__(
        self,
        config: ConsoleConfig | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        super().__init__(config or ConsoleConfig())
        self._stdout = stdout
        self._stderr = stderr

    @property
    def config(self) -> ConsoleConfig:
        return self._config  # type: ignore[return-value]

    def write(self, level: LogLevel, serialized: str, record: LogRecord) -> None:
        if not self.accepts(level, serialized):
            return

        line = format_entry(record.to_dict(), self.config, record.level)
        if record.level is LogLevel.ERROR:
            out = self._stderr or sys.stderr
        else:
            out = self._stdout or sys.stdout
        out.write(line)
        out.flush()
