"""
Log record model and wire serialization.

A record is serialized as a single JSON object. JSON string escaping keeps
embedded newlines out of the encoded text, so ``"\\n"`` can delimit records on
files and TCP streams. Field names on the wire follow the established format
(``timeMs``, ``log``, ``logStack``) so existing producers and consumers
interoperate.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

from ..identity import ProcessIdentity
from .constants import LogLevel


def _json_default(value: Any) -> Any:
    """Fallback encoder for values json cannot encode natively."""
    if isinstance(value, BaseException):
        return {"error": str(value), "type": type(value).__name__}
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def dumps(data: Any) -> str:
    """Serialize data to a single-line JSON string."""
    return json.dumps(data, default=_json_default, ensure_ascii=False)


def message_of(entry: Any) -> str | None:
    """
    Extract the human message from a decoded wire entry.

    Entries may be bare strings, records whose ``log`` payload is a string,
    or records whose payload is a mapping with a ``msg`` key.
    """
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, dict):
        return None
    payload = entry.get("log", entry)
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        msg = payload.get("msg")
        if msg is None and payload is not entry:
            msg = entry.get("msg")
        return None if msg is None else str(msg)
    return None


@dataclass(frozen=True)
class LogRecord:
    """One structured log entry."""

    time_ms: int
    host: str
    ip: str
    user: str
    process: str
    pid: int
    context: str
    level: LogLevel
    log: Any
    log_stack: list[str] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        identity: ProcessIdentity,
        context: str,
        level: LogLevel | str,
        log: Any,
        log_stack: list[str] | None = None,
        process: str | None = None,
        pid: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> LogRecord:
        """Build a record stamped with the current time and process identity."""
        return cls(
            time_ms=int(time.time() * 1000),
            host=identity.host,
            ip=identity.ip,
            user=identity.user,
            process=process or identity.process,
            pid=pid or identity.pid,
            context=context,
            level=LogLevel.parse(level),
            log=log,
            log_stack=log_stack,
            extra=dict(extra or {}),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogRecord:
        """
        Build a record from a decoded wire mapping.

        Unknown keys are kept in ``extra``; a missing level defaults to info.
        """
        known = {"timeMs", "host", "ip", "user", "process", "pid", "context"}
        known |= {"level", "log", "logStack"}
        return cls(
            time_ms=int(data.get("timeMs") or 0),
            host=str(data.get("host", "")),
            ip=str(data.get("ip", "")),
            user=str(data.get("user", "")),
            process=str(data.get("process", "")),
            pid=int(data.get("pid") or 0),
            context=str(data.get("context", "")),
            level=LogLevel.parse(data.get("level", "info")),
            log=data.get("log"),
            log_stack=data.get("logStack"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    @property
    def message(self) -> str | None:
        """The human message carried by the payload, if any."""
        return message_of({"log": self.log})

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire mapping."""
        data: dict[str, Any] = {
            "timeMs": self.time_ms,
            "ip": self.ip,
            "host": self.host,
            "user": self.user,
            "process": self.process,
            "pid": self.pid,
            "context": self.context,
            "level": self.level.value,
            "log": self.log,
        }
        if self.log_stack is not None:
            data["logStack"] = self.log_stack
        data.update(self.extra)
        return data

    def to_json(self) -> str:
        """Serialize to a single-line JSON string."""
        return dumps(self.to_dict())
