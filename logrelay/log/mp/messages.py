"""
Messages exchanged between a parent logger and its worker processes.

Every message is a plain dict carrying the logger ``groupId`` and a ``type``;
a parent only handles messages of its own group, so several independent
logger groups can share one channel.
"""

from __future__ import annotations

from typing import Any

from ..constants import LogLevel


class ForkMessageType:
    """Message kinds of the parent/worker logger protocol."""

    # Parent -> worker: the current logger level
    LOGGER_LEVEL = "logger-level"
    # Worker -> parent: ask for the current logger level
    GET_LOGGER_LEVEL = "logger-level-request"
    # Worker -> parent: one log entry to write through the parent's streams
    LOG = "logger-log"


def level_message(group_id: str, level: LogLevel) -> dict[str, Any]:
    return {"groupId": group_id, "type": ForkMessageType.LOGGER_LEVEL, "level": level.value}


def level_request(group_id: str) -> dict[str, Any]:
    return {"groupId": group_id, "type": ForkMessageType.GET_LOGGER_LEVEL}


def log_message(
    group_id: str,
    process: str,
    pid: int,
    context_name: str,
    level: LogLevel,
    log: Any,
    log_stack: list[str] | None,
) -> dict[str, Any]:
    return {
        "groupId": group_id,
        "type": ForkMessageType.LOG,
        "process": process,
        "pid": pid,
        "contextName": context_name,
        "level": level.value,
        "log": log,
        "logStack": log_stack,
    }
