"""
Callback system for logger events.

Every entry logged through a logger (and every entry forwarded from a worker
process) is announced to callbacks registered for its level, allowing external
code to react to logging events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .constants import LogLevel
from .exceptions import CallbackError

if TYPE_CHECKING:
    from .logger import Logger

_lg = logging.getLogger(__name__)


class LogEvent:
    """Payload handed to callbacks."""

    __slots__ = ("level", "message", "log_stack", "context")

    def __init__(
        self,
        level: LogLevel,
        message: Any,
        log_stack: list[str] | None = None,
        context: str = "",
    ) -> None:
        self.level = level
        self.message = message
        self.log_stack = log_stack
        self.context = context

    def __repr__(self) -> str:
        return f"LogEvent({self.level.value}, {self.context!r}, {self.message!r})"


class CallbackRegistry:
    """
    Manages log event callbacks.

    Example:
        >>> registry = CallbackRegistry()
        >>>
        >>> def on_error(logger, event):
        ...     page_someone(event.message)
        >>>
        >>> registry.register(LogLevel.ERROR, on_error)
        >>> registry.has_callbacks(LogLevel.ERROR)
        True
    """

    def __init__(self) -> None:
        self._callbacks: dict[LogLevel, list[Callable[..., Any]]] = {}

    def register(self, level: LogLevel | str, callback: Callable[..., Any]) -> None:
        """
        Register a callback for a specific level.

        Raises:
            CallbackError: If callback is not callable
            InvalidLogLevelError: If level is unknown
        """
        if not callable(callback):
            raise CallbackError(f"Callback must be callable, got {type(callback)}")
        self._callbacks.setdefault(LogLevel.parse(level), []).append(callback)

    def trigger(self, logger: Logger, event: LogEvent) -> None:
        """Invoke callbacks for the event's level; callback errors are logged."""
        for callback in self._callbacks.get(event.level, ()):
            try:
                callback(logger, event)
            except Exception as e:
                # Don't let callback errors break logging
                _lg.warning("callback error", extra={"exception": e})

    def has_callbacks(self, level: LogLevel | str) -> bool:
        return bool(self._callbacks.get(LogLevel.parse(level)))

    def remove_callback(self, level: LogLevel | str, callback: Callable[..., Any]) -> bool:
        """
        Remove a specific callback from a level.

        Returns:
            True if callback was removed, False if not found
        """
        callbacks = self._callbacks.get(LogLevel.parse(level))
        if not callbacks or callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def clear(self) -> None:
        """Clear all registered callbacks."""
        self._callbacks.clear()


def listens_for(logger: Logger, level: LogLevel | str) -> Callable[..., Any]:
    """
    Decorator for registering callbacks with a logger.

    Example:
        @listens_for(root, "error")
        def alert(logger, event):
            ...
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        logger.callbacks.register(level, func)
        return func

    return decorator
