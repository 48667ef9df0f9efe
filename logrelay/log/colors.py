"""
Color management for console rendering.

Centralizes the ANSI codes and the per-level choice of colors for the tag,
message and property segments of a rendered entry.
"""

from .constants import LogConstants, LogLevel


class ColorManager:
    """Centralized ANSI color code management."""

    GRAY = "\x1b[90m"
    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    BLUE = "\x1b[34m"
    MAGENTA = "\x1b[35m"
    WHITE = "\x1b[37m"

    RESET = LogConstants.RESET

    TAG_COLORS: dict[LogLevel, str] = {
        LogLevel.TRACE: GRAY,
        LogLevel.DEBUG: BLUE,
        LogLevel.INFO: GREEN,
        LogLevel.WARN: YELLOW,
        LogLevel.ERROR: RED,
        LogLevel.SPECIAL: MAGENTA,
    }

    MSG_COLORS: dict[LogLevel, str] = {
        LogLevel.TRACE: WHITE,
        LogLevel.DEBUG: WHITE,
        LogLevel.INFO: WHITE,
        LogLevel.WARN: YELLOW,
        LogLevel.ERROR: RED,
        LogLevel.SPECIAL: MAGENTA,
    }

    @staticmethod
    def paint(text: str, color: str | None) -> str:
        """Wrap text in a color code; empty text or no color returns text."""
        if not text or not color:
            return text
        return f"{color}{text}{ColorManager.RESET}"

    @staticmethod
    def tag(level: LogLevel, text: str) -> str:
        return ColorManager.paint(text, ColorManager.TAG_COLORS.get(level))

    @staticmethod
    def message(level: LogLevel, text: str) -> str:
        return ColorManager.paint(text, ColorManager.MSG_COLORS.get(level))

    @staticmethod
    def props(level: LogLevel, text: str) -> str:
        color = ColorManager.WHITE if level is LogLevel.SPECIAL else ColorManager.GRAY
        return ColorManager.paint(text, color)
