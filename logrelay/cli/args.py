"""
Argument parsing helpers shared by the command line tools.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any

from ..config import Config

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class DefaultsHelpFormatter(argparse.HelpFormatter):
    """
    Help formatter that displays default values.

    Appends the default value to the help text unless the default is
    suppressed or None.
    """

    def _get_help_string(self, action: argparse.Action) -> str:
        help_text = action.help or ""
        if action.default is not argparse.SUPPRESS and action.default is not None:
            return help_text + f" (default: {action.default})"
        return help_text


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add --config and --log-level."""
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=LOG_LEVELS,
        help="level of the tool's own diagnostics on stderr",
    )


def setup_logging(level: str) -> None:
    """Send the library's diagnostics to stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_section(path: str | None, section: str) -> dict[str, Any]:
    """
    Load one section of an optional configuration file.

    Raises:
        ConfigError: If the file cannot be loaded or the section is not a mapping
    """
    if not path:
        return {}
    return Config(path).section(section)


def apply_overrides(data: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    """Overlay the command line values that were given."""
    merged = dict(data)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged
