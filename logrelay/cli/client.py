"""
logrelay-client: print the entries of a log server or relay on the terminal.

Usage:
    logrelay-client [host] [port] [--config FILE] [--no-color]
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from typing import Any, TextIO

from ..exceptions import ConfigError
from ..log.colors import ColorManager
from ..log.constants import LogConstants, LogLevel
from ..log.exceptions import InvalidLogLevelError
from ..log.record import message_of
from ..relay.config import ClientConfig
from ..relay.framing import LineBuffer
from ..streams.console import format_entry
from .args import (
    DefaultsHelpFormatter,
    add_common_args,
    apply_overrides,
    load_section,
    setup_logging,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logrelay-client",
        description="Connect to a log server or relay and print its log entries.",
        formatter_class=DefaultsHelpFormatter,
    )
    parser.add_argument(
        "host", nargs="?", help=f"server host [{LogConstants.DEFAULT_OUTPUT_HOST}]"
    )
    parser.add_argument(
        "port", nargs="?", help=f"server port [{LogConstants.DEFAULT_OUTPUT_PORT}]"
    )
    parser.add_argument(
        "--no-color", action="store_true", help="print without ANSI colors"
    )
    add_common_args(parser)
    return parser


def load_config(args: argparse.Namespace) -> ClientConfig:
    """
    Build the client configuration from the config file and arguments.

    Raises:
        ConfigError: If a value is invalid
    """
    data = apply_overrides(load_section(args.config, "client"), host=args.host, port=args.port)
    config = ClientConfig.from_dict(data)
    if args.no_color:
        console = dataclasses.replace(config.console, use_colors=False)
        config = dataclasses.replace(config, console=console)
    return config


def render_line(line: str, config: ClientConfig) -> str | None:
    """
    Render one received line for the terminal.

    Returns:
        The text to print, or None for an excluded entry
    """
    try:
        entry: Any = json.loads(line)
    except ValueError:
        return f"parseError: {line}\n"

    if isinstance(entry, str):
        text = ColorManager.paint(entry, ColorManager.GRAY) if config.console.use_colors else entry
        return f"{text}\n"
    if not isinstance(entry, dict):
        entry = {"log": entry}

    if entry.get("context") in config.exclude_contexts:
        return None
    log = entry.get("log") or entry
    msg = message_of({"log": log})
    if msg and msg in config.exclude_messages:
        return None

    try:
        level = LogLevel.parse(entry.get("level"))
    except InvalidLogLevelError:
        level = LogLevel.INFO
    return format_entry({**entry, "log": log}, config.console, level)


async def run_client(
    config: ClientConfig, out: TextIO | None = None, err: TextIO | None = None
) -> int:
    """
    Print entries until the server closes the connection.

    Returns:
        0 when the server closed the connection, 1 if it could not connect
    """
    out = out or sys.stdout
    err = err or sys.stderr
    try:
        reader, writer = await asyncio.open_connection(config.host, config.port)
    except OSError as e:
        err.write(f"Failed to connect to log server at {config.host}:{config.port}: {e}\n")
        return 1

    buffer = LineBuffer()
    try:
        while True:
            data = await reader.read(LogConstants.READ_CHUNK)
            if not data:
                break
            for line in buffer.feed(data):
                text = render_line(line, config)
                if text is not None:
                    out.write(text)
            out.flush()
    except (ConnectionError, OSError) as e:
        err.write(f"Socket error: {e}\n")
    finally:
        writer.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for logrelay-client."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"logrelay-client: {e}", file=sys.stderr)
        return 2

    try:
        return asyncio.run(run_client(config))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
