"""
logrelay-relay: receive log entries from producers and forward them to clients.

Usage:
    logrelay-relay [input_host] [input_port] [output_host] [output_port] [--config FILE]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from ..exceptions import ConfigError, ServerError
from ..log.constants import LogConstants
from ..relay.config import RelayConfig
from ..relay.server import RelayServer
from .args import (
    DefaultsHelpFormatter,
    add_common_args,
    apply_overrides,
    load_section,
    setup_logging,
)

_lg = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logrelay-relay",
        description="Relay log entries from remote log streams to log clients.",
        formatter_class=DefaultsHelpFormatter,
    )
    parser.add_argument(
        "input_host", nargs="?", help=f"input listen host [{LogConstants.DEFAULT_INPUT_HOST}]"
    )
    parser.add_argument(
        "input_port", nargs="?", help=f"input listen port [{LogConstants.DEFAULT_INPUT_PORT}]"
    )
    parser.add_argument(
        "output_host", nargs="?", help=f"output listen host [{LogConstants.DEFAULT_OUTPUT_HOST}]"
    )
    parser.add_argument(
        "output_port", nargs="?", help=f"output listen port [{LogConstants.DEFAULT_OUTPUT_PORT}]"
    )
    add_common_args(parser)
    return parser


def load_config(args: argparse.Namespace) -> RelayConfig:
    """
    Build the relay configuration from the config file and arguments.

    Raises:
        ConfigError: If a value is invalid
    """
    data = apply_overrides(
        load_section(args.config, "relay"),
        input_host=args.input_host,
        input_port=args.input_port,
        output_host=args.output_host,
        output_port=args.output_port,
    )
    return RelayConfig.from_dict(data)


async def serve(server: RelayServer) -> None:
    try:
        await server.serve_forever()
    finally:
        await server.stop()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for logrelay-relay."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"logrelay-relay: {e}", file=sys.stderr)
        return 2

    server = RelayServer(config)
    try:
        asyncio.run(serve(server))
    except ServerError as e:
        _lg.error("relay failed", extra={"exception": e})
        print(f"logrelay-relay: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
