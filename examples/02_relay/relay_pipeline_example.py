#!/usr/bin/env python3
"""
Relay Pipeline Example

Starts a relay on ephemeral ports, streams records from a logger to the
relay's input and prints them with the terminal client.

What This Example Demonstrates:
- RemoteLogStream connecting out to a relay
- History replay for a client that connects late
- Live forwarding to the attached client

Running the Example:
    # From the project root
    python examples/02_relay/relay_pipeline_example.py
"""

import asyncio
import pathlib
import sys

# Add the project root to the path
project_root = str(pathlib.Path(__file__).resolve().parents[2])
sys.path.append(project_root) if project_root not in sys.path else None

from logrelay.cli.client import run_client
from logrelay.log import MasterLogger
from logrelay.relay import ClientConfig, RelayConfig, RelayServer


async def main() -> None:
    relay = RelayServer(RelayConfig(input_host="127.0.0.1", input_port=0, output_port=0))
    await relay.start()

    root = MasterLogger("pipeline")
    root.configure(
        {
            "level": "info",
            "streams": [
                {"name": "remoteLog", "connect": {"host": "127.0.0.1", "port": relay.input_port}},
            ],
        }
    )
    await asyncio.sleep(0.2)

    # Sent before the client connects: replayed from history
    root.info("pipeline starting")
    await asyncio.sleep(0.1)

    client = asyncio.create_task(
        run_client(ClientConfig(host="127.0.0.1", port=relay.output_port))
    )
    await asyncio.sleep(0.2)

    worker = root.create_logger("worker")
    for i in range(3):
        worker.info({"msg": "processed batch", "batch": i})
        await asyncio.sleep(0.1)

    root.end()
    await relay.stop()
    await client


if __name__ == "__main__":
    asyncio.run(main())
