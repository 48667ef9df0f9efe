"""
Relay server.

Receives log entries from producers (remote log streams connecting to the
input port) and forwards them to consumers (terminal clients connecting to the
output port). The most recent entries are kept in memory and replayed to every
new consumer before it receives live entries.

Connection events on both sides are themselves relayed as log records with
context ``relay``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from ..exceptions import ServerError
from ..identity import ProcessIdentity
from ..log.constants import LogConstants, LogLevel
from ..log.record import LogRecord, message_of
from .config import RelayConfig
from .framing import LineBuffer
from .history import HistoryRingBuffer

RELAY_CONTEXT = "relay"


def _bound_port(server: asyncio.Server | None) -> int | None:
    if server is None or not server.sockets:
        return None
    return int(server.sockets[0].getsockname()[1])


class RelayServer:
    """
    Relays newline-delimited JSON log entries from producers to consumers.

    Example:
        relay = RelayServer(RelayConfig(input_port=18002, output_port=18001))
        await relay.serve_forever()
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        identity: ProcessIdentity | None = None,
        lg: logging.Logger | None = None,
    ) -> None:
        self._config = config or RelayConfig()
        self._identity = identity or ProcessIdentity.resolve()
        self._lg = lg or logging.getLogger(__name__)
        self._history = HistoryRingBuffer(self._config.history_size)
        self._outputs: dict[int, asyncio.StreamWriter] = {}
        self._inputs: set[asyncio.StreamWriter] = set()
        self._output_ids = 0
        self._input_server: asyncio.Server | None = None
        self._output_server: asyncio.Server | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def history(self) -> HistoryRingBuffer:
        return self._history

    @property
    def input_port(self) -> int | None:
        return _bound_port(self._input_server)

    @property
    def output_port(self) -> int | None:
        return _bound_port(self._output_server)

    @property
    def output_count(self) -> int:
        return len(self._outputs)

    @property
    def is_serving(self) -> bool:
        return self._input_server is not None and self._output_server is not None

    async def start(self) -> None:
        """
        Bind the input and output listeners.

        Raises:
            ServerError: If a listener cannot be bound
        """
        config = self._config
        self._stop_event = asyncio.Event()
        try:
            self._input_server = await asyncio.start_server(
                self._handle_input, config.input_host, config.input_port
            )
            self.relay_message(f"Listening for inputs on {config.input_host}:{self.input_port}")

            self._output_server = await asyncio.start_server(
                self._handle_output, config.output_host, config.output_port
            )
            self.relay_message(
                f"Listening for outputs on {config.output_host}:{self.output_port}"
            )
        except OSError as e:
            await self.stop()
            raise ServerError(f"failed to start relay: {e}") from e

        self._lg.info(
            "relay started",
            extra={"input_port": self.input_port, "output_port": self.output_port},
        )

    async def stop(self) -> None:
        """Close both listeners and every connection."""
        servers = [s for s in (self._input_server, self._output_server) if s is not None]
        self._input_server = self._output_server = None
        for server in servers:
            server.close()

        writers = list(self._inputs) + list(self._outputs.values())
        self._inputs.clear()
        self._outputs.clear()
        for writer in writers:
            writer.close()

        for server in servers:
            await server.wait_closed()

        if self._stop_event is not None:
            self._stop_event.set()

    async def serve_forever(self) -> None:
        """Start (if needed) and serve until stop() is called."""
        if not self.is_serving:
            await self.start()
        assert self._stop_event is not None
        await self._stop_event.wait()

    def relay(self, entry: Any, serialized: str) -> bool:
        """
        Store and forward a decoded entry unless it is excluded.

        Args:
            entry: Decoded JSON value
            serialized: The entry's original JSON line

        Returns:
            True if the entry was relayed
        """
        if isinstance(entry, dict) and entry.get("context") in self._config.exclude_contexts:
            return False
        msg = message_of(entry)
        if msg and msg in self._config.exclude_messages:
            return False

        self._distribute(serialized)
        return True

    def relay_message(self, message: str, level: LogLevel = LogLevel.INFO) -> LogRecord:
        """Relay a telemetry record describing the relay itself."""
        record = LogRecord.create(self._identity, RELAY_CONTEXT, level, message)
        self._distribute(record.to_json())
        return record

    def _distribute(self, serialized: str) -> None:
        self._history.push(serialized)
        data = f"{serialized}\n".encode()
        for writer in list(self._outputs.values()):
            if not writer.is_closing():
                writer.write(data)

    def _machine_name(self, writer: asyncio.StreamWriter) -> str:
        peer = writer.get_extra_info("peername")
        address = str(peer[0]) if peer else "unknown"
        return self._config.machine_name(address)

    def _replay_history(self, writer: asyncio.StreamWriter) -> None:
        for chunk in self._history.chunks(self._config.history_chunk):
            writer.write(("\n".join(chunk) + "\n").encode())

    def _process_lines(self, lines: list[str]) -> None:
        for line in lines:
            try:
                entry = json.loads(line)
            except ValueError:
                self._lg.warning("malformed log entry", extra={"line": line})
                self.relay_message(f"parseError: {line}", LogLevel.WARN)
                continue
            self.relay(entry, line)

    async def _handle_input(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        machine = self._machine_name(writer)
        self._inputs.add(writer)
        self.relay_message(f"[{machine}] Input client connected.")

        buffer = LineBuffer()
        try:
            while True:
                data = await reader.read(LogConstants.READ_CHUNK)
                if not data:
                    break
                self._process_lines(buffer.feed(data))
        except (ConnectionError, OSError) as e:
            self.relay_message(f"[{machine}] Input socket error: {e}", LogLevel.ERROR)
        finally:
            self._inputs.discard(writer)
            writer.close()
            self.relay_message(f"[{machine}] Input connection closed.")

    async def _handle_output(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._output_ids += 1
        client_id = self._output_ids
        machine = self._machine_name(writer)

        # No await between replay and registration: nothing is missed or sent twice
        self._replay_history(writer)
        self._outputs[client_id] = writer
        self.relay_message(f"[{machine}] Output client connected.")

        try:
            while await reader.read(LogConstants.READ_CHUNK):
                pass
        except (ConnectionError, OSError) as e:
            self._outputs.pop(client_id, None)
            self.relay_message(f"[{machine}] Output socket error: {e}", LogLevel.ERROR)
        finally:
            self._outputs.pop(client_id, None)
            writer.close()
            self.relay_message(f"[{machine}] Output connection closed.")
