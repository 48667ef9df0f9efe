"""
Remote log stream.

Fans every accepted record out, as a newline terminated JSON line, to a set
of TCP peers. Peers are either connections this process opened to a remote
log server or relay (``connect:{host}:{port}``, reconnected after a fixed
delay whenever they drop) or connections accepted by one of the stream's
listeners (``client{N}``).

All socket work runs on one asyncio event loop. ``write`` may be called from
any thread; off-loop calls are handed to the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..exceptions import ConfigError
from ..log.constants import LogConstants, LogLevel
from ..log.record import LogRecord
from .base import LogStream
from .config import Endpoint, RemoteLogConfig, validate_port

# Expected while a remote end is down; retried without noise
_QUIET_ERRORS = (ConnectionRefusedError, TimeoutError, asyncio.TimeoutError)


def _check_endpoint(host: Any, port: Any, allow_zero: bool) -> int:
    if not isinstance(host, str) or not host:
        raise ConfigError("'host' must be a non-empty string", value=host)
    return validate_port(port, allow_zero=allow_zero)


class _Peer:
    """One registered socket and its lifecycle flags."""

    def __init__(self, key: str, writer: asyncio.StreamWriter | None = None) -> None:
        self.key = key
        self.writer = writer
        self.is_closed = writer is None
        self.is_ended = False
        self.reconnect_handle: asyncio.TimerHandle | None = None
        self.task: asyncio.Task | None = None

    def attach(self, writer: asyncio.StreamWriter) -> None:
        self.writer = writer
        self.is_closed = False

    def send(self, data: bytes) -> None:
        if self.is_closed or self.writer is None:
            return
        try:
            self.writer.write(data)
        except (OSError, RuntimeError):
            self.is_closed = True

    def end(self) -> None:
        """Force-close intentionally; suppresses reconnects."""
        self.is_ended = True
        self.is_closed = True
        if self.reconnect_handle is not None:
            self.reconnect_handle.cancel()
            self.reconnect_handle = None
        if self.task is not None and self.writer is None and not self.task.done():
            self.task.cancel()
        if self.writer is not None:
            # Pending output is discarded, not flushed
            self.writer.transport.abort()


class Listener:
    """
    Accepts inbound consumers for a RemoteLogStream.

    Accepted connections are registered in the stream's peer set and removed
    again when they close or fail.
    """

    def __init__(self, stream: RemoteLogStream, host: str, port: int) -> None:
        self._stream = stream
        self._host = host
        self._port = port
        self._own: dict[str, _Peer] = {}
        self._server: asyncio.Server | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        """Bound port (resolves an ephemeral port request)."""
        if self._server is not None and self._server.sockets:
            return int(self._server.sockets[0].getsockname()[1])
        return self._port

    @property
    def is_listening(self) -> bool:
        return self._server is not None

    @property
    def client_count(self) -> int:
        return len(self._own)

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, self._host, self._port)

    async def stop(self) -> None:
        """Close the server and every connection this listener accepted."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
        for key, peer in list(self._own.items()):
            peer.end()
            self._remove(key, peer)
        if server is not None:
            await server.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        key = self._stream._next_client_key()
        peer = _Peer(key, writer)
        self._own[key] = peer
        self._stream._peers[key] = peer
        try:
            # Consumers never send; reading only detects the close
            while await reader.read(LogConstants.READ_CHUNK):
                pass
        except (ConnectionError, OSError):
            pass
        finally:
            peer.is_closed = True
            self._remove(key, peer)
            writer.close()

    def _remove(self, key: str, peer: _Peer) -> None:
        self._own.pop(key, None)
        if self._stream._peers.get(key) is peer:
            del self._stream._peers[key]


class RemoteLogStream(LogStream):
    """
    Broadcasts records to remote consumers over TCP.

    Example:
        stream = RemoteLogStream(RemoteLogConfig(connect=[{"host": "10.0.0.5", "port": 18002}]))
        await stream.init_remotes()
        stream.write(record.level, record.to_json(), record)
    """

    NAME = "remoteLog"

    def __init__(
        self, config: RemoteLogConfig | None = None, lg: logging.Logger | None = None
    ) -> None:
        super().__init__(config or RemoteLogConfig())
        self._lg = lg or logging.getLogger(__name__)
        self._peers: dict[str, _Peer] = {}
        self._listeners: list[Listener] = []
        self._total = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def config(self) -> RemoteLogConfig:
        return self._config  # type: ignore[return-value]

    @property
    def peer_keys(self) -> list[str]:
        return list(self._peers)

    @property
    def listeners(self) -> list[Listener]:
        return list(self._listeners)

    def write(self, level: LogLevel, serialized: str, record: LogRecord) -> None:
        if not self.accepts(level, serialized):
            return

        data = f"{serialized}\n".encode()
        loop = self._loop
        if loop is None or self._on_loop(loop):
            self._broadcast(data)
        elif not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self._broadcast, data)
            except RuntimeError:
                # Loop closed between the check and the call
                pass

    def connect(self, host: str, port: int) -> None:
        """
        Connect (or reconnect) to a remote log server.

        Must be called from the event loop thread. Replaces any existing
        connection to the same endpoint.

        Raises:
            ConfigError: If host or port is invalid
        """
        port = _check_endpoint(host, port, allow_zero=False)
        loop = asyncio.get_running_loop()
        self._loop = loop

        key = f"connect:{host}:{port}"
        old = self._peers.get(key)
        if old is not None:
            old.end()

        peer = _Peer(key)
        self._peers[key] = peer
        peer.task = loop.create_task(self._run_outbound(peer, host, port))

    async def listen(self, host: str, port: int) -> Listener:
        """
        Listen for log consumers.

        Args:
            host: Interface to bind
            port: Port to bind (0 picks a free port)

        Raises:
            ConfigError: If host or port is invalid
            OSError: If the address cannot be bound
        """
        port = _check_endpoint(host, port, allow_zero=True)
        self._loop = asyncio.get_running_loop()
        listener = Listener(self, host, port)
        await listener.start()
        self._listeners.append(listener)
        return listener

    async def clear(self) -> None:
        """Stop all listeners, then close and forget every peer."""
        listeners, self._listeners = self._listeners, []
        await asyncio.gather(*(listener.stop() for listener in listeners))

        for peer in list(self._peers.values()):
            peer.end()
        self._peers.clear()

    async def init_remotes(self, conf: RemoteLogConfig | dict[str, Any] | None = None) -> None:
        """
        Reset the stream and apply the listen/connect endpoints of a config.

        Endpoints that fail to bind are logged and skipped.
        """
        if conf is None:
            conf = self.config
        elif isinstance(conf, dict):
            conf = RemoteLogConfig.from_dict(conf)

        await self.clear()

        for endpoint in conf.listen:
            try:
                await self.listen(endpoint.host, endpoint.port)
            except OSError as e:
                self._lg.error(
                    "failed to start log listener",
                    extra={"exception": e, "endpoint": str(endpoint)},
                )
        for endpoint in conf.connect:
            self.connect(endpoint.host, endpoint.port)

    def end(self) -> None:
        """Schedule clear() on the stream's loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        if self._on_loop(loop):
            self._spawn_clear()
        else:
            try:
                loop.call_soon_threadsafe(self._spawn_clear)
            except RuntimeError:
                pass

    def _spawn_clear(self) -> None:
        task = asyncio.ensure_future(self.clear())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _broadcast(self, data: bytes) -> None:
        for peer in list(self._peers.values()):
            if not peer.is_closed:
                peer.send(data)

    def _next_client_key(self) -> str:
        self._total += 1
        return f"client{self._total}"

    @staticmethod
    def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    async def _run_outbound(self, peer: _Peer, host: str, port: int) -> None:
        endpoint = Endpoint(host, port)
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except _QUIET_ERRORS:
            pass
        except OSError as e:
            self._lg.warning(
                "log stream host socket error",
                extra={"exception": e, "endpoint": str(endpoint)},
            )
        else:
            if peer.is_ended:
                writer.close()
                return
            peer.attach(writer)
            self._lg.info("connected to log stream host", extra={"endpoint": str(endpoint)})
            try:
                while await reader.read(LogConstants.READ_CHUNK):
                    pass
            except _QUIET_ERRORS:
                pass
            except OSError as e:
                if not peer.is_ended:
                    self._lg.warning(
                        "log stream host socket error",
                        extra={"exception": e, "endpoint": str(endpoint)},
                    )
            finally:
                writer.close()

        peer.is_closed = True
        if not peer.is_ended and self._peers.get(peer.key) is peer:
            loop = asyncio.get_running_loop()
            peer.reconnect_handle = loop.call_later(
                self.config.reconnect_delay, self.connect, host, port
            )
