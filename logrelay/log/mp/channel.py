"""
Worker channel: one end of a parent/worker logger pipe.

The parent runs one channel per worker to receive forwarded entries and level
requests; a worker's root logger runs one to receive level updates.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from multiprocessing.connection import Connection

_lg = logging.getLogger(__name__)


class WorkerChannel:
    """
    Reads messages of one logger group from a multiprocessing Connection.

    Runs a background thread that polls the connection and passes every
    message whose ``groupId`` matches to the handler. Messages of other
    groups are ignored. Sending is serialized with a lock so several threads
    can share the connection.

    Usage:
        parent_conn, child_conn = multiprocessing.Pipe()
        channel = WorkerChannel(parent_conn, "app", handle_message)
        channel.start()
        ...
        channel.stop()

    Thread Safety:
        The listener runs in its own daemon thread. It's safe to call
        start(), stop() and send() from any thread.
    """

    def __init__(
        self,
        conn: Connection,
        group_id: str,
        handler: Callable[[WorkerChannel, dict[str, Any]], Any],
        poll_interval: float = 0.5,
    ) -> None:
        """
        Initialize the channel.

        Args:
            conn: Connection end owned by this process
            group_id: Logger group whose messages are handled
            handler: Called with (channel, message) on the listener thread
            poll_interval: Seconds between stop checks while idle
        """
        self._conn = conn
        self._group_id = group_id
        self._handler = handler
        self._poll_interval = poll_interval
        self._send_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def conn(self) -> Connection:
        return self._conn

    @property
    def is_alive(self) -> bool:
        """Check if the listener thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._listen, name="logrelay-worker-channel", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the listener thread; the connection stays open."""
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def send(self, message: dict[str, Any]) -> bool:
        """
        Send a message to the other end.

        Returns:
            False if the other end is gone
        """
        with self._send_lock:
            try:
                self._conn.send(message)
            except (OSError, EOFError, ValueError) as e:
                _lg.debug("worker channel closed", extra={"exception": e})
                return False
        return True

    def _listen(self) -> None:
        while not self._stop_event.is_set():
            try:
                if not self._conn.poll(self._poll_interval):
                    continue
                message = self._conn.recv()
            except (EOFError, OSError):
                # Other end closed
                break

            if not isinstance(message, dict) or message.get("groupId") != self._group_id:
                continue
            try:
                self._handler(self, message)
            except Exception as e:
                # Don't let the listener thread die from a bad message
                _lg.error("error handling worker message", extra={"exception": e})
