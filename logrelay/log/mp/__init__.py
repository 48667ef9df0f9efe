"""
Multiprocessing support for logrelay loggers.

A parent process owns a MasterLogger with the streams; worker processes use a
ForkLogger that forwards every entry to the parent over a multiprocessing
Pipe and keeps its level in sync with the parent's:

    # Parent process
    from multiprocessing import Pipe, Process

    root = MasterLogger("app")
    root.configure(config)
    parent_conn, child_conn = Pipe()
    Process(target=worker, args=(child_conn,)).start()
    root.attach_worker(parent_conn)

    # Worker process
    def worker(conn):
        lg = ForkLogger("app", conn)
        lg.info("hello from a worker")  # written by the parent's streams
"""

from .channel import WorkerChannel
from .messages import ForkMessageType, level_message, level_request, log_message

__all__ = [
    "ForkMessageType",
    "WorkerChannel",
    "level_message",
    "level_request",
    "log_message",
]
