"""
Log relay: forwards entries from producers to consumers with bounded history.
"""

from .config import ClientConfig, RelayConfig
from .framing import LineBuffer
from .history import HistoryRingBuffer
from .server import RELAY_CONTEXT, RelayServer

__all__ = [
    "RelayServer",
    "RelayConfig",
    "ClientConfig",
    "HistoryRingBuffer",
    "LineBuffer",
    "RELAY_CONTEXT",
]
