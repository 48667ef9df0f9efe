"""
Process identity used to enrich log records.

Host name, external address, user name and process name are resolved once at
start-up into an immutable ProcessIdentity that is passed explicitly to the
components that build records (MasterLogger, RelayServer).
"""

from __future__ import annotations

import getpass
import os
import socket
import sys
from dataclasses import dataclass


def _external_ip() -> str:
    """Best-effort external IPv4 address of this host."""
    # Connecting a UDP socket sends nothing; it only selects a route.
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            return str(s.getsockname()[0])
    except OSError:
        pass
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return "127.0.0.1"


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return str(os.getuid()) if hasattr(os, "getuid") else "unknown"


def _process_name() -> str:
    name = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else ""
    return name or "python"


@dataclass(frozen=True)
class ProcessIdentity:
    """Immutable identity of the current process."""

    host: str
    ip: str
    user: str
    process: str
    pid: int

    @classmethod
    def resolve(cls, process: str | None = None) -> ProcessIdentity:
        """
        Resolve the identity of the running process.

        Args:
            process: Process name override (defaults to the script name)
        """
        return cls(
            host=socket.gethostname(),
            ip=_external_ip(),
            user=_username(),
            process=process or _process_name(),
            pid=os.getpid(),
        )
