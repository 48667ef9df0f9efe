"""
Bounded history of relayed entries.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from ..log.constants import LogConstants


class HistoryRingBuffer:
    """
    Fixed-capacity buffer of serialized entries, oldest evicted first.

    Example:
        >>> history = HistoryRingBuffer(capacity=2)
        >>> for line in ("a", "b", "c"):
        ...     history.push(line)
        >>> list(history)
        ['b', 'c']
    """

    def __init__(self, capacity: int = LogConstants.HISTORY_SIZE) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        self._entries: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def push(self, entry: str) -> None:
        self._entries.append(entry)

    def to_list(self) -> list[str]:
        """Snapshot of the entries, oldest first."""
        return list(self._entries)

    def chunks(self, size: int = LogConstants.HISTORY_CHUNK) -> list[list[str]]:
        """Split a snapshot into consecutive groups of at most ``size`` entries."""
        if size < 1:
            raise ValueError(f"chunk size must be positive, got {size!r}")
        entries = self.to_list()
        return [entries[i : i + size] for i in range(0, len(entries), size)]
