"""
Newline-delimited framing for partial TCP reads.
"""

from __future__ import annotations


class LineBuffer:
    """
    Collects chunks of a newline-delimited stream.

    Chunks are held until the buffered data ends with a newline; the whole
    buffer is then decoded as UTF-8, split into lines (empty lines dropped)
    and cleared. Working on bytes keeps multibyte characters split across
    reads intact.

    Example:
        >>> buf = LineBuffer()
        >>> buf.feed(b'{"a": 1}\\n{"b"')
        []
        >>> buf.feed(b': 2}\\n')
        ['{"a": 1}', '{"b": 2}']
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def __len__(self) -> int:
        """Number of buffered bytes."""
        return sum(len(chunk) for chunk in self._chunks)

    def feed(self, data: bytes) -> list[str]:
        """Add a chunk; returns the complete lines once the buffer ends with a newline."""
        if not data:
            return []
        self._chunks.append(data)
        if not data.endswith(b"\n"):
            return []

        text = b"".join(self._chunks).decode("utf-8", errors="replace")
        self._chunks.clear()
        return [line for line in text.split("\n") if line]
