"""
Line framing for the engine's stdout stream.

The engine writes newline-terminated lines, but the pipe delivers them in
chunks whose boundaries have nothing to do with line boundaries. LineFramer
accumulates those chunks and hands back only complete lines, in order.

Every terminator in the buffer is honoured on every feed. An earlier
approach only flushed when the whole buffer happened to end in a newline,
which held back already-complete lines whenever a chunk ended mid-line.
Here only the trailing partial line is ever retained, so any chunking of
the same bytes yields the same line sequence.
"""

from __future__ import annotations

TERMINATOR = b"\n"


class LineFramer:
    """Accumulates byte chunks and splits them into complete text lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received after the last terminator (an incomplete line)."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        """Append a chunk and return every line it completes.

        Args:
            data: Raw bytes read from the engine.

        Returns:
            Complete lines, terminator (and any trailing carriage return)
            removed, in arrival order. Empty when no line was completed.
        """
        self._buffer.extend(data)

        end = self._buffer.rfind(TERMINATOR)
        if end < 0:
            return []

        complete = bytes(self._buffer[:end])
        del self._buffer[: end + 1]

        lines = []
        for raw in complete.split(TERMINATOR):
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            lines.append(raw.decode(self._encoding, errors="replace"))
        return lines
