"""
Stream reassembly.

Serial reads split and merge records at arbitrary byte boundaries. The
reassembler buffers raw chunks and emits complete ';'-terminated lines.
"""

from typing import List

from .constants import DELIMITER


class LineReassembler:
    """Recovers delimited lines from a chunked byte stream."""

    def __init__(self, delimiter: bytes = DELIMITER):
        self.delimiter = delimiter
        self._buffer = bytearray()

    def feed(self, data: bytes) -> List[str]:
        """
        Add a chunk and extract every line it completes.

        An empty chunk is not end-of-stream; it just yields nothing.
        Empty lines (e.g. from ';;') are returned as-is for the grammar
        layer to reject.

        Args:
            data: Raw bytes from the transport

        Returns:
            Complete lines, stripped of surrounding whitespace, in order
        """
        if data:
            self._buffer.extend(data)

        lines = []
        while True:
            index = self._buffer.find(self.delimiter)
            if index < 0:
                break
            record = bytes(self._buffer[:index])
            del self._buffer[:index + len(self.delimiter)]
            lines.append(record.decode("ascii", errors="replace").strip())
        return lines

    def flush(self) -> List[str]:
        """
        Emit the unterminated remainder as a final line.

        Only for input known to be finished, such as a captured stream
        replayed from disk. The live stream never calls this.
        """
        record = bytes(self._buffer)
        self._buffer = bytearray()
        if not record.strip():
            return []
        return [record.decode("ascii", errors="replace").strip()]

    def clear(self) -> None:
        """Drop any partial line."""
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Unterminated remainder waiting for more data."""
        return bytes(self._buffer)

    @property
    def buffer_size(self) -> int:
        """Get current buffer size."""
        return len(self._buffer)
