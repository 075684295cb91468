"""
A byte stream wrapper with a bounded read-ahead buffer.

The validity precheck needs to look at the opening bytes of a response without
losing them for the write phase. `PeekableStream` keeps only those bytes in
memory and replays them ahead of the rest of the body.
"""

from typing import AsyncIterator, Protocol


class AsyncByteReader(Protocol):
    """Anything with an aiohttp-style `read(n)` coroutine (b'' at EOF)."""

    async def read(self, n: int = -1) -> bytes: ...


class PeekableStream:
    """Wraps an async byte reader so a prefix can be inspected then replayed."""

    def __init__(self, reader: AsyncByteReader):
        self._reader = reader
        self._buffer = b""
        self._eof = False
        self.bytes_received = 0

    async def peek(self, size: int) -> bytes:
        """
        Returns up to `size` leading bytes without consuming them.

        Never reads more than `size` bytes in total from the underlying reader.
        Fewer bytes are returned only when the stream ends first.
        """
        while len(self._buffer) < size and not self._eof:
            chunk = await self._reader.read(size - len(self._buffer))
            if not chunk:
                self._eof = True
                break
            self._buffer += chunk
            self.bytes_received += len(chunk)
        return self._buffer[:size]

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yields the buffered prefix followed by the remainder of the stream."""
        if self._buffer:
            buffered, self._buffer = self._buffer, b""
            yield buffered
        while not self._eof:
            chunk = await self._reader.read(chunk_size)
            if not chunk:
                self._eof = True
                break
            self.bytes_received += len(chunk)
            yield chunk
