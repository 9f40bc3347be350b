"""Replayable cache for response bodies.

The producer releases the HTTP connection before handing the response
to the caller, so response bodies are copied into a :class:`StreamCache`.
Small bodies stay in memory; larger ones spool to a temporary file.
"""

import tempfile
from typing import AsyncIterator, Optional


class StreamCache:
    """A replayable, spoolable copy of a response body.

    :param threshold: Bytes kept in memory before spooling to disk
    :type threshold: int
    """

    def __init__(self, threshold: int = 128 * 1024):
        self._file = tempfile.SpooledTemporaryFile(max_size=threshold)
        self._size = 0

    @classmethod
    async def from_stream(
        cls, chunks: AsyncIterator[bytes], threshold: int = 128 * 1024
    ) -> "StreamCache":
        """Copy an async byte stream into a new cache.

        :param chunks: Byte chunks, e.g. ``response.aiter_bytes()``
        :type chunks: AsyncIterator[bytes]
        :param threshold: Bytes kept in memory before spooling to disk
        :type threshold: int
        :return: A cache positioned at the start of the body
        :rtype: StreamCache
        """
        cache = cls(threshold)
        try:
            async for chunk in chunks:
                cache.write(chunk)
        except BaseException:
            cache.close()
            raise
        cache.reset()
        return cache

    def write(self, data: bytes) -> None:
        self._file.write(data)
        self._size += len(data)

    def read(self, size: Optional[int] = -1) -> bytes:
        return self._file.read(size)

    def reset(self) -> None:
        """Rewind so the body can be read again."""
        self._file.seek(0)

    def getvalue(self) -> bytes:
        """Get the whole body without disturbing the read position."""
        pos = self._file.tell()
        self._file.seek(0)
        try:
            return self._file.read()
        finally:
            self._file.seek(pos)

    def text(self, encoding: str = "utf-8") -> str:
        return self.getvalue().decode(encoding)

    @property
    def size(self) -> int:
        return self._size

    @property
    def spooled(self) -> bool:
        """True once the body has been moved to disk."""
        return bool(getattr(self._file, "_rolled", False))

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "StreamCache":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"StreamCache(size={self._size}, spooled={self.spooled})"


__all__ = ["StreamCache"]
