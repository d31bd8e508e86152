"""Readable and writable streams returned by open/create/append."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .paths import QualifiedPath


class InputStream(io.BytesIO):
    """Read-only snapshot of a file's content taken when it was opened."""

    def __init__(self, path: QualifiedPath, data: bytes) -> None:
        super().__init__(data)
        self.path = path

    def writable(self) -> bool:
        return False

    def write(self, data: object, /) -> int:
        raise io.UnsupportedOperation("InputStream is read-only")

    def read_fully(self, size: int) -> bytes:
        """Read exactly *size* bytes or raise EOFError."""
        data = self.read(size)
        if len(data) < size:
            raise EOFError(f"Expected {size} bytes from {self.path}, got {len(data)}")
        return data


class OutputStream:
    """Buffers writes and hands them to the backend on ``close()``.

    The target entry is fixed when the stream is created (after links were
    followed), so renaming a link while the stream is open does not
    redirect the data.
    """

    def __init__(
        self, path: QualifiedPath, commit: Callable[[bytes], Awaitable[None]]
    ) -> None:
        self.path = path
        self._commit = commit
        self._buffer = bytearray()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError(f"Write to closed stream: {self.path}")
        self._buffer.extend(data)
        return len(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._commit(bytes(self._buffer))
        self._buffer.clear()

    def discard(self) -> None:
        """Close without committing the buffered bytes."""
        self._closed = True
        self._buffer.clear()

    async def __aenter__(self) -> OutputStream:
        return self

    async def __aexit__(
        self,
        exc_type: object,
        exc_val: object,
        exc_tb: object,
    ) -> None:
        if exc_type is not None:
            self.discard()
            return
        await self.close()
