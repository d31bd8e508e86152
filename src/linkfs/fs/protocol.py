"""StorageBackend protocol — runtime-checkable interface.

A backend exposes primitive, non-following operations on backend-local
absolute path strings (``"/a/b"``).  It never resolves symlinks: every
path it receives has already been walked by the SymlinkResolver, so only
the final component can be a link, and primitives act on that component
itself.

``session`` is optional on all methods.  SQL backends should fail fast
if ``session is None``.  Non-SQL backends ignore it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from .capabilities import BackendCapability
    from .types import FileStatus


@runtime_checkable
class StorageBackend(Protocol):
    """Core interface every backend must implement."""

    capability: BackendCapability

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Called at mount time.  No-op if not needed."""
        ...

    async def close(self) -> None:
        """Called on unmount / shutdown."""
        ...

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def lstat(
        self, path: str, *, session: AsyncSession | None = None
    ) -> FileStatus | None:
        """Status of the entry at *path* without following it.

        Returns ``None`` when the entry (or one of its parents) is missing.
        ``FileStatus.path`` is the unqualified backend path and
        ``symlink_target`` is the raw stored target.
        """
        ...

    async def read_bytes(
        self, path: str, *, session: AsyncSession | None = None
    ) -> bytes: ...

    async def list_dir(
        self, path: str, *, session: AsyncSession | None = None
    ) -> list[FileStatus]: ...

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        overwrite: bool = False,
        session: AsyncSession | None = None,
    ) -> None: ...

    async def append_bytes(
        self, path: str, data: bytes, *, session: AsyncSession | None = None
    ) -> None: ...

    async def mkdir(self, path: str, *, session: AsyncSession | None = None) -> None:
        """Create a single directory whose parent already exists."""
        ...

    async def create_link(
        self, path: str, target: str, *, session: AsyncSession | None = None
    ) -> None:
        """Store a symlink at *path* whose value is *target*, verbatim."""
        ...

    async def delete(
        self,
        path: str,
        recursive: bool = False,
        *,
        session: AsyncSession | None = None,
    ) -> bool:
        """Remove the entry itself (a link, never its target).

        Returns False if nothing existed at *path*.
        """
        ...

    async def rename(
        self,
        src: str,
        dest: str,
        *,
        overwrite: bool = False,
        session: AsyncSession | None = None,
    ) -> None: ...

    async def set_times(
        self,
        path: str,
        access_time: datetime | None,
        modification_time: datetime | None,
        *,
        session: AsyncSession | None = None,
    ) -> None: ...
