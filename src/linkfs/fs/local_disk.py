"""LocalDiskBackend — direct host-disk access, links stored as OS symlinks."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import os
import shutil
import stat
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .capabilities import local_capability
from .exceptions import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    PathIsDirectoryError,
    PathNotFoundError,
    PermissionDeniedError,
)
from .paths import normalize
from .types import FileKind, FileStatus

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from .capabilities import BackendCapability


def _timestamp(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)


class LocalDiskBackend:
    """Local disk backend rooted at ``host_dir``.

    Implements the StorageBackend protocol.  Symlinks are real OS symlinks
    whose text is the raw target exactly as the caller supplied it, so a
    target like ``lfs://nn:8020/data`` is stored untouched.  The backend
    never lets the OS follow a link: the resolver hands it paths whose
    non-final components are plain directories.

    Security: _physical() keeps every path inside host_dir and rejects
    paths that traverse an OS symlink.
    """

    def __init__(
        self,
        host_dir: Path | str,
        capability: BackendCapability | None = None,
    ) -> None:
        self.host_dir = Path(host_dir).resolve()
        self.capability = capability or local_capability()

        if not self.host_dir.exists():
            raise FileNotFoundError(f"Host directory does not exist: {self.host_dir}")
        if not self.host_dir.is_dir():
            raise NotADirectoryError(f"Host path is not a directory: {self.host_dir}")

    # =========================================================================
    # Path Resolution & Security
    # =========================================================================

    def _physical(self, path: str) -> Path:
        """Map a backend path onto host_dir without following links.

        Rejects paths whose parent components are OS symlinks to prevent
        TOCTOU escapes between resolution and use.
        """
        segments = normalize(path).segments
        current = self.host_dir
        for part in segments[:-1]:
            current = current / part
            if current.is_symlink():
                raise PermissionDeniedError(
                    f"Symlinks not allowed in parent components: {path} contains symlink at "
                    f"{current.relative_to(self.host_dir)}"
                )
        return self.host_dir.joinpath(*segments)

    def _to_status(self, path: str, st: os.stat_result, physical: Path) -> FileStatus:
        target = None
        if stat.S_ISLNK(st.st_mode):
            kind = FileKind.SYMLINK
            target = normalize(os.readlink(physical))
        elif stat.S_ISDIR(st.st_mode):
            kind = FileKind.DIRECTORY
        else:
            kind = FileKind.FILE
        return FileStatus(
            path=normalize(path),
            kind=kind,
            size=st.st_size if kind is FileKind.FILE else 0,
            access_time=_timestamp(st.st_atime),
            modification_time=_timestamp(st.st_mtime),
            symlink_target=target,
        )

    # =========================================================================
    # Lifecycle (no-op for local disk)
    # =========================================================================

    async def open(self) -> None:
        """No-op — nothing to connect to."""

    async def close(self) -> None:
        """No-op — no resources to release."""

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def lstat(
        self, path: str, *, session: AsyncSession | None = None
    ) -> FileStatus | None:
        physical = self._physical(path)

        def _lstat() -> FileStatus | None:
            try:
                st = physical.lstat()
            except (FileNotFoundError, NotADirectoryError):
                return None
            return self._to_status(path, st, physical)

        return await asyncio.to_thread(_lstat)

    async def read_bytes(
        self, path: str, *, session: AsyncSession | None = None
    ) -> bytes:
        physical = self._physical(path)
        try:
            return await asyncio.to_thread(physical.read_bytes)
        except FileNotFoundError:
            raise PathNotFoundError(f"File not found: {path}") from None
        except IsADirectoryError:
            raise PathIsDirectoryError(f"Path is a directory, not a file: {path}") from None

    async def list_dir(
        self, path: str, *, session: AsyncSession | None = None
    ) -> list[FileStatus]:
        physical = self._physical(path)
        base = normalize(path)

        def _scan() -> list[FileStatus]:
            entries: list[FileStatus] = []
            with os.scandir(physical) as it:
                for entry in it:
                    try:
                        st = entry.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        continue
                    child = base.child(entry.name)
                    entries.append(self._to_status(child.path, st, Path(entry.path)))
            entries.sort(key=lambda s: s.path.name)
            return entries

        try:
            return await asyncio.to_thread(_scan)
        except FileNotFoundError:
            raise PathNotFoundError(f"Directory not found: {path}") from None

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        overwrite: bool = False,
        session: AsyncSession | None = None,
    ) -> None:
        """Write content to a file on disk. Atomic via tempfile + replace."""
        physical = self._physical(path)

        def _write() -> None:
            if not overwrite and os.path.lexists(physical):
                raise AlreadyExistsError(f"Path already exists: {path}")
            fd, tmp_path = tempfile.mkstemp(dir=str(physical.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                Path(tmp_path).replace(physical)
            except Exception:
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise

        await asyncio.to_thread(_write)

    async def append_bytes(
        self, path: str, data: bytes, *, session: AsyncSession | None = None
    ) -> None:
        physical = self._physical(path)

        def _append() -> None:
            if not physical.is_file():
                raise PathNotFoundError(f"File not found: {path}")
            with physical.open("ab") as f:
                f.write(data)

        await asyncio.to_thread(_append)

    async def mkdir(
        self, path: str, *, session: AsyncSession | None = None
    ) -> None:
        physical = self._physical(path)
        try:
            await asyncio.to_thread(physical.mkdir)
        except FileExistsError:
            raise AlreadyExistsError(f"Path already exists: {path}") from None
        except FileNotFoundError:
            raise PathNotFoundError(f"Parent directory does not exist: {path}") from None

    async def create_link(
        self, path: str, target: str, *, session: AsyncSession | None = None
    ) -> None:
        physical = self._physical(path)
        try:
            await asyncio.to_thread(os.symlink, target, physical)
        except FileExistsError:
            raise AlreadyExistsError(f"Path already exists: {path}") from None

    def _remove(self, path: str, physical: Path, recursive: bool) -> None:
        st = physical.lstat()
        if stat.S_ISDIR(st.st_mode):
            if recursive:
                shutil.rmtree(physical)
                return
            try:
                physical.rmdir()
            except OSError as e:
                if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                    raise DirectoryNotEmptyError(f"Directory is not empty: {path}") from None
                raise
        else:
            physical.unlink()

    async def delete(
        self,
        path: str,
        recursive: bool = False,
        *,
        session: AsyncSession | None = None,
    ) -> bool:
        physical = self._physical(path)

        def _delete() -> bool:
            if not os.path.lexists(physical):
                return False
            self._remove(path, physical, recursive)
            return True

        return await asyncio.to_thread(_delete)

    async def rename(
        self,
        src: str,
        dest: str,
        *,
        overwrite: bool = False,
        session: AsyncSession | None = None,
    ) -> None:
        src_physical = self._physical(src)
        dest_physical = self._physical(dest)

        def _rename() -> None:
            if os.path.lexists(dest_physical):
                if not overwrite:
                    raise AlreadyExistsError(f"Destination already exists: {dest}")
                self._remove(dest, dest_physical, recursive=False)
            src_physical.rename(dest_physical)

        try:
            await asyncio.to_thread(_rename)
        except FileNotFoundError:
            raise PathNotFoundError(f"Source not found: {src}") from None

    async def set_times(
        self,
        path: str,
        access_time: datetime | None,
        modification_time: datetime | None,
        *,
        session: AsyncSession | None = None,
    ) -> None:
        physical = self._physical(path)

        def _utime() -> None:
            st = physical.stat()
            atime = access_time.timestamp() if access_time else st.st_atime
            mtime = modification_time.timestamp() if modification_time else st.st_mtime
            os.utime(physical, (atime, mtime))

        await asyncio.to_thread(_utime)

