"""Main LinkFS class — lifecycle and sync wrappers."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

from linkfs._linkfs_async import LinkFSAsync
from linkfs.fs.local_disk import LocalDiskBackend

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

    from linkfs.fs.file_context import FileContext, PathLike
    from linkfs.fs.mounts import MountConfig
    from linkfs.fs.paths import QualifiedPath
    from linkfs.fs.streams import InputStream, OutputStream
    from linkfs.fs.types import FileStatus


class LinkFS:
    """Facade over :class:`LinkFSAsync` with a synchronous API.

    Backed by a private event loop in a background thread, so it can be
    used from plain sync code or from inside an already running loop.

    Usage::

        with LinkFS() as lfs:
            lfs.mount_local("/srv/data")
            lfs.mount_database("sqlite+aiosqlite:///ns.db", authority="nn:8020")
            fc = lfs.context("lfs://nn:8020/")
            fc.create_symlink("file:///report", "/reports/latest", create_parent=True)
            with fc.open("/reports/latest") as f:
                f.read()
    """

    def __init__(self, *, max_links: int | None = None) -> None:
        self._closed = False
        self._engines: list[AsyncEngine] = []

        # Private event loop in a daemon thread
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

        kwargs = {"max_links": max_links} if max_links is not None else {}
        self._async = LinkFSAsync(**kwargs)

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    # ------------------------------------------------------------------
    # Mounts
    # ------------------------------------------------------------------

    def mount_local(self, host_dir: str | Path, *, label: str = "") -> MountConfig:
        """Mount a local directory as the ``file`` backend."""
        return self._run(self._async.mount(LocalDiskBackend(host_dir), label=label))

    def mount_database(
        self,
        url: str | None = None,
        *,
        engine: AsyncEngine | None = None,
        authority: str,
        scheme: str = "lfs",
        label: str = "",
    ) -> MountConfig:
        """Mount an SQL namespace addressed by *scheme* and *authority*.

        Pass either a database *url* (an engine is created and disposed on
        close) or an existing async *engine*.
        """
        if (url is None) == (engine is None):
            raise ValueError("Provide exactly one of url or engine")
        return self._run(self._mount_database(url, engine, authority, scheme, label))

    async def _mount_database(
        self,
        url: str | None,
        engine: AsyncEngine | None,
        authority: str,
        scheme: str,
        label: str,
    ) -> MountConfig:
        if engine is None:
            from sqlalchemy.ext.asyncio import create_async_engine

            engine = create_async_engine(url, echo=False)
            self._engines.append(engine)
        return await self._async.mount(
            engine=engine, authority=authority, scheme=scheme, label=label
        )

    def unmount(self, scheme: str, authority: str | None = None) -> None:
        self._run(self._async.unmount(scheme, authority))

    def context(
        self,
        default: PathLike | None = None,
        working_directory: PathLike | None = None,
    ) -> SyncFileContext:
        """Open a client session; see :meth:`LinkFSAsync.context`."""
        fc = self._run(self._make_context(default, working_directory))
        return SyncFileContext(fc, self._run)

    async def _make_context(
        self, default: PathLike | None, working_directory: PathLike | None
    ) -> FileContext:
        return await self._async.context(default, working_directory)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close backends, stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True

        try:
            self._run(self._async_close())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)

    async def _async_close(self) -> None:
        await self._async.close()
        for engine in self._engines:
            await engine.dispose()

    def __enter__(self) -> LinkFS:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    @property
    def async_fs(self) -> LinkFSAsync:
        return self._async


class SyncOutputStream:
    """Blocking wrapper around an :class:`OutputStream`."""

    def __init__(self, stream: OutputStream, run: Any) -> None:
        self._stream = stream
        self._run = run

    @property
    def path(self) -> QualifiedPath:
        return self._stream.path

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def write(self, data: bytes) -> int:
        return self._stream.write(data)

    def close(self) -> None:
        self._run(self._stream.close())

    def __enter__(self) -> SyncOutputStream:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type is not None:
            self._stream.discard()
            return
        self.close()


class SyncFileContext:
    """Blocking view of a :class:`FileContext`; one per client session."""

    def __init__(self, fc: FileContext, run: Any) -> None:
        self._fc = fc
        self._run = run

    @property
    def async_context(self) -> FileContext:
        return self._fc

    # ------------------------------------------------------------------
    # Symlinks and status
    # ------------------------------------------------------------------

    def create_symlink(
        self, target: PathLike | None, link: PathLike, create_parent: bool = False
    ) -> None:
        self._run(self._fc.create_symlink(target, link, create_parent))

    def get_link_target(self, path: PathLike) -> QualifiedPath:
        return self._run(self._fc.get_link_target(path))

    def get_file_status(self, path: PathLike) -> FileStatus:
        return self._run(self._fc.get_file_status(path))

    def get_file_link_status(self, path: PathLike) -> FileStatus:
        return self._run(self._fc.get_file_link_status(path))

    def exists(self, path: PathLike) -> bool:
        return self._run(self._fc.exists(path))

    def is_file(self, path: PathLike) -> bool:
        return self._run(self._fc.is_file(path))

    def is_directory(self, path: PathLike) -> bool:
        return self._run(self._fc.is_directory(path))

    def resolve_path(self, path: PathLike) -> QualifiedPath:
        return self._run(self._fc.resolve_path(path))

    def list_status(self, path: PathLike) -> list[FileStatus]:
        return self._run(self._fc.list_status(path))

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def open(self, path: PathLike) -> InputStream:
        return self._run(self._fc.open(path))

    def create(
        self, path: PathLike, *, overwrite: bool = False, create_parent: bool = False
    ) -> SyncOutputStream:
        stream = self._run(
            self._fc.create(path, overwrite=overwrite, create_parent=create_parent)
        )
        return SyncOutputStream(stream, self._run)

    def append(self, path: PathLike) -> SyncOutputStream:
        return SyncOutputStream(self._run(self._fc.append(path)), self._run)

    # ------------------------------------------------------------------
    # Namespace
    # ------------------------------------------------------------------

    def mkdir(self, path: PathLike, create_parent: bool = False) -> None:
        self._run(self._fc.mkdir(path, create_parent))

    def delete(self, path: PathLike, recursive: bool = False) -> bool:
        return self._run(self._fc.delete(path, recursive))

    def rename(self, src: PathLike, dst: PathLike, overwrite: bool = False) -> None:
        self._run(self._fc.rename(src, dst, overwrite))

    def set_times(
        self,
        path: PathLike,
        access_time: datetime | None,
        modification_time: datetime | None,
    ) -> None:
        self._run(self._fc.set_times(path, access_time, modification_time))

    def set_working_directory(self, path: PathLike) -> None:
        self._run(self._fc.set_working_directory(path))

    def get_working_directory(self) -> QualifiedPath:
        return self._fc.get_working_directory()
