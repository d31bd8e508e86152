"""LinkFSAsync — primary async class with mount-first API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linkfs.fs.database_fs import DatabaseFileSystem
from linkfs.fs.exceptions import MountNotFoundError
from linkfs.fs.file_context import FileContext
from linkfs.fs.mounts import MountConfig, MountRegistry
from linkfs.fs.paths import as_path
from linkfs.fs.resolver import MAX_LINK_SUBSTITUTIONS, SymlinkResolver

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from linkfs.fs.file_context import PathLike
    from linkfs.fs.protocol import StorageBackend
    from linkfs.models.entries import EntryBase

logger = logging.getLogger(__name__)


class LinkFSAsync:
    """Async facade wiring mounts, the symlink resolver and file contexts.

    Mount-first API: create an instance, mount backends, then open one
    FileContext per client session.

    Engine-based DB mount (primary API)::

        engine = create_async_engine("sqlite+aiosqlite:///ns.db")
        lfs = LinkFSAsync()
        await lfs.mount(engine=engine, authority="nn:8020")

    Local disk mount::

        await lfs.mount(LocalDiskBackend("/srv/data"))
        fc = await lfs.context("file:///", working_directory="/home")
        await fc.create_symlink("/srv/file", "/home/link")
    """

    def __init__(self, *, max_links: int = MAX_LINK_SUBSTITUTIONS) -> None:
        self._closed = False
        self._registry = MountRegistry()
        self._resolver = SymlinkResolver(self._registry, max_links=max_links)
        self._default: MountConfig | None = None

    # ------------------------------------------------------------------
    # Mount / Unmount
    # ------------------------------------------------------------------

    async def mount(
        self,
        backend: StorageBackend | None = None,
        *,
        engine: AsyncEngine | None = None,
        session_factory: Callable[..., AsyncSession] | None = None,
        authority: str | None = None,
        scheme: str = "lfs",
        entry_model: type[EntryBase] | None = None,
        label: str = "",
    ) -> MountConfig:
        """Mount a backend under its capability's ``(scheme, authority)``.

        When *engine* is provided, a session factory is created from it and
        the entry table is created if missing.  If *backend* is not given
        alongside *engine* or *session_factory*, a ``DatabaseFileSystem``
        for *authority* is created.  The first mount becomes the default
        backend of new contexts.
        """
        if engine is not None:
            if session_factory is not None:
                raise ValueError("Provide engine or session_factory, not both")
            backend = self._database_backend(backend, authority, scheme, entry_model)
            session_factory = await self._create_engine_factory(engine, backend)
        elif session_factory is not None:
            backend = self._database_backend(backend, authority, scheme, entry_model)
        elif backend is None:
            raise ValueError("Provide backend, engine, or session_factory")

        config = MountConfig(backend=backend, session_factory=session_factory, label=label)
        if self._registry.get(*config.key) is not None:
            raise ValueError(f"A backend is already mounted at {config.label}")

        await backend.open()
        self._registry.add_mount(config)
        if self._default is None:
            self._default = config
        return config

    @staticmethod
    def _database_backend(
        backend: StorageBackend | None,
        authority: str | None,
        scheme: str,
        entry_model: type[EntryBase] | None,
    ) -> StorageBackend:
        if backend is not None:
            return backend
        if not authority:
            raise ValueError("A database mount requires an authority")
        return DatabaseFileSystem(authority, scheme=scheme, entry_model=entry_model)

    @staticmethod
    async def _create_engine_factory(
        engine: AsyncEngine, backend: StorageBackend
    ) -> Callable[..., AsyncSession]:
        """Ensure the entry table exists and build a session factory."""
        if isinstance(backend, DatabaseFileSystem):
            model = backend.entry_model
            async with engine.begin() as conn:
                await conn.run_sync(
                    lambda c: model.__table__.create(c, checkfirst=True)  # type: ignore[attr-defined]
                )
        return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def unmount(self, scheme: str, authority: str | None = None) -> None:
        """Unmount the backend addressed by *scheme* and *authority*."""
        config = self._registry.remove_mount(scheme, authority)
        if config is None:
            return
        await config.backend.close()
        if self._default is config:
            mounts = self._registry.list_mounts()
            self._default = mounts[0] if mounts else None
        logger.debug("Unmounted %s", config.label)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def context(
        self,
        default: PathLike | None = None,
        working_directory: PathLike | None = None,
    ) -> FileContext:
        """Open a client session.

        *default* names the backend that supplies scheme and authority for
        unqualified absolute paths, e.g. ``"lfs://nn:8020/"``; the first
        mount is used when omitted.  The working directory starts at that
        backend's root unless *working_directory* is given, which is
        applied with :meth:`FileContext.set_working_directory`.
        """
        if default is not None:
            mount = self._registry.lookup(as_path(default))
        elif self._default is not None:
            mount = self._default
        else:
            raise MountNotFoundError("No backends are mounted")
        fc = FileContext(self._registry, self._resolver, mount)
        if working_directory is not None:
            await fc.set_working_directory(working_directory)
        return fc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close all backends."""
        if self._closed:
            return
        self._closed = True

        for mount in self._registry.list_mounts():
            try:
                await mount.backend.close()
            except Exception:
                logger.warning("Backend close failed for %s", mount.label, exc_info=True)

    async def __aenter__(self) -> LinkFSAsync:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def registry(self) -> MountRegistry:
        return self._registry

    @property
    def resolver(self) -> SymlinkResolver:
        return self._resolver
