"""DatabaseFileSystem — distributed namespace in SQL, stateless, no base class."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete as sa_delete
from sqlmodel import select

from .capabilities import distributed_capability
from .exceptions import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    PathIsDirectoryError,
    PathNotFoundError,
    StorageError,
)
from .paths import normalize
from .types import FileKind, FileStatus

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from linkfs.models.entries import EntryBase

    from .capabilities import BackendCapability

logger = logging.getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; treat stored times as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _split(path: str) -> tuple[str, str]:
    parsed = normalize(path)
    parent = parsed.parent()
    return (parent.path if parent is not None else "/"), parsed.name


class DatabaseFileSystem:
    """Database-backed namespace addressed by a scheme and an authority.

    All entries (files, directories and links) live in one table, so the
    namespace is portable across SQLite, PostgreSQL, etc.  The root
    directory is implicit and never stored.

    This class holds only configuration (capability, model) and has no
    session factory and no mutable state: sessions are provided
    per-operation by the mount, so it is safe for concurrent use.
    Linearizability of concurrent creates and lookups of the same path is
    delegated to the unique index on ``path``.
    """

    def __init__(
        self,
        authority: str,
        scheme: str = "lfs",
        entry_model: type[EntryBase] | None = None,
        capability: BackendCapability | None = None,
    ) -> None:
        from linkfs.models.entries import Entry

        self.capability = capability or distributed_capability(authority, scheme)
        self._entry_model: type[EntryBase] = entry_model or Entry

    @property
    def entry_model(self) -> type[EntryBase]:
        return self._entry_model

    def _require_session(self, session: AsyncSession | None) -> AsyncSession:
        if session is None:
            raise StorageError("DatabaseFileSystem requires a session")
        return session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """No-op — DFS is stateless."""

    async def close(self) -> None:
        """No-op — DFS has no resources to release."""

    # ------------------------------------------------------------------
    # Record helpers
    # ------------------------------------------------------------------

    async def _get(self, session: AsyncSession, path: str) -> EntryBase | None:
        model = self._entry_model
        result = await session.execute(
            select(model).where(model.path == path)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def _require_file(self, session: AsyncSession, path: str) -> EntryBase:
        entry = await self._get(session, path)
        if entry is None:
            raise PathNotFoundError(f"File not found: {path}")
        if entry.kind == FileKind.DIRECTORY.value:
            raise PathIsDirectoryError(f"Path is a directory, not a file: {path}")
        return entry

    async def _children(self, session: AsyncSession, path: str) -> list[EntryBase]:
        model = self._entry_model
        result = await session.execute(
            select(model)
            .where(model.parent_path == path)  # type: ignore[arg-type]
            .order_by(model.name)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def _insert(
        self, session: AsyncSession, path: str, kind: FileKind, **values: object
    ) -> None:
        if await self._get(session, path) is not None:
            raise AlreadyExistsError(f"Path already exists: {path}")
        parent, name = _split(path)
        session.add(
            self._entry_model(path=path, parent_path=parent, name=name, kind=kind.value, **values)
        )
        await session.flush()

    async def _remove(self, session: AsyncSession, entry: EntryBase, recursive: bool) -> None:
        model = self._entry_model
        if entry.kind == FileKind.DIRECTORY.value:
            if not recursive and await self._children(session, entry.path):
                raise DirectoryNotEmptyError(f"Directory is not empty: {entry.path}")
            await session.execute(
                sa_delete(model).where(
                    model.path.startswith(entry.path + "/", autoescape=True),  # type: ignore[union-attr]
                )
            )
        await session.delete(entry)
        await session.flush()

    @staticmethod
    def entry_to_status(entry: EntryBase) -> FileStatus:
        """Convert an entry record to FileStatus."""
        kind = FileKind(entry.kind)
        return FileStatus(
            path=normalize(entry.path),
            kind=kind,
            size=entry.size_bytes if kind is FileKind.FILE else 0,
            access_time=_aware(entry.access_time),
            modification_time=_aware(entry.modification_time),
            symlink_target=normalize(entry.link_target) if entry.link_target else None,
        )

    # ------------------------------------------------------------------
    # Core protocol: StorageBackend — read
    # ------------------------------------------------------------------

    async def lstat(
        self, path: str, *, session: AsyncSession | None = None
    ) -> FileStatus | None:
        sess = self._require_session(session)
        path = normalize(path).path
        if path == "/":
            return FileStatus(path=normalize("/"), kind=FileKind.DIRECTORY)
        entry = await self._get(sess, path)
        return self.entry_to_status(entry) if entry is not None else None

    async def read_bytes(
        self, path: str, *, session: AsyncSession | None = None
    ) -> bytes:
        sess = self._require_session(session)
        entry = await self._require_file(sess, normalize(path).path)
        return entry.content or b""

    async def list_dir(
        self, path: str, *, session: AsyncSession | None = None
    ) -> list[FileStatus]:
        sess = self._require_session(session)
        path = normalize(path).path
        if path != "/":
            entry = await self._get(sess, path)
            if entry is None or entry.kind != FileKind.DIRECTORY.value:
                raise PathNotFoundError(f"Directory not found: {path}")
        return [self.entry_to_status(child) for child in await self._children(sess, path)]

    # ------------------------------------------------------------------
    # Core protocol: StorageBackend — write
    # ------------------------------------------------------------------

    async def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        overwrite: bool = False,
        session: AsyncSession | None = None,
    ) -> None:
        sess = self._require_session(session)
        path = normalize(path).path
        entry = await self._get(sess, path)
        if entry is None:
            await self._insert(sess, path, FileKind.FILE, content=data, size_bytes=len(data))
            return
        if not overwrite:
            raise AlreadyExistsError(f"Path already exists: {path}")
        if entry.kind != FileKind.FILE.value:
            raise PathIsDirectoryError(f"Path is not a regular file: {path}")
        now = datetime.now(UTC)
        entry.content = data
        entry.size_bytes = len(data)
        entry.modification_time = now
        entry.access_time = now
        await sess.flush()

    async def append_bytes(
        self, path: str, data: bytes, *, session: AsyncSession | None = None
    ) -> None:
        sess = self._require_session(session)
        entry = await self._require_file(sess, normalize(path).path)
        content = (entry.content or b"") + data
        entry.content = content
        entry.size_bytes = len(content)
        entry.modification_time = datetime.now(UTC)
        await sess.flush()

    async def mkdir(self, path: str, *, session: AsyncSession | None = None) -> None:
        sess = self._require_session(session)
        path = normalize(path).path
        parent, _ = _split(path)
        if parent != "/":
            parent_entry = await self._get(sess, parent)
            if parent_entry is None or parent_entry.kind != FileKind.DIRECTORY.value:
                raise PathNotFoundError(f"Parent directory does not exist: {path}")
        await self._insert(sess, path, FileKind.DIRECTORY)

    async def create_link(
        self, path: str, target: str, *, session: AsyncSession | None = None
    ) -> None:
        sess = self._require_session(session)
        await self._insert(sess, normalize(path).path, FileKind.SYMLINK, link_target=target)

    async def delete(
        self,
        path: str,
        recursive: bool = False,
        *,
        session: AsyncSession | None = None,
    ) -> bool:
        sess = self._require_session(session)
        entry = await self._get(sess, normalize(path).path)
        if entry is None:
            return False
        await self._remove(sess, entry, recursive)
        return True

    async def rename(
        self,
        src: str,
        dest: str,
        *,
        overwrite: bool = False,
        session: AsyncSession | None = None,
    ) -> None:
        """Move an entry and, for directories, every descendant.

        Link targets are never rewritten, only link addresses.
        """
        sess = self._require_session(session)
        src = normalize(src).path
        dest = normalize(dest).path

        src_entry = await self._get(sess, src)
        if src_entry is None:
            raise PathNotFoundError(f"Source not found: {src}")

        dest_entry = await self._get(sess, dest)
        if dest_entry is not None:
            if not overwrite:
                raise AlreadyExistsError(f"Destination already exists: {dest}")
            await self._remove(sess, dest_entry, recursive=False)

        if src_entry.kind == FileKind.DIRECTORY.value:
            model = self._entry_model
            result = await sess.execute(
                select(model).where(
                    model.path.startswith(src + "/", autoescape=True),  # type: ignore[union-attr]
                )
            )
            for desc in result.scalars().all():
                desc.path = dest + desc.path[len(src):]
                desc.parent_path, desc.name = _split(desc.path)

        src_entry.path = dest
        src_entry.parent_path, src_entry.name = _split(dest)
        await sess.flush()
        logger.debug("Renamed %s to %s", src, dest)

    async def set_times(
        self,
        path: str,
        access_time: datetime | None,
        modification_time: datetime | None,
        *,
        session: AsyncSession | None = None,
    ) -> None:
        sess = self._require_session(session)
        path = normalize(path).path
        if path == "/":
            return
        entry = await self._get(sess, path)
        if entry is None:
            raise PathNotFoundError(f"File not found: {path}")
        if access_time is not None:
            entry.access_time = _utc(access_time)
        if modification_time is not None:
            entry.modification_time = _utc(modification_time)
        await sess.flush()
