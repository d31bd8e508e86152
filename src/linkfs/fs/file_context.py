"""FileContext — per-session dispatcher with a fixed follow/no-follow policy.

Every public operation qualifies its input against the session's working
directory, asks the SymlinkResolver for the terminal entry, and forwards the
resolved backend path to the owning backend's primitive.

Final-component policy::

    follows        open, create, append, set_times, list_status, mkdir,
                   get_file_status, exists, is_file, is_directory, resolve_path
    does not       delete, rename (source and destination), get_file_link_status,
                   get_link_target
    never resolves create_symlink (the link path itself)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .context import WorkingDirectoryContext
from .exceptions import (
    AlreadyExistsError,
    CrossMountError,
    DirectoryNotEmptyError,
    InvalidPathError,
    LinkFSError,
    NotASymlinkError,
    ParentNotDirectoryError,
    ParentNotFoundError,
    PathIsDirectoryError,
    PathNotFoundError,
)
from .mounts import session_for
from .paths import QualifiedPath, as_path, make_absolute, qualify
from .streams import InputStream, OutputStream
from .types import FileKind, LinkEntry

if TYPE_CHECKING:
    from datetime import datetime

    from .mounts import MountConfig, MountRegistry
    from .resolver import Resolution, SymlinkResolver
    from .types import FileStatus

logger = logging.getLogger(__name__)

PathLike = str | QualifiedPath


class FileContext:
    """One client session over a set of mounted backends.

    Holds the session's working directory; everything else is looked up
    fresh on each call.  Not safe for concurrent working-directory changes
    from several tasks: serialize ``set_working_directory`` per session.
    """

    def __init__(
        self,
        registry: MountRegistry,
        resolver: SymlinkResolver,
        default: MountConfig,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._default = default

        capability = default.capability
        root = QualifiedPath.root(capability.default_scheme, capability.default_authority)
        self._wd = WorkingDirectoryContext(root, capability)

    @property
    def default_mount(self) -> MountConfig:
        return self._default

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _qualified(self, path: PathLike | None) -> QualifiedPath:
        context = self._wd.snapshot()
        return qualify(make_absolute(as_path(path), context), context)

    async def _resolve(self, path: QualifiedPath, *, follow: bool) -> Resolution:
        return await self._resolver.resolve(path, self._wd.snapshot(), follow=follow)

    async def _require(self, path: QualifiedPath, *, follow: bool) -> tuple[Resolution, FileStatus]:
        resolution = await self._resolve(path, follow=follow)
        if resolution.status is None:
            raise PathNotFoundError(f"File not found: {path}")
        return resolution, resolution.status

    async def _make_parents(self, resolution: Resolution) -> None:
        parent = resolution.path.parent()
        if parent is None:
            return
        mount = resolution.mount
        prefix = QualifiedPath.root(parent.scheme, parent.authority)
        async with session_for(mount) as sess:
            for name in parent.segments:
                prefix = prefix.child(name)
                if await mount.backend.lstat(prefix.path, session=sess) is None:
                    await mount.backend.mkdir(prefix.path, session=sess)

    async def _prepare_parent(
        self, resolution: Resolution, original: QualifiedPath, create_parent: bool
    ) -> None:
        if resolution.parent_exists:
            return
        if not create_parent:
            raise ParentNotFoundError(f"Parent directory does not exist: {original}")
        await self._make_parents(resolution)

    async def _has_children(self, resolution: Resolution) -> bool:
        mount = resolution.mount
        async with session_for(mount) as sess:
            return bool(await mount.backend.list_dir(resolution.path.path, session=sess))

    @staticmethod
    def _qualify_target(link_path: QualifiedPath, raw: QualifiedPath) -> QualifiedPath:
        """Report a raw target relative to the link that stores it.

        Fully and partially qualified targets are reported verbatim.
        """
        if raw.has_location:
            return raw
        if not raw.absolute:
            parent = link_path.parent()
            assert parent is not None
            return parent.join(raw)
        return raw.with_location(link_path.scheme, link_path.authority)

    def _located(self, status: FileStatus, path: QualifiedPath) -> FileStatus:
        if status.kind is FileKind.SYMLINK and status.symlink_target is not None:
            target = self._qualify_target(path, status.symlink_target)
            return replace(status, path=path, symlink_target=target)
        return replace(status, path=path)

    # ------------------------------------------------------------------
    # Symlinks
    # ------------------------------------------------------------------

    async def create_symlink(
        self,
        target: PathLike | None,
        link: PathLike,
        create_parent: bool = False,
    ) -> None:
        """Create a link at *link* whose value is *target*.

        The target is not checked for existence; dangling links are legal.
        """
        if target is None:
            raise InvalidPathError("Cannot create a symbolic link to a null target")
        raw = as_path(target)
        link_path = self._qualified(link)

        resolution = await self._resolve(link_path, follow=False)
        if resolution.exists:
            raise AlreadyExistsError(f"Path already exists: {link_path}")
        await self._prepare_parent(resolution, link_path, create_parent)

        mount = resolution.mount
        capability = mount.capability
        if capability.requires_authority and raw.absolute and not raw.has_location:
            raw = raw.with_location(capability.default_scheme, capability.default_authority)

        entry = LinkEntry(link_path=resolution.path, raw_target=raw)
        async with session_for(mount) as sess:
            await mount.backend.create_link(
                entry.link_path.path, str(entry.raw_target), session=sess
            )
        logger.debug("Created link %s -> %s", entry.link_path, entry.raw_target)

    async def get_link_target(self, path: PathLike) -> QualifiedPath:
        """Return the target of the link at *path* exactly as stored."""
        qualified = self._qualified(path)
        _, status = await self._require(qualified, follow=False)
        if status.kind is not FileKind.SYMLINK or status.symlink_target is None:
            raise NotASymlinkError(f"Path {qualified} is not a symbolic link")
        return status.symlink_target

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def get_file_status(self, path: PathLike) -> FileStatus:
        """Status of the entry at *path*, following a final link."""
        qualified = self._qualified(path)
        resolution, status = await self._require(qualified, follow=True)
        return self._located(status, resolution.path)

    async def get_file_link_status(self, path: PathLike) -> FileStatus:
        """Status of the entry at *path* itself; a link reports its target."""
        qualified = self._qualified(path)
        resolution, status = await self._require(qualified, follow=False)
        return self._located(status, resolution.path)

    async def exists(self, path: PathLike) -> bool:
        try:
            resolution = await self._resolve(self._qualified(path), follow=True)
        except ParentNotDirectoryError:
            return False
        return resolution.exists

    async def is_file(self, path: PathLike) -> bool:
        try:
            status = await self.get_file_status(path)
        except (PathNotFoundError, ParentNotDirectoryError):
            return False
        return status.is_file

    async def is_directory(self, path: PathLike) -> bool:
        try:
            status = await self.get_file_status(path)
        except (PathNotFoundError, ParentNotDirectoryError):
            return False
        return status.is_directory

    async def resolve_path(self, path: PathLike) -> QualifiedPath:
        """Fully qualified path of the entry *path* finally refers to."""
        qualified = self._qualified(path)
        resolution, _ = await self._require(qualified, follow=True)
        return resolution.path

    async def list_status(self, path: PathLike) -> list[FileStatus]:
        """List a directory (children are not followed), or stat a file."""
        qualified = self._qualified(path)
        resolution, status = await self._require(qualified, follow=True)
        if not status.is_directory:
            return [self._located(status, resolution.path)]

        mount = resolution.mount
        async with session_for(mount) as sess:
            entries = await mount.backend.list_dir(resolution.path.path, session=sess)
        listed = [self._located(entry, resolution.path.child(entry.path.name)) for entry in entries]
        listed.sort(key=lambda s: s.path.name)
        return listed

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def open(self, path: PathLike) -> InputStream:
        qualified = self._qualified(path)
        resolution, status = await self._require(qualified, follow=True)
        if status.is_directory:
            raise PathIsDirectoryError(f"Path is a directory, not a file: {qualified}")

        mount = resolution.mount
        async with session_for(mount) as sess:
            data = await mount.backend.read_bytes(resolution.path.path, session=sess)
        return InputStream(qualified, data)

    async def create(
        self,
        path: PathLike,
        *,
        overwrite: bool = False,
        create_parent: bool = False,
    ) -> OutputStream:
        """Create (or truncate, with *overwrite*) a file and return a stream to it."""
        qualified = self._qualified(path)
        resolution = await self._resolve(qualified, follow=True)
        status = resolution.status
        if status is not None:
            if status.is_directory:
                raise AlreadyExistsError(f"Path already exists as a directory: {qualified}")
            if not overwrite:
                raise AlreadyExistsError(f"Path already exists: {qualified}")
        else:
            await self._prepare_parent(resolution, qualified, create_parent)

        mount = resolution.mount
        target = resolution.path.path
        async with session_for(mount) as sess:
            await mount.backend.write_bytes(target, b"", overwrite=overwrite, session=sess)

        async def commit(data: bytes) -> None:
            async with session_for(mount) as sess:
                await mount.backend.write_bytes(target, data, overwrite=True, session=sess)

        return OutputStream(qualified, commit)

    async def append(self, path: PathLike) -> OutputStream:
        qualified = self._qualified(path)
        resolution, status = await self._require(qualified, follow=True)
        if status.is_directory:
            raise PathIsDirectoryError(f"Path is a directory, not a file: {qualified}")

        mount = resolution.mount
        target = resolution.path.path

        async def commit(data: bytes) -> None:
            async with session_for(mount) as sess:
                await mount.backend.append_bytes(target, data, session=sess)

        return OutputStream(qualified, commit)

    # ------------------------------------------------------------------
    # Namespace
    # ------------------------------------------------------------------

    async def mkdir(self, path: PathLike, create_parent: bool = False) -> None:
        qualified = self._qualified(path)
        resolution = await self._resolve(qualified, follow=True)
        status = resolution.status
        if status is not None:
            if create_parent and status.is_directory:
                return
            raise AlreadyExistsError(f"Path already exists: {qualified}")
        await self._prepare_parent(resolution, qualified, create_parent)

        mount = resolution.mount
        async with session_for(mount) as sess:
            await mount.backend.mkdir(resolution.path.path, session=sess)

    async def delete(self, path: PathLike, recursive: bool = False) -> bool:
        """Delete the entry at *path*.  A link is removed, never its target.

        Returns False if nothing existed at *path*.
        """
        qualified = self._qualified(path)
        try:
            resolution = await self._resolve(qualified, follow=False)
        except ParentNotDirectoryError:
            return False
        status = resolution.status
        if status is None:
            return False
        if resolution.path.is_root:
            raise LinkFSError(f"Cannot delete the root directory: {qualified}")
        if status.is_directory and not recursive and await self._has_children(resolution):
            raise DirectoryNotEmptyError(f"Directory is not empty: {qualified}")

        mount = resolution.mount
        async with session_for(mount) as sess:
            return await mount.backend.delete(resolution.path.path, recursive, session=sess)

    async def rename(self, src: PathLike, dst: PathLike, overwrite: bool = False) -> None:
        """Move *src* to *dst*.

        Links in non-final components are followed; a link named by either
        final component is itself moved or replaced, and stored targets are
        never rewritten.
        """
        src_q = self._qualified(src)
        dst_q = self._qualified(dst)

        source, src_status = await self._require(src_q, follow=False)
        dest = await self._resolve(dst_q, follow=False)

        if source.mount is not dest.mount:
            raise CrossMountError(f"Cannot rename across file systems: {src_q} -> {dst_q}")
        if source.path.is_root:
            raise LinkFSError(f"Cannot rename the root directory: {src_q}")
        if source.path == dest.path:
            return
        if source.path.is_ancestor_of(dest.path):
            raise LinkFSError(f"Cannot move directory into itself: {dst_q} is inside {src_q}")

        dst_status = dest.status
        if dst_status is not None:
            if not overwrite:
                raise AlreadyExistsError(f"Destination already exists: {dst_q}")
            if dst_status.is_directory:
                if not src_status.is_directory:
                    raise PathIsDirectoryError(
                        f"Cannot overwrite directory {dst_q} with non-directory {src_q}"
                    )
                if await self._has_children(dest):
                    raise DirectoryNotEmptyError(f"Destination directory is not empty: {dst_q}")
            elif src_status.is_directory:
                raise AlreadyExistsError(
                    f"Cannot overwrite non-directory {dst_q} with directory {src_q}"
                )
        elif not dest.parent_exists:
            raise ParentNotFoundError(f"Parent directory does not exist: {dst_q}")

        mount = source.mount
        async with session_for(mount) as sess:
            await mount.backend.rename(
                source.path.path, dest.path.path, overwrite=overwrite, session=sess
            )

    async def set_times(
        self,
        path: PathLike,
        access_time: datetime | None,
        modification_time: datetime | None,
    ) -> None:
        """Set the times of the entry *path* finally refers to.

        No-op on backends that do not honor explicit timestamps.
        """
        qualified = self._qualified(path)
        resolution, _ = await self._require(qualified, follow=True)
        mount = resolution.mount
        if not mount.capability.honors_explicit_timestamps:
            logger.debug("Ignoring set_times on %s: timestamps not honored", qualified)
            return
        async with session_for(mount) as sess:
            await mount.backend.set_times(
                resolution.path.path, access_time, modification_time, session=sess
            )

    # ------------------------------------------------------------------
    # Working directory
    # ------------------------------------------------------------------

    async def set_working_directory(self, path: PathLike) -> None:
        """Change the session's working directory.

        Whether links are resolved before storing depends on the backend
        that owns *path*.
        """
        qualified = self._qualified(path)
        resolution, status = await self._require(qualified, follow=True)
        if not status.is_directory:
            raise PathNotFoundError(f"Cannot set working directory to a file: {qualified}")

        capability = self._registry.lookup(qualified).capability
        if capability.follows_links_on_working_directory_change:
            self._wd.set(resolution.path)
        else:
            self._wd.set(qualified)

    def get_working_directory(self) -> QualifiedPath:
        return self._wd.working_directory
