"""SymlinkResolver — walks a qualified path, substituting links as it goes.

The walk is an explicit loop over the not-yet-resolved suffix of the
path rather than recursion, so the cycle bound is a single counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import (
    CyclicSymlinkError,
    ParentNotDirectoryError,
    UnsupportedAuthorityError,
)
from .mounts import session_for
from .paths import QualifiedPath
from .types import FileKind

if TYPE_CHECKING:
    from .context import ResolutionContext
    from .mounts import MountConfig, MountRegistry
    from .types import FileStatus

logger = logging.getLogger(__name__)

MAX_LINK_SUBSTITUTIONS = 32


@dataclass(frozen=True)
class Resolution:
    """Terminal outcome of a successful walk.

    ``status`` is ``None`` when the terminal entry does not exist;
    ``parent_exists`` tells whether every component before it did.
    """

    path: QualifiedPath
    mount: MountConfig
    status: FileStatus | None
    parent_exists: bool

    @property
    def exists(self) -> bool:
        return self.status is not None


@dataclass(frozen=True)
class _LinkHit:
    link_path: QualifiedPath
    target: QualifiedPath
    remaining: tuple[str, ...]


class SymlinkResolver:
    """Resolution engine shared by every session over one MountRegistry.

    Stateless between calls: each ``resolve`` performs a fresh walk.
    """

    def __init__(
        self, registry: MountRegistry, max_links: int = MAX_LINK_SUBSTITUTIONS
    ) -> None:
        self._registry = registry
        self.max_links = max_links

    async def resolve(
        self,
        path: QualifiedPath,
        context: ResolutionContext,
        *,
        follow: bool = True,
    ) -> Resolution:
        """Resolve *path*, following its final component if *follow*.

        *path* must already be absolute; unqualified absolute paths are
        routed to the backend named by *context*.
        """
        if not path.has_location:
            capability = context.capability
            path = path.with_location(capability.default_scheme, capability.default_authority)

        original = current = path
        substitutions = 0
        while True:
            mount = self._registry.lookup(current, original)
            outcome = await self._walk(current, mount, original, follow)
            if isinstance(outcome, Resolution):
                return outcome

            substitutions += 1
            if substitutions > self.max_links:
                raise CyclicSymlinkError(
                    f"Possible cyclic loop while following symbolic link {original}"
                )
            current = self._substitute(outcome, mount, original)
            logger.debug("Link %s -> %s", outcome.link_path, current)

    async def _walk(
        self,
        path: QualifiedPath,
        mount: MountConfig,
        original: QualifiedPath,
        follow: bool,
    ) -> Resolution | _LinkHit:
        backend = mount.backend
        prefix = QualifiedPath.root(path.scheme, path.authority)
        last = len(path.segments) - 1

        status: FileStatus | None = None
        async with session_for(mount) as sess:
            if path.is_root:
                status = await backend.lstat("/", session=sess)

            for index, name in enumerate(path.segments):
                prefix = prefix.child(name)
                status = await backend.lstat(prefix.path, session=sess)
                is_final = index == last

                if status is None:
                    return Resolution(path, mount, None, parent_exists=is_final)

                if status.kind is FileKind.SYMLINK and (follow or not is_final):
                    assert status.symlink_target is not None
                    return _LinkHit(prefix, status.symlink_target, path.segments[index + 1 :])

                if not is_final and status.kind is FileKind.FILE:
                    raise ParentNotDirectoryError(
                        f"Parent path is not a directory: {prefix} (resolving {original})"
                    )

        return Resolution(path, mount, status, parent_exists=True)

    def _substitute(
        self, hit: _LinkHit, mount: MountConfig, original: QualifiedPath
    ) -> QualifiedPath:
        """Splice a link's target in place of the consumed prefix."""
        target = hit.target

        if target.authority is not None and target.scheme is None:
            raise UnsupportedAuthorityError(
                f"No file system for scheme: None (link {hit.link_path} -> {target}): {original}"
            )

        if not target.absolute:
            parent = hit.link_path.parent()
            assert parent is not None
            target = parent.join(target)
        elif not target.has_location:
            capability = mount.capability
            target = target.with_location(capability.default_scheme, capability.default_authority)

        return target.child(*hit.remaining)
