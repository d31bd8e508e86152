"""MountRegistry and MountConfig."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import MountNotFoundError, UnsupportedAuthorityError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from .capabilities import BackendCapability
    from .paths import QualifiedPath
    from .protocol import StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class MountConfig:
    """Configuration for a single mounted backend."""

    backend: StorageBackend
    """Storage backend implementing the StorageBackend protocol."""

    session_factory: Callable[..., AsyncSession] | None = None
    """Async session factory for SQL backends.  ``None`` for local disks."""

    label: str = ""
    """Display name for the mount."""

    @property
    def capability(self) -> BackendCapability:
        return self.backend.capability

    @property
    def key(self) -> tuple[str, str | None]:
        capability = self.capability
        return capability.default_scheme, capability.default_authority

    @property
    def has_session_factory(self) -> bool:
        """True when this mount has a managed session factory."""
        return self.session_factory is not None

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.capability.root_uri


@asynccontextmanager
async def session_for(mount: MountConfig) -> AsyncGenerator[AsyncSession | None]:
    """Yield a session for the given mount, or None for non-SQL.

    One session per backend primitive: committed on success, rolled back
    on any exception, always closed.
    """
    if not mount.has_session_factory:
        yield None
        return

    assert mount.session_factory is not None
    session = mount.session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


class MountRegistry:
    """Registry of mounted backends, keyed by ``(scheme, authority)``.

    Resolves qualified paths to the MountConfig that owns them and
    enforces each backend's addressing rules.
    """

    def __init__(self) -> None:
        self._mounts: dict[tuple[str, str | None], MountConfig] = {}

    def add_mount(self, config: MountConfig) -> None:
        """Add or replace a mount."""
        self._mounts[config.key] = config
        logger.debug("Mounted %s", config.label)

    def remove_mount(self, scheme: str, authority: str | None = None) -> MountConfig | None:
        """Remove a mount, returning it if it was registered."""
        return self._mounts.pop((scheme.lower(), authority), None)

    def get(self, scheme: str, authority: str | None = None) -> MountConfig | None:
        return self._mounts.get((scheme.lower(), authority))

    def has_mount(self, scheme: str, authority: str | None = None) -> bool:
        return (scheme.lower(), authority) in self._mounts

    def list_mounts(self) -> list[MountConfig]:
        """List all registered mounts, sorted by label."""
        return sorted(self._mounts.values(), key=lambda m: m.label)

    def lookup(
        self, path: QualifiedPath, original: QualifiedPath | None = None
    ) -> MountConfig:
        """Find the mount addressed by *path*'s scheme and authority.

        *original* is the path the caller supplied; it is the one named in
        error messages when *path* was produced by following links.
        """
        named = original if original is not None else path

        if path.scheme is None:
            if path.authority is not None:
                raise UnsupportedAuthorityError(
                    f"No file system for scheme: None (authority {path.authority!r}): {named}"
                )
            raise MountNotFoundError(f"Path carries no scheme: {named}")

        if path.authority is None:
            mount = self._mounts.get((path.scheme, None))
            if mount is not None:
                return mount
            if any(scheme == path.scheme for scheme, _ in self._mounts):
                raise UnsupportedAuthorityError(
                    f"Scheme {path.scheme!r} requires an authority: {named}"
                )
            raise MountNotFoundError(f"No file system for scheme: {path.scheme}: {named}")

        mount = self._mounts.get((path.scheme, path.authority))
        if mount is None:
            raise MountNotFoundError(
                f"No mount for {path.scheme}://{path.authority}: {named}"
            )
        return mount
