"""BackendCapability — per-backend addressing and behaviour descriptor.

The resolver and the operation dispatcher consult these flags instead of
checking which backend class they are talking to.
"""

from __future__ import annotations

from dataclasses import dataclass

LOCAL_SCHEME = "file"
DISTRIBUTED_SCHEME = "lfs"


@dataclass(frozen=True)
class BackendCapability:
    """Static description of how a backend is addressed and what it honours."""

    default_scheme: str
    """Scheme attached to absolute paths that carry none, e.g. ``"file"``."""

    default_authority: str | None = None
    """Authority attached alongside the scheme.  ``None`` for local disks."""

    requires_authority: bool = False
    """If True, a path with this scheme must also carry an authority."""

    honors_explicit_timestamps: bool = False
    """If False, ``set_times`` is accepted and silently ignored."""

    follows_links_on_working_directory_change: bool = False
    """If True, ``set_working_directory`` stores the fully resolved path."""

    def __post_init__(self) -> None:
        if self.requires_authority and not self.default_authority:
            raise ValueError(
                f"Backend scheme {self.default_scheme!r} requires an authority "
                "but no default authority was given"
            )

    @property
    def root_uri(self) -> str:
        return f"{self.default_scheme}://{self.default_authority or ''}/"


def local_capability(scheme: str = LOCAL_SCHEME) -> BackendCapability:
    """Capability of a local disk: bare paths, no timestamps, no WD link following."""
    return BackendCapability(default_scheme=scheme)


def distributed_capability(
    authority: str, scheme: str = DISTRIBUTED_SCHEME
) -> BackendCapability:
    """Capability of a distributed namespace addressed by scheme + authority."""
    return BackendCapability(
        default_scheme=scheme,
        default_authority=authority,
        requires_authority=True,
        honors_explicit_timestamps=True,
        follows_links_on_working_directory_change=True,
    )
