"""QualifiedPath parsing, normalization and qualification.

Purely syntactic: nothing in this module talks to a backend.  A path string
follows the grammar::

    [scheme "://" [authority]] "/" segment ("/" segment)*
    segment ("/" segment)*                      (relative)

and ``"//" authority "/" ...`` denotes an authority without a scheme.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .exceptions import InvalidPathError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .context import ResolutionContext

MAX_PATH_LENGTH = 4096
MAX_NAME_LENGTH = 255

_PATH_RE = re.compile(
    r"^(?:(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*):(?=//))?"
    r"(?://(?P<authority>[^/]*))?"
    r"(?P<body>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class QualifiedPath:
    """Immutable, normalized path value.

    Two paths are equal iff scheme, authority and segments (and
    absoluteness) match.  Instances are always normalized: build them
    with :func:`normalize` or the helpers below, not by hand.
    """

    scheme: str | None = None
    authority: str | None = None
    segments: tuple[str, ...] = ()
    absolute: bool = True

    @classmethod
    def parse(cls, raw: str | None) -> QualifiedPath:
        return normalize(raw)

    @classmethod
    def root(cls, scheme: str | None = None, authority: str | None = None) -> QualifiedPath:
        return cls(scheme=scheme, authority=authority)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @property
    def is_qualified(self) -> bool:
        """True when both scheme and authority are present."""
        return self.scheme is not None and self.authority is not None

    @property
    def is_partially_qualified(self) -> bool:
        """True when exactly one of scheme and authority is present."""
        return (self.scheme is None) != (self.authority is None)

    @property
    def has_location(self) -> bool:
        return self.scheme is not None or self.authority is not None

    @property
    def is_root(self) -> bool:
        return self.absolute and not self.segments

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ""

    @property
    def path(self) -> str:
        """The path component alone, e.g. ``/a/b`` or ``a/b``."""
        body = "/".join(self.segments)
        return "/" + body if self.absolute else body

    def parent(self) -> QualifiedPath | None:
        """Return the parent directory, or ``None`` for a root."""
        if not self.segments:
            return None
        if not self.absolute and len(self.segments) == 1:
            return None
        return replace(self, segments=self.segments[:-1])

    def child(self, *names: str) -> QualifiedPath:
        return replace(self, segments=_collapse((*self.segments, *names), self.absolute))

    def join(self, other: QualifiedPath) -> QualifiedPath:
        """Resolve *other* against this path.

        Absolute or located paths win outright; a relative path is
        appended and ``..`` segments are resolved statically.
        """
        if other.absolute or other.has_location:
            return other
        return self.child(*other.segments)

    def with_location(self, scheme: str | None, authority: str | None) -> QualifiedPath:
        return replace(self, scheme=scheme, authority=authority)

    def without_location(self) -> QualifiedPath:
        return replace(self, scheme=None, authority=None)

    def same_location(self, other: QualifiedPath) -> bool:
        return self.scheme == other.scheme and self.authority == other.authority

    def is_ancestor_of(self, other: QualifiedPath) -> bool:
        """True if *other* lies strictly below this path."""
        return (
            self.same_location(other)
            and len(other.segments) > len(self.segments)
            and other.segments[: len(self.segments)] == self.segments
        )

    def __str__(self) -> str:
        if self.scheme is not None:
            return f"{self.scheme}://{self.authority or ''}{self.path}"
        if self.authority is not None:
            return f"//{self.authority}{self.path}"
        return self.path


# =============================================================================
# Normalization
# =============================================================================


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a raw path string for security and compatibility issues.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    # Reject ASCII control characters (0x01-0x1f) except \t, \n, \r
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F and ch not in ("\t", "\n", "\r"):
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > MAX_PATH_LENGTH:
        return False, f"Path too long (max {MAX_PATH_LENGTH} characters)"

    return True, ""


def _collapse(parts: Iterable[str], absolute: bool) -> tuple[str, ...]:
    stack: list[str] = []
    for part in parts:
        if part in ("", "."):
            continue
        if part == "..":
            if stack and stack[-1] != "..":
                stack.pop()
            elif not absolute:
                stack.append(part)
            continue
        stack.append(part)
    return tuple(stack)


def normalize(raw: str | None) -> QualifiedPath:
    """Parse and normalize a path string.

    - Splits on ``/`` and drops empty and ``.`` segments
    - Resolves ``..`` statically (kept as a prefix of relative paths,
      dropped above the root of absolute ones)
    - Rejects ``None`` and relative paths that normalize to nothing

    Examples:
        normalize("/a/./b/../c") -> /a/c
        normalize("lfs://nn:8020/a") -> lfs://nn:8020/a
        normalize("../file") -> ../file
        normalize(".") -> InvalidPathError
    """
    if raw is None:
        raise InvalidPathError("Path must not be null")

    valid, error = validate_path(raw)
    if not valid:
        raise InvalidPathError(f"{error}: {raw!r}")

    match = _PATH_RE.match(raw.strip())
    assert match is not None
    scheme = match.group("scheme")
    authority = match.group("authority")
    body = match.group("body")

    absolute = body.startswith("/") or scheme is not None or authority is not None
    segments = _collapse(body.split("/"), absolute)

    for segment in segments:
        if len(segment) > MAX_NAME_LENGTH:
            raise InvalidPathError(
                f"Path segment too long (max {MAX_NAME_LENGTH} characters): {raw!r}"
            )

    if not segments and not absolute:
        raise InvalidPathError(f"Path normalizes to an empty path: {raw!r}")

    return QualifiedPath(
        scheme=scheme.lower() if scheme else None,
        authority=authority or None,
        segments=segments,
        absolute=absolute,
    )


def as_path(value: str | QualifiedPath | None) -> QualifiedPath:
    """Accept either a string or an existing QualifiedPath."""
    if isinstance(value, QualifiedPath):
        return value
    return normalize(value)


# =============================================================================
# Qualification
# =============================================================================


def qualify(path: QualifiedPath, context: ResolutionContext) -> QualifiedPath:
    """Attach the context backend's default scheme/authority to *path*.

    Fully qualified and partially qualified paths are returned unchanged;
    relative paths are left alone and resolved later against the working
    directory.
    """
    if path.has_location or not path.absolute:
        return path
    capability = context.capability
    return path.with_location(capability.default_scheme, capability.default_authority)


def make_absolute(path: QualifiedPath, context: ResolutionContext) -> QualifiedPath:
    """Join a relative *path* onto the context's working directory."""
    if path.absolute or path.has_location:
        return path
    return context.working_directory.join(path)
