"""ResolutionContext and the per-session WorkingDirectoryContext."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .capabilities import BackendCapability
    from .paths import QualifiedPath


@dataclass(frozen=True)
class ResolutionContext:
    """Immutable per-call view of a session: where relative paths start
    and which backend supplies defaults for unqualified absolute paths."""

    working_directory: QualifiedPath
    capability: BackendCapability


class WorkingDirectoryContext:
    """Current-directory state of one session.

    Single writer: callers must serialize ``set`` calls for a session.
    Each operation takes a ``snapshot()`` and passes it down explicitly,
    so nothing below the dispatcher reads this object directly.
    """

    def __init__(self, working_directory: QualifiedPath, capability: BackendCapability) -> None:
        self._context = ResolutionContext(working_directory, capability)

    @property
    def working_directory(self) -> QualifiedPath:
        return self._context.working_directory

    @property
    def capability(self) -> BackendCapability:
        return self._context.capability

    def snapshot(self) -> ResolutionContext:
        return self._context

    def set(self, working_directory: QualifiedPath) -> None:
        """Store *working_directory* verbatim."""
        self._context = ResolutionContext(working_directory, self._context.capability)
