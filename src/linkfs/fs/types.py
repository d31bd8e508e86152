"""Result types: FileKind, FileStatus, LinkEntry."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .paths import QualifiedPath


class FileKind(str, Enum):
    """Kind of a namespace entry."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class FileStatus:
    """Snapshot of one entry's metadata.  Never cached across calls."""

    path: QualifiedPath
    kind: FileKind
    size: int = 0
    access_time: datetime | None = None
    modification_time: datetime | None = None
    symlink_target: QualifiedPath | None = None

    @property
    def is_file(self) -> bool:
        return self.kind is FileKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is FileKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind is FileKind.SYMLINK


@dataclass(frozen=True)
class LinkEntry:
    """A symlink as stored: its own address and its target, verbatim."""

    link_path: QualifiedPath
    raw_target: QualifiedPath
