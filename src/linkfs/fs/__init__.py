"""Filesystem layer — paths, resolver, dispatcher, mounts and backends."""

from linkfs.fs.capabilities import BackendCapability, distributed_capability, local_capability
from linkfs.fs.context import ResolutionContext, WorkingDirectoryContext
from linkfs.fs.database_fs import DatabaseFileSystem
from linkfs.fs.exceptions import (
    AlreadyExistsError,
    CrossMountError,
    CyclicSymlinkError,
    DirectoryNotEmptyError,
    InvalidPathError,
    LinkFSError,
    MountNotFoundError,
    NotASymlinkError,
    ParentNotDirectoryError,
    ParentNotFoundError,
    PathIsDirectoryError,
    PathNotFoundError,
    PermissionDeniedError,
    StorageError,
    UnsupportedAuthorityError,
)
from linkfs.fs.file_context import FileContext
from linkfs.fs.local_disk import LocalDiskBackend
from linkfs.fs.mounts import MountConfig, MountRegistry, session_for
from linkfs.fs.paths import QualifiedPath, normalize, qualify
from linkfs.fs.protocol import StorageBackend
from linkfs.fs.resolver import MAX_LINK_SUBSTITUTIONS, Resolution, SymlinkResolver
from linkfs.fs.streams import InputStream, OutputStream
from linkfs.fs.types import FileKind, FileStatus, LinkEntry

__all__ = [
    "MAX_LINK_SUBSTITUTIONS",
    "AlreadyExistsError",
    "BackendCapability",
    "CrossMountError",
    "CyclicSymlinkError",
    "DatabaseFileSystem",
    "DirectoryNotEmptyError",
    "FileContext",
    "FileKind",
    "FileStatus",
    "InputStream",
    "InvalidPathError",
    "LinkEntry",
    "LinkFSError",
    "LocalDiskBackend",
    "MountConfig",
    "MountNotFoundError",
    "MountRegistry",
    "NotASymlinkError",
    "OutputStream",
    "ParentNotDirectoryError",
    "ParentNotFoundError",
    "PathIsDirectoryError",
    "PathNotFoundError",
    "PermissionDeniedError",
    "QualifiedPath",
    "Resolution",
    "ResolutionContext",
    "StorageBackend",
    "StorageError",
    "SymlinkResolver",
    "UnsupportedAuthorityError",
    "WorkingDirectoryContext",
    "distributed_capability",
    "local_capability",
    "normalize",
    "qualify",
    "session_for",
]
