"""linkfs: symbolic links across pluggable storage backends.

Path qualification, link resolution and per-session working directories
over local disks and SQL-backed distributed namespaces.
"""

__version__ = "0.1.0"

from linkfs._linkfs import LinkFS, SyncFileContext, SyncOutputStream
from linkfs._linkfs_async import LinkFSAsync
from linkfs.fs.capabilities import BackendCapability
from linkfs.fs.database_fs import DatabaseFileSystem
from linkfs.fs.exceptions import LinkFSError
from linkfs.fs.file_context import FileContext
from linkfs.fs.local_disk import LocalDiskBackend
from linkfs.fs.paths import QualifiedPath
from linkfs.fs.types import FileKind, FileStatus

__all__ = [
    "BackendCapability",
    "DatabaseFileSystem",
    "FileContext",
    "FileKind",
    "FileStatus",
    "LinkFS",
    "LinkFSAsync",
    "LinkFSError",
    "LocalDiskBackend",
    "QualifiedPath",
    "SyncFileContext",
    "SyncOutputStream",
    "__version__",
]
