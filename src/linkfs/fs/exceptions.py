"""Custom exception hierarchy for the linkfs filesystem layer.

Every message names the fully qualified path the caller supplied, never an
intermediate path produced while following links.
"""


class LinkFSError(Exception):
    """Base exception for all linkfs filesystem errors."""


class InvalidPathError(LinkFSError, ValueError):
    """Raised when a path or link target is null, empty or malformed."""


class AlreadyExistsError(LinkFSError):
    """Raised when an operation would replace an existing entry."""


class ParentNotFoundError(LinkFSError):
    """Raised when the parent directory of a new entry does not exist."""


class ParentNotDirectoryError(LinkFSError):
    """Raised when a non-final path component is a regular file."""


class PathNotFoundError(LinkFSError):
    """Raised when a file or directory path does not exist."""


class PathIsDirectoryError(LinkFSError):
    """Raised when a file operation is applied to a directory."""


class DirectoryNotEmptyError(LinkFSError):
    """Raised when a non-recursive operation meets a non-empty directory."""


class NotASymlinkError(LinkFSError):
    """Raised when a link-only operation is applied to a file or directory."""


class CyclicSymlinkError(LinkFSError):
    """Raised when following links exceeds the substitution bound."""


class UnsupportedAuthorityError(LinkFSError):
    """Raised when a path's scheme/authority pair cannot address a backend."""


class PermissionDeniedError(LinkFSError, PermissionError):
    """Raised by a backend that refuses access to a path."""


class MountNotFoundError(LinkFSError):
    """Raised when no mounted backend matches a qualified path."""


class CrossMountError(LinkFSError):
    """Raised when an operation spans two different backends."""


class StorageError(LinkFSError):
    """Raised on storage backend failures (missing session, corrupt rows, etc.)."""
