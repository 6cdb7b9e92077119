"""Storage backends package."""

from .base import (
    FileSystemBackend,
    FileHandle,
    DirectoryHandle,
    CopyProgress,
    BackendMismatchError
)

from .local import LocalFileSystem, LocalFileHandle, LocalDirectoryHandle
from .factory import FileSystemFactory

__all__ = [
    # Base classes and exceptions
    "FileSystemBackend",
    "FileHandle",
    "DirectoryHandle",
    "CopyProgress",
    "BackendMismatchError",

    # Backend implementations
    "LocalFileSystem",
    "LocalFileHandle",
    "LocalDirectoryHandle",

    # Factory
    "FileSystemFactory"
]
