"""Base storage backend interface and file/directory handles."""

import errno
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, List, Optional

from ..utils.events import Event
from ..utils.logging import get_logger


def error_category(error: OSError) -> str:
    """Classify an OSError for logging."""
    if isinstance(error, FileNotFoundError):
        return "not_found"
    if isinstance(error, PermissionError):
        return "permission_denied"
    if error.errno == errno.ENAMETOOLONG:
        return "path_too_long"
    return "io_error"


class FileHandle(ABC):
    """Reference to a file path on a specific backend.

    A handle is a value: creating one for a path that does not exist is not
    an error, and holding one does not keep anything open.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """File name without its directory."""

    @property
    @abstractmethod
    def full_name(self) -> str:
        """Full path of the file."""

    @property
    @abstractmethod
    def exists(self) -> bool:
        """Whether the file currently exists."""

    @property
    @abstractmethod
    def length(self) -> int:
        """Size of the file in bytes."""

    @property
    @abstractmethod
    def last_write_time(self) -> datetime:
        """Time of the last modification (UTC)."""

    @property
    @abstractmethod
    def directory(self) -> "DirectoryHandle":
        """Directory containing the file."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.full_name!r})"


class DirectoryHandle(ABC):
    """Reference to a directory path on a specific backend."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Directory name without its parent."""

    @property
    @abstractmethod
    def full_name(self) -> str:
        """Full path of the directory."""

    @property
    @abstractmethod
    def exists(self) -> bool:
        """Whether the directory currently exists."""

    @property
    @abstractmethod
    def parent(self) -> Optional["DirectoryHandle"]:
        """Parent directory, or None for a root."""

    @abstractmethod
    def get_files(self) -> List[FileHandle]:
        """List the files directly inside this directory.

        Raises:
            OSError: If the directory cannot be read
        """

    @abstractmethod
    def get_directories(self) -> List["DirectoryHandle"]:
        """List the directories directly inside this directory.

        Raises:
            OSError: If the directory cannot be read
        """

    @abstractmethod
    def child_file(self, name: str) -> FileHandle:
        """Handle for a file named ``name`` inside this directory."""

    @abstractmethod
    def child_directory(self, name: str) -> "DirectoryHandle":
        """Handle for a directory named ``name`` inside this directory."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.full_name!r})"


@dataclass(frozen=True)
class CopyProgress:
    """Progress of a single file copy, emitted after every written chunk."""

    file: FileHandle
    target_directory: DirectoryHandle
    bytes_total: int
    bytes_current: int

    @property
    def percent(self) -> float:
        """Completed share of the copy in percent."""
        if self.bytes_total == 0:
            return 100.0
        return (self.bytes_current / self.bytes_total) * 100


class FileSystemBackend(ABC):
    """Abstract base class for all storage backends.

    Mutating operations never raise on ordinary access failures; they log
    the failure and return False. Passing a handle that belongs to another
    backend type raises BackendMismatchError.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)
        self.file_copy_progress_changed = Event("file_copy_progress_changed")

    @abstractmethod
    def resolve_file(self, path: str) -> FileHandle:
        """Get a handle for the file at ``path``."""

    @abstractmethod
    def resolve_directory(self, path: str) -> DirectoryHandle:
        """Get a handle for the directory at ``path``."""

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """Check whether a file exists at ``path``."""

    @abstractmethod
    def directory_exists(self, path: str) -> bool:
        """Check whether a directory exists at ``path``."""

    @abstractmethod
    def open_read_stream(self, file: FileHandle) -> BinaryIO:
        """Open ``file`` for reading.

        The caller owns the returned stream and must close it.

        Raises:
            OSError: If the file cannot be opened
        """

    @abstractmethod
    def delete_file(self, file: FileHandle) -> bool:
        """Delete a file, returning True on success."""

    @abstractmethod
    def create_directory(
        self,
        source_directory: DirectoryHandle,
        target_directory: DirectoryHandle
    ) -> bool:
        """Create a directory named after ``source_directory`` in ``target_directory``."""

    @abstractmethod
    def delete_directory(self, directory: DirectoryHandle) -> bool:
        """Delete a directory and everything below it, returning True on success."""

    @abstractmethod
    def copy_file(
        self,
        source_backend: "FileSystemBackend",
        source_file: FileHandle,
        target_directory: DirectoryHandle
    ) -> bool:
        """Copy a file from any backend into ``target_directory`` on this one.

        Emits ``file_copy_progress_changed`` after every written chunk. A
        partially written target file is removed before False is returned.
        """


class BackendMismatchError(TypeError):
    """Raised when a handle from another backend type is passed to a backend."""
    pass
