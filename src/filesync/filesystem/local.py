"""Local disk storage backend."""

import os
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, List, Optional

from ..config.settings import get_settings
from .base import (
    BackendMismatchError,
    CopyProgress,
    DirectoryHandle,
    FileHandle,
    FileSystemBackend,
    error_category,
)


class LocalFileHandle(FileHandle):
    """A file in the local filesystem."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def full_name(self) -> str:
        return str(self._path.absolute())

    @property
    def exists(self) -> bool:
        return self._path.is_file()

    @property
    def length(self) -> int:
        return self._path.stat().st_size

    @property
    def last_write_time(self) -> datetime:
        return datetime.fromtimestamp(self._path.stat().st_mtime, tz=timezone.utc)

    @property
    def directory(self) -> "LocalDirectoryHandle":
        return LocalDirectoryHandle(self._path.parent)

    def __eq__(self, other) -> bool:
        return isinstance(other, LocalFileHandle) and self.full_name == other.full_name

    def __hash__(self) -> int:
        return hash(("file", self.full_name))


class LocalDirectoryHandle(DirectoryHandle):
    """A directory in the local filesystem."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def full_name(self) -> str:
        return str(self._path.absolute())

    @property
    def exists(self) -> bool:
        return self._path.is_dir()

    @property
    def parent(self) -> Optional["LocalDirectoryHandle"]:
        absolute = self._path.absolute()
        if absolute.parent == absolute:
            return None
        return LocalDirectoryHandle(absolute.parent)

    def get_files(self) -> List[FileHandle]:
        return [
            LocalFileHandle(entry)
            for entry in sorted(self._path.iterdir())
            if entry.is_file()
        ]

    def get_directories(self) -> List[DirectoryHandle]:
        return [
            LocalDirectoryHandle(entry)
            for entry in sorted(self._path.iterdir())
            if entry.is_dir()
        ]

    def child_file(self, name: str) -> "LocalFileHandle":
        return LocalFileHandle(self._path / name)

    def child_directory(self, name: str) -> "LocalDirectoryHandle":
        return LocalDirectoryHandle(self._path / name)

    def __eq__(self, other) -> bool:
        return isinstance(other, LocalDirectoryHandle) and self.full_name == other.full_name

    def __hash__(self) -> int:
        return hash(("directory", self.full_name))


class LocalFileSystem(FileSystemBackend):
    """Storage backend for the local disk."""

    def __init__(self, chunk_size: Optional[int] = None):
        """Initialize the backend.

        Args:
            chunk_size: Copy buffer size in bytes, defaults to the
                configured transfer chunk size
        """
        super().__init__()
        self.chunk_size = chunk_size or get_settings().transfer.chunk_size

    def resolve_file(self, path: str) -> LocalFileHandle:
        return LocalFileHandle(Path(path))

    def resolve_directory(self, path: str) -> LocalDirectoryHandle:
        return LocalDirectoryHandle(Path(path))

    def file_exists(self, path: str) -> bool:
        return Path(path).is_file()

    def directory_exists(self, path: str) -> bool:
        return Path(path).is_dir()

    def open_read_stream(self, file: FileHandle) -> BinaryIO:
        return open(file.full_name, "rb")

    def delete_file(self, file: FileHandle) -> bool:
        """Clear the read-only flag of a file and delete it."""
        self._require_local(file, LocalFileHandle)

        try:
            mode = os.stat(file.full_name).st_mode
            if not mode & stat.S_IWRITE:
                # Only the owner write bit is added; other permission bits stay
                os.chmod(file.full_name, stat.S_IMODE(mode) | stat.S_IWRITE)
            os.remove(file.full_name)
        except OSError as e:
            self.logger.error(
                "Failed to delete file",
                path=file.full_name,
                error_category=error_category(e),
                error=str(e)
            )
            return False

        return True

    def create_directory(
        self,
        source_directory: DirectoryHandle,
        target_directory: DirectoryHandle
    ) -> bool:
        """Create a directory named after ``source_directory`` in ``target_directory``.

        The target directory itself must exist; only the new child is created.
        """
        self._require_local(target_directory, LocalDirectoryHandle)

        new_directory = Path(target_directory.full_name) / source_directory.name
        try:
            new_directory.mkdir(exist_ok=True)
        except OSError as e:
            self.logger.error(
                "Failed to create directory",
                directory=source_directory.name,
                parent=target_directory.full_name,
                error_category=error_category(e),
                error=str(e)
            )
            return False

        return True

    def delete_directory(self, directory: DirectoryHandle) -> bool:
        self._require_local(directory, LocalDirectoryHandle)

        try:
            shutil.rmtree(directory.full_name)
        except OSError as e:
            self.logger.error(
                "Failed to delete directory",
                path=directory.full_name,
                error_category=error_category(e),
                error=str(e)
            )
            return False

        return True

    def copy_file(
        self,
        source_backend: FileSystemBackend,
        source_file: FileHandle,
        target_directory: DirectoryHandle
    ) -> bool:
        """Stream ``source_file`` from ``source_backend`` into ``target_directory``.

        The file is copied in ``chunk_size`` pieces and a CopyProgress is
        emitted after each piece. If anything fails once the target file has
        been created, the target file is removed again so no partial copy is
        left behind. Access failures are logged and reported as False.

        Args:
            source_backend: Backend the source file lives on
            source_file: File to copy
            target_directory: Local directory to copy into

        Returns:
            True if the copy completed, False otherwise
        """
        self._require_local(target_directory, LocalDirectoryHandle)

        target_path = Path(target_directory.full_name) / source_file.name

        try:
            with source_backend.open_read_stream(source_file) as source_stream:
                bytes_total = source_file.length
                target_created = False
                try:
                    with self._open_target_stream(target_path) as target_stream:
                        target_created = True
                        self._copy_stream(
                            source_stream, target_stream,
                            source_file, target_directory, bytes_total
                        )
                except OSError:
                    if target_created:
                        self._remove_partial_file(target_path)
                    raise
        except OSError as e:
            self.logger.error(
                "Failed to copy file",
                source=source_file.full_name,
                target_directory=target_directory.full_name,
                error_category=error_category(e),
                error=str(e)
            )
            return False

        return True

    def _copy_stream(
        self,
        source_stream: BinaryIO,
        target_stream: BinaryIO,
        source_file: FileHandle,
        target_directory: DirectoryHandle,
        bytes_total: int
    ) -> None:
        bytes_current = 0
        while True:
            chunk = source_stream.read(self.chunk_size)
            if not chunk:
                break

            target_stream.write(chunk)
            bytes_current += len(chunk)

            self.file_copy_progress_changed.emit(CopyProgress(
                file=source_file,
                target_directory=target_directory,
                bytes_total=bytes_total,
                bytes_current=bytes_current
            ))

    def _open_target_stream(self, path: Path) -> BinaryIO:
        return open(path, "wb")

    def _remove_partial_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.error(
                "Failed to remove partially copied file",
                path=str(path),
                error_category=error_category(e),
                error=str(e)
            )

    @staticmethod
    def _require_local(handle, handle_type) -> None:
        if not isinstance(handle, handle_type):
            raise BackendMismatchError(
                f"Expected {handle_type.__name__}, got {type(handle).__name__}"
            )
