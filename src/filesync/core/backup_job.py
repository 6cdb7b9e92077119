"""One-way mirror job."""

from typing import List, Optional, Tuple

from ..filesystem.base import (
    DirectoryHandle,
    FileHandle,
    FileSystemBackend,
    error_category,
)
from .job import Job
from .models import FileCounterResult


class BackupJob(Job):
    """Mirror a source directory into a target directory.

    New source files are copied, source files that are newer than their
    target copy or differ in size are copied over it, and missing
    directories are created. With ``delete_orphans`` target entries that no
    longer exist in the source are deleted.
    """

    def __init__(
        self,
        name: str,
        source_backend: FileSystemBackend,
        source_directory: DirectoryHandle,
        target_backend: FileSystemBackend,
        target_directory: DirectoryHandle,
        delete_orphans: bool = True
    ):
        super().__init__(name)
        self.source_backend = source_backend
        self.source_directory = source_directory
        self.target_backend = target_backend
        self.target_directory = target_directory
        self.delete_orphans = delete_orphans

    def count_files(self) -> FileCounterResult:
        """Count files and bytes below the source directory."""
        result = FileCounterResult()
        pending = [self.source_directory]

        while pending:
            directory = pending.pop()
            listing = self._list(directory)
            if listing is None:
                continue

            files, directories = listing
            pending.extend(directories)
            for file in files:
                try:
                    result += FileCounterResult(counted_files=1, counted_bytes=file.length)
                except OSError as e:
                    self.logger.warning(
                        "Skipping unreadable file while counting",
                        job=self.name,
                        path=file.full_name,
                        error_category=error_category(e)
                    )

        self.logger.debug(
            "Counted source files",
            job=self.name,
            files=result.counted_files,
            bytes=result.counted_bytes
        )
        return result

    def _execute(self, preview: bool) -> None:
        self._backup_directory(self.source_directory, self.target_directory, preview)

    def _backup_directory(
        self,
        source: DirectoryHandle,
        target: DirectoryHandle,
        preview: bool
    ) -> None:
        if not self._checkpoint():
            return

        listing = self._list(source)
        if listing is None:
            return
        source_files, source_directories = listing

        for source_file in source_files:
            if not self._checkpoint():
                return
            self._backup_file(source_file, target, preview)
            self._proceed_file(source_file)

        for source_directory in source_directories:
            if not self._checkpoint():
                return

            target_directory = target.child_directory(source_directory.name)
            if not target_directory.exists:
                created = self._create_directory(
                    self.target_backend, source_directory, target, preview
                )
                if created is None:
                    continue

            self._backup_directory(source_directory, target_directory, preview)

        if self.delete_orphans and target.exists:
            self._delete_orphans(source_files, source_directories, target, preview)

    def _backup_file(self, source_file: FileHandle, target: DirectoryHandle, preview: bool) -> None:
        target_file = target.child_file(source_file.name)

        try:
            exists = target_file.exists
            modified = exists and self._is_modified(source_file, target_file)
        except OSError as e:
            # Source or target vanished after the directory was listed
            self.logger.warning(
                "Skipping file that could not be compared",
                job=self.name,
                path=source_file.full_name,
                error_category=error_category(e)
            )
            return

        if not exists:
            self._copy_file(
                self.source_backend, source_file,
                self.target_backend, target, preview
            )
        elif modified:
            self._copy_file(
                self.source_backend, source_file,
                self.target_backend, target, preview,
                modify=True
            )

    def _delete_orphans(
        self,
        source_files: List[FileHandle],
        source_directories: List[DirectoryHandle],
        target: DirectoryHandle,
        preview: bool
    ) -> None:
        listing = self._list(target)
        if listing is None:
            return
        target_files, target_directories = listing

        source_file_names = {file.name for file in source_files}
        source_directory_names = {directory.name for directory in source_directories}

        for target_file in target_files:
            if not self._checkpoint():
                return
            if target_file.name not in source_file_names:
                self._delete_file(self.target_backend, target_file, preview)

        for target_directory in target_directories:
            if not self._checkpoint():
                return
            if target_directory.name not in source_directory_names:
                self._delete_directory(self.target_backend, target_directory, preview)

    @staticmethod
    def _is_modified(source_file: FileHandle, target_file: FileHandle) -> bool:
        return (
            source_file.last_write_time > target_file.last_write_time
            or source_file.length != target_file.length
        )

    def _list(
        self, directory: DirectoryHandle
    ) -> Optional[Tuple[List[FileHandle], List[DirectoryHandle]]]:
        try:
            return directory.get_files(), directory.get_directories()
        except OSError as e:
            self.logger.error(
                "Failed to read directory",
                job=self.name,
                path=directory.full_name,
                error_category=error_category(e),
                error=str(e)
            )
            return None
