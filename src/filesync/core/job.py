"""Job contract for synchronizing one source/target directory pair."""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from ..filesystem.base import CopyProgress, DirectoryHandle, FileHandle, FileSystemBackend
from ..utils.events import Event
from ..utils.logging import get_logger
from .models import (
    DirectoryCreationEvent,
    DirectoryDeletionEvent,
    FileCopyErrorEvent,
    FileCopyEvent,
    FileCounterResult,
    FileDeletionErrorEvent,
    FileDeletionEvent,
    FileProceededEvent,
    JobEvent,
)


class Job(ABC):
    """A unit of synchronization work over one directory pair.

    Subclasses implement ``count_files`` and ``_execute``. ``_execute`` must
    call ``_checkpoint`` between file level operations and return as soon
    as it reports False; this is how ``pause``, ``resume`` and ``stop``
    take effect. A job emits ``finished`` when ``run`` completes, unless it
    was stopped.

    Events and their payloads:
        proceeded_file: FileProceededEvent
        creating_file, created_file: FileCopyEvent
        modifying_file, modified_file: FileCopyEvent
        deleting_file, deleted_file: FileDeletionEvent
        creating_directory, created_directory: DirectoryCreationEvent
        deleting_directory, deleted_directory: DirectoryDeletionEvent
        file_copy_error: FileCopyErrorEvent
        file_deletion_error: FileDeletionErrorEvent
        directory_deletion_error: DirectoryDeletionEvent
        file_copy_progress_changed: CopyProgress
        finished: JobEvent
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(self.__class__.__name__)

        self.proceeded_file = Event("proceeded_file")
        self.creating_file = Event("creating_file")
        self.created_file = Event("created_file")
        self.modifying_file = Event("modifying_file")
        self.modified_file = Event("modified_file")
        self.deleting_file = Event("deleting_file")
        self.deleted_file = Event("deleted_file")
        self.creating_directory = Event("creating_directory")
        self.created_directory = Event("created_directory")
        self.deleting_directory = Event("deleting_directory")
        self.deleted_directory = Event("deleted_directory")
        self.file_copy_error = Event("file_copy_error")
        self.file_deletion_error = Event("file_deletion_error")
        self.directory_deletion_error = Event("directory_deletion_error")
        self.file_copy_progress_changed = Event("file_copy_progress_changed")
        self.finished = Event("finished")

        self._written_bytes = 0
        # Set while the job may proceed, cleared while paused
        self._proceed = threading.Event()
        self._proceed.set()
        self._stop_requested = threading.Event()
        # pause/resume/stop may be called from any thread
        self._control_lock = threading.Lock()

    @property
    def written_bytes(self) -> int:
        """Bytes actually written by the current or last run."""
        return self._written_bytes

    @property
    def is_paused(self) -> bool:
        return not self._proceed.is_set()

    @property
    def is_stopped(self) -> bool:
        return self._stop_requested.is_set()

    @abstractmethod
    def count_files(self) -> FileCounterResult:
        """Count the files and bytes this job will look at."""

    @abstractmethod
    def _execute(self, preview: bool) -> None:
        """Do the actual work of the job."""

    def run(self, preview: bool = False) -> None:
        """Run the job on the calling thread.

        Args:
            preview: Emit the notifications a real run would emit without
                changing anything on the target
        """
        self._written_bytes = 0
        self.logger.info("Job started", job=self.name, preview=preview)

        self._execute(preview)

        if self.is_stopped:
            self.logger.info("Job stopped", job=self.name, written_bytes=self._written_bytes)
            return

        self.logger.info("Job finished", job=self.name, written_bytes=self._written_bytes)
        self.finished.emit(JobEvent(self))

    def pause(self) -> None:
        """Hold the job at its next checkpoint."""
        with self._control_lock:
            if not self.is_stopped:
                self._proceed.clear()

    def resume(self) -> None:
        """Let a paused job carry on."""
        with self._control_lock:
            self._proceed.set()

    def stop(self) -> None:
        """Make the job return at its next checkpoint, releasing it if paused."""
        with self._control_lock:
            self._stop_requested.set()
            self._proceed.set()

    def _checkpoint(self) -> bool:
        """Block while paused; return False once a stop was requested."""
        self._proceed.wait()
        return not self._stop_requested.is_set()

    def _copy_file(
        self,
        source_backend: FileSystemBackend,
        source_file: FileHandle,
        target_backend: FileSystemBackend,
        target_directory: DirectoryHandle,
        preview: bool,
        modify: bool = False
    ) -> bool:
        """Copy a file, emitting the create or modify notifications around it."""
        event = FileCopyEvent(
            file=source_file,
            source_directory=source_file.directory,
            target_directory=target_directory
        )
        before, after = (
            (self.modifying_file, self.modified_file) if modify
            else (self.creating_file, self.created_file)
        )

        before.emit(event)

        if not preview:
            progress = []

            def relay(copy_progress: CopyProgress) -> None:
                progress[:] = [copy_progress.bytes_current]
                self.file_copy_progress_changed.emit(copy_progress)

            target_backend.file_copy_progress_changed.connect(relay)
            try:
                copied = target_backend.copy_file(source_backend, source_file, target_directory)
            finally:
                target_backend.file_copy_progress_changed.disconnect(relay)

            if not copied:
                self.file_copy_error.emit(FileCopyErrorEvent(source_file, target_directory))
                return False

            # Bytes actually streamed; the source may have changed since
            self._written_bytes += progress[0] if progress else 0

        after.emit(event)
        return True

    def _delete_file(self, backend: FileSystemBackend, file: FileHandle, preview: bool) -> bool:
        event = FileDeletionEvent(file)
        self.deleting_file.emit(event)

        if not preview and not backend.delete_file(file):
            self.file_deletion_error.emit(FileDeletionErrorEvent(file))
            return False

        self.deleted_file.emit(event)
        return True

    def _create_directory(
        self,
        backend: FileSystemBackend,
        source_directory: DirectoryHandle,
        target_directory: DirectoryHandle,
        preview: bool
    ) -> Optional[DirectoryHandle]:
        """Recreate ``source_directory`` inside ``target_directory``.

        Returns:
            Handle of the new directory, or None if it could not be created
        """
        event = DirectoryCreationEvent(source_directory, target_directory)
        self.creating_directory.emit(event)

        if not preview and not backend.create_directory(source_directory, target_directory):
            return None

        self.created_directory.emit(event)
        return target_directory.child_directory(source_directory.name)

    def _delete_directory(
        self,
        backend: FileSystemBackend,
        directory: DirectoryHandle,
        preview: bool
    ) -> bool:
        event = DirectoryDeletionEvent(directory)
        self.deleting_directory.emit(event)

        if not preview and not backend.delete_directory(directory):
            self.directory_deletion_error.emit(event)
            return False

        self.deleted_directory.emit(event)
        return True

    def _proceed_file(self, file: FileHandle) -> None:
        self.proceeded_file.emit(FileProceededEvent(file))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
