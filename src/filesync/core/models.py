"""Progress results and notification payloads."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from ..filesystem.base import DirectoryHandle, FileHandle

if TYPE_CHECKING:
    from .job import Job


@dataclass(frozen=True)
class FileCounterResult:
    """Number of files and bytes a job expects to process.

    Results combine with ``+``; ``FileCounterResult()`` is the identity.
    """

    counted_files: int = 0
    counted_bytes: int = 0

    def __add__(self, other: "FileCounterResult") -> "FileCounterResult":
        if not isinstance(other, FileCounterResult):
            return NotImplemented
        return FileCounterResult(
            counted_files=self.counted_files + other.counted_files,
            counted_bytes=self.counted_bytes + other.counted_bytes
        )

    @classmethod
    def combine(cls, results: Iterable["FileCounterResult"]) -> "FileCounterResult":
        """Sum any number of results."""
        return sum(results, cls())


@dataclass(frozen=True)
class FileCopyEvent:
    """A file is being, or has been, copied into a target directory."""

    file: FileHandle
    source_directory: DirectoryHandle
    target_directory: DirectoryHandle


@dataclass(frozen=True)
class FileCopyErrorEvent:
    file: FileHandle
    target_directory: DirectoryHandle


@dataclass(frozen=True)
class FileDeletionEvent:
    file: FileHandle


@dataclass(frozen=True)
class FileDeletionErrorEvent:
    file: FileHandle


@dataclass(frozen=True)
class DirectoryCreationEvent:
    """``directory`` is being, or has been, recreated inside ``target_directory``."""

    directory: DirectoryHandle
    target_directory: DirectoryHandle


@dataclass(frozen=True)
class DirectoryDeletionEvent:
    directory: DirectoryHandle


@dataclass(frozen=True)
class FileProceededEvent:
    """A source file has been handled, whether or not anything was written."""

    file: FileHandle


@dataclass(frozen=True)
class JobEvent:
    job: "Job"
