"""Core job orchestration package."""

from .models import (
    FileCounterResult,
    FileCopyEvent,
    FileCopyErrorEvent,
    FileDeletionEvent,
    FileDeletionErrorEvent,
    DirectoryCreationEvent,
    DirectoryDeletionEvent,
    FileProceededEvent,
    JobEvent
)
from .job import Job
from .backup_job import BackupJob
from .job_factory import JobFactory
from .job_worker import JobWorker, JobWorkerError, JobWorkerBusyError, RELAYED_EVENTS

__all__ = [
    "FileCounterResult",
    "FileCopyEvent",
    "FileCopyErrorEvent",
    "FileDeletionEvent",
    "FileDeletionErrorEvent",
    "DirectoryCreationEvent",
    "DirectoryDeletionEvent",
    "FileProceededEvent",
    "JobEvent",

    "Job",
    "BackupJob",
    "JobFactory",
    "JobWorker",
    "JobWorkerError",
    "JobWorkerBusyError",
    "RELAYED_EVENTS"
]
