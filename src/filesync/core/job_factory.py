"""Job factory for building jobs from their configuration."""

from typing import Callable, Dict, List

from ..config.schema import JobSettings, JobType
from ..filesystem import FileSystemFactory
from .backup_job import BackupJob
from .job import Job


def _create_backup_job(settings: JobSettings) -> Job:
    source_backend = FileSystemFactory.create_backend(settings.source_backend)
    target_backend = FileSystemFactory.create_backend(settings.target_backend)

    return BackupJob(
        name=settings.name,
        source_backend=source_backend,
        source_directory=source_backend.resolve_directory(settings.source_path),
        target_backend=target_backend,
        target_directory=target_backend.resolve_directory(settings.target_path),
        delete_orphans=settings.delete_orphans
    )


class JobFactory:
    """Factory for creating jobs from JobSettings."""

    _builders: Dict[JobType, Callable[[JobSettings], Job]] = {
        JobType.BACKUP: _create_backup_job,
    }

    @classmethod
    def create_job(cls, settings: JobSettings) -> Job:
        """Create a job instance.

        Raises:
            ValueError: If the job type is not registered
        """
        if settings.job_type not in cls._builders:
            raise ValueError(f"Unsupported job type: {settings.job_type}")

        return cls._builders[settings.job_type](settings)

    @classmethod
    def create_jobs(cls, job_settings: List[JobSettings]) -> List[Job]:
        """Create jobs for every enabled entry, keeping their order."""
        return [cls.create_job(settings) for settings in job_settings if settings.is_enabled]

    @classmethod
    def register_job_type(cls, job_type: JobType, builder: Callable[[JobSettings], Job]):
        """Register a builder for a job type."""
        cls._builders[job_type] = builder
