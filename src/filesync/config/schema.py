"""Configuration schema definitions for sync jobs."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class BackendType(str, Enum):
    """Types of storage backends."""
    LOCAL = "local"


class JobType(str, Enum):
    """Types of synchronization jobs."""
    BACKUP = "backup"


class JobSettings(BaseModel):
    """Configuration for a single source/target synchronization job."""

    name: str = Field(..., description="Human-readable name for the job")
    source_path: str = Field(..., description="Directory to read from")
    target_path: str = Field(..., description="Directory to write to")

    source_backend: BackendType = Field(default=BackendType.LOCAL)
    target_backend: BackendType = Field(default=BackendType.LOCAL)
    job_type: JobType = Field(default=JobType.BACKUP)

    delete_orphans: bool = Field(
        default=True,
        description="Delete target entries that have no source counterpart"
    )
    is_enabled: bool = Field(default=True, description="Whether this job should run")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Job names must not be blank."""
        if not v.strip():
            raise ValueError("Job name cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_paths(self) -> "JobSettings":
        """Source and target must be different locations."""
        if (
            self.source_backend == self.target_backend
            and self.source_path == self.target_path
        ):
            raise ValueError("Source and target paths must differ")
        return self
