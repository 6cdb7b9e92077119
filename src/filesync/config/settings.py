"""Application configuration settings."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransferSettings(BaseSettings):
    """File transfer configuration."""

    chunk_size: int = Field(default=256 * 1024, description="Copy buffer size in bytes")

    model_config = SettingsConfigDict(env_prefix="FILESYNC_TRANSFER_")

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        """Chunk size must be positive."""
        if v <= 0:
            raise ValueError("chunk_size must be greater than zero")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file_path: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="FILESYNC_LOG_")


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="FileSync Worker")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Sub-settings
    transfer: TransferSettings = Field(default_factory=TransferSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="FILESYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = AppSettings()


def get_settings() -> AppSettings:
    """Get application settings."""
    return settings


def reload_settings() -> AppSettings:
    """Re-read settings from the environment and replace the global instance."""
    global settings
    settings = AppSettings()
    return settings
