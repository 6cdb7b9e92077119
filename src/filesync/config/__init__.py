"""Configuration package for the sync worker."""

from .settings import (
    TransferSettings,
    LoggingSettings,
    AppSettings,
    get_settings,
    reload_settings
)

from .schema import (
    BackendType,
    JobType,
    JobSettings
)

__all__ = [
    "TransferSettings",
    "LoggingSettings",
    "AppSettings",
    "get_settings",
    "reload_settings",

    "BackendType",
    "JobType",
    "JobSettings"
]
