"""Configuration management for the gdrive-sync application."""

from .settings import CredentialsConfig, ScheduleOptions, SyncConfig

__all__ = ["SyncConfig", "ScheduleOptions", "CredentialsConfig"]
