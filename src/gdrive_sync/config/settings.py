"""Configuration settings and models for the sync application."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScheduleOptions(BaseModel):
    """Timing options."""
    retransmit_interval: int = Field(1000, ge=0)  # milliseconds
    sync_state_save: float = Field(5, gt=0)  # minutes


class SyncConfig(BaseModel):
    """Main configuration class.

    The camelCase aliases match the keys of existing ``app.yml`` files.
    """
    model_config = ConfigDict(populate_by_name=True)

    local_root_folder: Path = Field(alias="localRootFolder")
    remote_root_folder_id: str = Field(alias="gDriveRootFolderFileId")
    max_concurrency: int = Field(4, ge=1)
    schedule: ScheduleOptions = Field(default_factory=ScheduleOptions)
    state_file: Path = Path("sync_state.yml")
    log_file: Optional[Path] = Path("logs/gdrive_sync.log")
    log_level: str = "INFO"

    @field_validator('remote_root_folder_id')
    @classmethod
    def validate_remote_root(cls, v):
        if not v.strip():
            raise ValueError('gDriveRootFolderFileId must not be empty')
        return v.strip()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        if v.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'unknown log level: {v}')
        return v.upper()

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "SyncConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def to_yaml(self, config_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode='json', by_alias=True, exclude_none=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, indent=2, sort_keys=False)


class CredentialsConfig(BaseModel):
    """Locations of the OAuth client secret and the cached token."""
    client_secret_file: Path = Path("config/client_secret.json")
    token_file: Path = Path("config/token.json")

    @classmethod
    def from_yaml(cls, credentials_path: Union[str, Path]) -> "CredentialsConfig":
        """Load credentials from YAML file."""
        credentials_path = Path(credentials_path)
        if not credentials_path.exists():
            return cls()  # Defaults if file doesn't exist

        with open(credentials_path, 'r', encoding='utf-8') as f:
            creds_data = yaml.safe_load(f) or {}

        return cls(**creds_data)

    @classmethod
    def from_env(cls) -> "CredentialsConfig":
        """Load credentials from environment variables."""
        values = {
            'client_secret_file': os.getenv('GDRIVE_SYNC_CLIENT_SECRET'),
            'token_file': os.getenv('GDRIVE_SYNC_TOKEN'),
        }
        return cls(**{k: v for k, v in values.items() if v})
