"""Configuration models describing Docvault settings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_PERMISSION_BITS = 0o777


class VaultBaseModel(BaseModel):
    """Shared configuration for Docvault Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(VaultBaseModel):
    """Backing store configuration.

    Attributes:
        root: Directory that holds the vault's documents.
        staging_dir: Directory for transient import copies; the system temp
            directory when unset.
        protected_mode: Permission bits applied to locked documents.
        unprotected_mode: Permission bits applied to unlocked documents.
    """

    root: str = "~/.docvault/documents"
    staging_dir: Optional[str] = None
    protected_mode: int = Field(default=0o000, description="Permission bits of locked files.")
    unprotected_mode: int = Field(default=0o600, description="Permission bits of unlocked files.")

    @field_validator("protected_mode", "unprotected_mode")
    @classmethod
    def _check_mode(cls, value: int) -> int:
        if not 0 <= value <= _PERMISSION_BITS:
            raise ValueError(f"permission mode must be between 0 and 0o777, got {value:#o}")
        return value

    @model_validator(mode="after")
    def _modes_differ(self) -> "StorageSettings":
        if self.protected_mode == self.unprotected_mode:
            raise ValueError("protected_mode and unprotected_mode must differ")
        return self

    @property
    def root_path(self) -> Path:
        """Return ``root`` with ``~`` expanded."""
        return Path(self.root).expanduser()

    @property
    def staging_path(self) -> Optional[Path]:
        """Return ``staging_dir`` with ``~`` expanded, if configured."""
        return Path(self.staging_dir).expanduser() if self.staging_dir else None


class ProtectionSettings(VaultBaseModel):
    """Settings for temporary unlocks.

    Attributes:
        relock_delay_seconds: Delay before a temporarily unlocked document is
            locked again.
    """

    relock_delay_seconds: float = Field(default=30.0, ge=0)


class LoggingSettings(VaultBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path; console-only logging when unset.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = Field(default=5, ge=1)
    backup_count: int = Field(default=3, ge=0)

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown logging level {value!r}")
        return level


class CLIOptions(VaultBaseModel):
    """CLI behavior defaults.

    Attributes:
        confirm_sensitive: Whether privacy-sensitive commands ask for confirmation.
    """

    confirm_sensitive: bool = True


class VaultConfig(VaultBaseModel):
    """Top-level configuration struct for Docvault.

    Attributes:
        storage: Backing store settings.
        protection: Temporary unlock settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    protection: ProtectionSettings = Field(default_factory=ProtectionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "VaultBaseModel",
    "StorageSettings",
    "ProtectionSettings",
    "LoggingSettings",
    "CLIOptions",
    "VaultConfig",
]
