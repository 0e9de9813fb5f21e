"""
Installation environment for the application updater.

Describes one installation: the version it runs and the directories an
install touches. ``current_version`` is advanced only by UpdateOrchestrator.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app_updater.updates.version import Version, parse_version

if TYPE_CHECKING:
    from app_updater.config import UpdatesConfig

DEFAULT_ROLLBACK_DIR_NAME = "Temp"


class InstallationEnvironment(BaseModel):
    """
    Version and filesystem roots of one installation.

    Attributes:
        current_version: Version currently installed.
        binary_dir: Directory holding the application binaries.
        app_data_dir: Directory holding the application data.
        rollback_dir: Root under which versioned backups are written.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    current_version: Version = Field(
        ...,
        description="Version currently installed",
    )
    binary_dir: Path = Field(
        ...,
        description="Application binary directory",
    )
    app_data_dir: Path = Field(
        ...,
        description="Application data directory",
    )
    rollback_dir: Path = Field(
        ...,
        description="Root directory for versioned backups",
    )

    @field_validator("current_version", mode="before")
    @classmethod
    def validate_current_version(cls, v: Any) -> Version:
        """Parse textual versions."""
        if isinstance(v, Version):
            return v
        return parse_version(str(v))

    @classmethod
    def from_config(cls, config: UpdatesConfig) -> InstallationEnvironment:
        """
        Create an environment from configuration.

        When no rollback directory is configured, backups go to
        ``<app_data_dir>/Temp``.
        """
        app_data_dir = Path(config.app_data_dir)
        rollback_dir = (
            Path(config.rollback_dir)
            if config.rollback_dir
            else app_data_dir / DEFAULT_ROLLBACK_DIR_NAME
        )
        return cls(
            current_version=config.current_version,
            binary_dir=Path(config.binary_dir),
            app_data_dir=app_data_dir,
            rollback_dir=rollback_dir,
        )
