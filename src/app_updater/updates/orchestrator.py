"""
Update orchestrator for the application updater.

UpdateOrchestrator decides whether a newer release is available and installs
it with single-flight semantics:

- install_update() serializes on an instance-scoped lock and re-checks the
  candidate once it holds the lock, so concurrent or back-to-back calls
  collapse into a single real install
- every real install snapshots the binary and application-data trees before
  the payload applier runs
- a failed install leaves the installed version untouched, so the update
  stays pending and the next call retries the whole sequence

State machine:
- idle -> install_in_progress (update found, lock held)
- install_in_progress -> idle (apply succeeded, version advanced)
- install_in_progress -> idle (backup or apply failed, error raised)

check_for_updates() only observes this machine and the install lock and
never waits on the lock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from app_updater.errors import (
    ApplyError,
    FailedPreconditionError,
    MetadataFetchError,
    UpdateError,
)
from app_updater.logging import get_logger
from app_updater.updates.backup import BackupStore
from app_updater.updates.collaborators import (
    ApplyResult,
    PayloadApplier,
    UpdateDescriptor,
    VersionOracle,
)
from app_updater.updates.environment import InstallationEnvironment

if TYPE_CHECKING:
    from app_updater.config import UpdatesConfig

logger = get_logger(__name__)


class InstallState(str, Enum):
    """States of an orchestrator's install machine."""

    IDLE = "idle"
    INSTALL_IN_PROGRESS = "install_in_progress"


class InstallResult(BaseModel):
    """
    Outcome of a completed install_update() call.

    Attributes:
        status: "installed" when this call applied the update, "no_update"
            when nothing was pending once the lock was acquired.
        previous_version: Installed version before the call.
        new_version: Installed version after the call.
        backup_dir: Backup written by this call, if any.
    """

    status: str = Field(
        ...,
        description="Install outcome: installed or no_update",
    )
    previous_version: str | None = Field(
        default=None,
        description="Installed version before the call",
    )
    new_version: str | None = Field(
        default=None,
        description="Installed version after the call",
    )
    backup_dir: str | None = Field(
        default=None,
        description="Versioned backup directory written by this call",
    )


class UpdateOrchestrator:
    """
    Coordinates version checks, backups and payload application.

    Attributes:
        environment: The installation being updated.
        oracle: Reports the latest available release.
        applier: Applies release payloads.
        state: Current install state.
        versioned_rollback_dir: Backup directory of the latest real install
            attempt, or None before the first one.
    """

    def __init__(
        self,
        environment: InstallationEnvironment,
        oracle: VersionOracle,
        applier: PayloadApplier,
        backup_store: BackupStore | None = None,
    ) -> None:
        """
        Initialize the UpdateOrchestrator.

        Args:
            environment: Installation whose current version this instance owns.
            oracle: Reports the latest available release.
            applier: Applies a release payload onto disk.
            backup_store: Where versioned backups are written. Defaults to a
                store rooted at ``environment.rollback_dir``.

        Raises:
            FailedPreconditionError: If the rollback directory is the binary
                or application-data directory itself.
        """
        rollback_dir = environment.rollback_dir.resolve()
        for name in ("binary_dir", "app_data_dir"):
            if getattr(environment, name).resolve() == rollback_dir:
                raise FailedPreconditionError(
                    f"Rollback directory must differ from {name}",
                    details={name: str(getattr(environment, name))},
                )

        self._environment = environment
        self._oracle = oracle
        self._applier = applier
        self._backup_store = backup_store or BackupStore(environment.rollback_dir)
        self._lock = asyncio.Lock()
        self._state = InstallState.IDLE
        self._versioned_rollback_dir: Path | None = None
        self._last_transition_at: str | None = None
        self._last_error: str | None = None
        self._state_callbacks: list[Callable[[InstallState], None]] = []

    @property
    def environment(self) -> InstallationEnvironment:
        """Get the installation environment."""
        return self._environment

    @property
    def oracle(self) -> VersionOracle:
        """Get the version oracle."""
        return self._oracle

    @property
    def applier(self) -> PayloadApplier:
        """Get the payload applier."""
        return self._applier

    @property
    def state(self) -> InstallState:
        """Get the current install state."""
        return self._state

    @property
    def versioned_rollback_dir(self) -> Path | None:
        """Get the backup directory of the latest real install attempt."""
        return self._versioned_rollback_dir

    def add_state_callback(self, callback: Callable[[InstallState], None]) -> None:
        """Add a callback to be notified of state changes."""
        self._state_callbacks.append(callback)

    def _notify_state(self) -> None:
        for callback in self._state_callbacks:
            try:
                callback(self._state)
            except Exception as e:
                logger.warning(f"State callback failed: {e}")

    def _transition_to(self, new_state: InstallState, target: UpdateDescriptor) -> None:
        logger.info(
            f"State transition: {self._state.value} -> {new_state.value}",
            extra={
                "old_state": self._state.value,
                "new_state": new_state.value,
                "target_version": str(target.version),
            },
        )
        self._state = new_state
        self._last_transition_at = datetime.now(UTC).isoformat()
        self._notify_state()

    async def _fetch_latest(self) -> UpdateDescriptor:
        try:
            return await self._oracle.get_latest()
        except UpdateError:
            raise
        except Exception as e:
            raise MetadataFetchError(
                f"Failed to fetch latest release metadata: {e}",
                details={"oracle": type(self._oracle).__name__, "error": str(e)},
            ) from e

    def _is_update(self, descriptor: UpdateDescriptor) -> bool:
        return descriptor.version > self._environment.current_version

    async def check_for_updates(self) -> bool:
        """
        Check whether a newer release than the installed one is available.

        Returns False immediately while an install holds the lock, without
        consulting the oracle or waiting for the lock. This covers the whole
        locked section, including the candidate lookup before the state
        changes to install_in_progress.

        Raises:
            MetadataFetchError: If the oracle fails.
        """
        if self._state is InstallState.INSTALL_IN_PROGRESS or self._lock.locked():
            logger.debug("Install in progress, reporting no update")
            return False

        descriptor = await self._fetch_latest()
        available = self._is_update(descriptor)

        if available:
            logger.info(
                f"Update available: {self._environment.current_version} -> "
                f"{descriptor.version}"
            )
        else:
            logger.debug(
                f"Current version {self._environment.current_version} is up to date"
            )
        return available

    async def install_update(self) -> InstallResult:
        """
        Install the latest release if it is newer than the installed one.

        Concurrent callers serialize on the install lock. Whoever finds the
        update still pending once it holds the lock backs up the installation
        and applies the payload; everyone else gets a no-op result.

        Returns:
            InstallResult describing what this call did.

        Raises:
            MetadataFetchError: If the oracle fails.
            BackupError: If the backup phase fails. The applier is not run.
            ApplyError: If the applier raises or reports failure.
        """
        async with self._lock:
            descriptor = await self._fetch_latest()
            previous = self._environment.current_version

            if not self._is_update(descriptor):
                logger.debug(
                    "No update pending",
                    extra={
                        "current_version": str(previous),
                        "candidate_version": str(descriptor.version),
                    },
                )
                return InstallResult(
                    status="no_update",
                    previous_version=str(previous),
                    new_version=str(previous),
                )

            self._transition_to(InstallState.INSTALL_IN_PROGRESS, descriptor)
            try:
                backup_dir = await self._backup_store.create_versioned_backup(
                    descriptor.version,
                    self._environment.binary_dir,
                    self._environment.app_data_dir,
                )
                self._versioned_rollback_dir = backup_dir

                await self._apply(descriptor)

                if descriptor.version > self._environment.current_version:
                    self._environment.current_version = descriptor.version
                self._last_error = None
            except Exception as e:
                self._last_error = str(e)
                logger.error(
                    f"Install of {descriptor.version} failed: {e}",
                    extra={"target_version": str(descriptor.version)},
                )
                raise
            finally:
                self._transition_to(InstallState.IDLE, descriptor)

            logger.info(
                f"Installed version {descriptor.version}",
                extra={
                    "previous_version": str(previous),
                    "backup_dir": str(backup_dir),
                },
            )
            return InstallResult(
                status="installed",
                previous_version=str(previous),
                new_version=str(self._environment.current_version),
                backup_dir=str(backup_dir),
            )

    async def _apply(self, descriptor: UpdateDescriptor) -> None:
        try:
            result = await self._applier.apply(descriptor)
        except ApplyError:
            raise
        except Exception as e:
            raise ApplyError(
                f"Applying version {descriptor.version} failed: {e}",
                details={
                    "target_version": str(descriptor.version),
                    "error": str(e),
                },
            ) from e

        if isinstance(result, ApplyResult) and not result.success:
            raise ApplyError(
                result.message or f"Applying version {descriptor.version} failed",
                details={"target_version": str(descriptor.version), **result.details},
            )

    @classmethod
    def from_config(
        cls,
        config: UpdatesConfig,
        oracle: VersionOracle | None = None,
        applier: PayloadApplier | None = None,
    ) -> UpdateOrchestrator:
        """
        Create an orchestrator from configuration.

        Args:
            config: Installation and update source settings.
            oracle: Overrides the HttpVersionOracle built from ``feed_url``.
            applier: Overrides the DirectoryPayloadApplier built from
                ``staging_dir``.
        """
        from app_updater.updates.feed import HttpVersionOracle
        from app_updater.updates.payload import DirectoryPayloadApplier

        return cls(
            environment=InstallationEnvironment.from_config(config),
            oracle=oracle or HttpVersionOracle.from_config(config),
            applier=applier or DirectoryPayloadApplier.from_config(config),
        )

    def get_status(self) -> dict[str, Any]:
        """
        Get a snapshot of the orchestrator's status.

        Returns:
            Dictionary with state, installed version, latest backup directory,
            last transition time and last error.
        """
        return {
            "state": self._state.value,
            "current_version": str(self._environment.current_version),
            "versioned_rollback_dir": (
                str(self._versioned_rollback_dir)
                if self._versioned_rollback_dir
                else None
            ),
            "last_transition_at": self._last_transition_at,
            "last_error": self._last_error,
        }
