"""
Error types for the application updater.

This module defines the UpdateError base class and subclasses for the failure
categories of an update attempt. Collaborators and the orchestrator raise these
instead of returning ad-hoc status codes, so callers can branch on
``error_code`` and serialize failures with ``to_dict()``.
"""

from __future__ import annotations

from typing import Any


class UpdateError(Exception):
    """
    Base exception class for updater errors.

    Attributes:
        error_code: Internal error code string (e.g., "invalid_argument",
            "metadata_fetch_failed", "backup_failed", "apply_failed").
        message: Human-readable error message.
        details: Optional structured details (e.g., paths, versions).

    Example:
        >>> raise UpdateError(
        ...     error_code="backup_failed",
        ...     message="Failed to copy settings.json",
        ...     details={"path": "/home/user/.config/app/settings.json"},
        ... )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize an UpdateError.

        Args:
            error_code: Internal error code string identifying the error category.
            message: Human-readable error message.
            details: Optional dictionary with structured error details.
        """
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the error to a dictionary for serialization.

        Returns:
            Dictionary with error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(UpdateError):
    """
    Error raised for invalid input such as a malformed version string.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidArgumentError."""
        super().__init__(
            error_code="invalid_argument", message=message, details=details
        )


class FailedPreconditionError(UpdateError):
    """
    Error raised when the installation environment is not in a usable state.

    Used, for example, when the rollback directory coincides with one of the
    directories it is supposed to back up.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a FailedPreconditionError."""
        super().__init__(
            error_code="failed_precondition", message=message, details=details
        )


class MetadataFetchError(UpdateError):
    """
    Error raised when the latest-release metadata cannot be obtained.

    No state is mutated when this is raised, so the call is safe to retry.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a MetadataFetchError."""
        super().__init__(
            error_code="metadata_fetch_failed", message=message, details=details
        )


class BackupError(UpdateError):
    """
    Error raised when a file fails to copy during the backup phase.

    The payload is never applied after this error. A retry redoes the backup
    from scratch, overwriting any partial snapshot.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a BackupError."""
        super().__init__(error_code="backup_failed", message=message, details=details)


class ApplyError(UpdateError):
    """
    Error raised when the payload applier fails after a successful backup.

    The installed version is left unchanged, so the update remains pending.
    The backup taken for the attempt stays on disk for recovery tooling.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an ApplyError."""
        super().__init__(error_code="apply_failed", message=message, details=details)
