"""
Contracts for the updater's external collaborators.

The orchestrator holds a VersionOracle and a PayloadApplier by composition and
depends only on the operations declared here:

- VersionOracle.get_latest(): describe the latest available release
- PayloadApplier.apply(descriptor): replace the installed files with it

Any object providing these coroutines satisfies the contract; no base class
is required.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app_updater.updates.version import Version, parse_version


class UpdateDescriptor(BaseModel):
    """
    Metadata describing the latest available release.

    Produced by a VersionOracle, one instance per check.

    Attributes:
        version: The candidate version. Strings are parsed on construction.
        release_notes: Optional human-readable notes.
        download_url: Optional location of the release payload.
        source_path: Optional local path of an already unpacked payload.
        metadata: Additional oracle-specific metadata.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: Version = Field(
        ...,
        description="Candidate release version",
    )
    release_notes: str | None = Field(
        default=None,
        description="Release notes for the candidate version",
    )
    download_url: str | None = Field(
        default=None,
        description="Location of the release payload",
    )
    source_path: Path | None = Field(
        default=None,
        description="Local path of an unpacked release payload",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional oracle-specific metadata",
    )

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v: Any) -> Version:
        """Parse textual versions."""
        if isinstance(v, Version):
            return v
        return parse_version(str(v))

    @field_serializer("version")
    def serialize_version(self, v: Version) -> str:
        return str(v)


class ApplyResult(BaseModel):
    """
    Outcome reported by a PayloadApplier.

    Attributes:
        success: Whether the payload was applied completely.
        message: Optional status or failure description.
        details: Optional structured details.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = Field(
        ...,
        description="Whether the payload was applied",
    )
    message: str | None = Field(
        default=None,
        description="Status or failure description",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional applier-specific details",
    )


@runtime_checkable
class VersionOracle(Protocol):
    """Reports the latest available release. Must be safe to call repeatedly."""

    async def get_latest(self) -> UpdateDescriptor:
        """
        Describe the latest available release.

        Raises:
            MetadataFetchError: If the release metadata cannot be obtained.
        """
        ...


@runtime_checkable
class PayloadApplier(Protocol):
    """
    Replaces the installed files with a release payload.

    Implementations must tolerate being called again for the same release
    after an earlier failure.
    """

    async def apply(self, descriptor: UpdateDescriptor) -> ApplyResult | None:
        """
        Apply the release described by ``descriptor``.

        Returns:
            None or a successful ApplyResult when the payload was applied, an
            unsuccessful ApplyResult otherwise. Raising is treated as failure.
        """
        ...
