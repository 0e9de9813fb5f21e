"""
Self-update mechanism for the application updater.

This package implements:
- Version parsing and ordering
- Collaborator contracts (VersionOracle, PayloadApplier)
- Installation environment description
- Versioned backups of the binary and application-data trees
- UpdateOrchestrator with single-flight install coordination
- Reference oracles (static, HTTP feed) and a staged-directory applier
"""

from app_updater.updates.backup import BackupStore, backup_tree
from app_updater.updates.collaborators import (
    ApplyResult,
    PayloadApplier,
    UpdateDescriptor,
    VersionOracle,
)
from app_updater.updates.environment import InstallationEnvironment
from app_updater.updates.feed import HttpVersionOracle, StaticVersionOracle
from app_updater.updates.orchestrator import (
    InstallResult,
    InstallState,
    UpdateOrchestrator,
)
from app_updater.updates.payload import DirectoryPayloadApplier
from app_updater.updates.version import (
    Version,
    compare_versions,
    is_version_newer,
    parse_version,
)

__all__ = [
    # Versions
    "Version",
    "parse_version",
    "compare_versions",
    "is_version_newer",
    # Collaborators
    "UpdateDescriptor",
    "ApplyResult",
    "VersionOracle",
    "PayloadApplier",
    "StaticVersionOracle",
    "HttpVersionOracle",
    "DirectoryPayloadApplier",
    # Environment and backups
    "InstallationEnvironment",
    "BackupStore",
    "backup_tree",
    # Orchestration
    "InstallState",
    "InstallResult",
    "UpdateOrchestrator",
]
