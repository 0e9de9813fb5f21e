"""
Pytest configuration and shared fixtures for the application updater tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from app_updater.updates.collaborators import ApplyResult, UpdateDescriptor
from app_updater.updates.environment import InstallationEnvironment
from app_updater.updates.feed import StaticVersionOracle
from app_updater.updates.orchestrator import UpdateOrchestrator

# The release every mock oracle reports unless a test says otherwise
MOCK_UPDATE_VERSION = "1.0"


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (deselect with '-m \"not integration\"')",
    )


class RecordingApplier:
    """PayloadApplier that records calls and optionally fails."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[UpdateDescriptor] = []

    async def apply(self, descriptor: UpdateDescriptor) -> ApplyResult | None:
        self.calls.append(descriptor)
        if self.error is not None:
            raise self.error
        return None


@pytest.fixture
def updater_env(tmp_path: Path) -> InstallationEnvironment:
    """An outdated installation with empty binary, app-data and rollback dirs."""
    binary_dir = tmp_path / "bin"
    app_data_dir = tmp_path / "appdata"
    rollback_dir = app_data_dir / "Temp"
    for directory in (binary_dir, app_data_dir, rollback_dir):
        directory.mkdir(parents=True)

    return InstallationEnvironment(
        current_version="0.1.0.0",
        binary_dir=binary_dir,
        app_data_dir=app_data_dir,
        rollback_dir=rollback_dir,
    )


@pytest.fixture
def applier() -> RecordingApplier:
    """A PayloadApplier that succeeds and records its calls."""
    return RecordingApplier()


@pytest.fixture
def orchestrator(
    updater_env: InstallationEnvironment, applier: RecordingApplier
) -> UpdateOrchestrator:
    """An orchestrator whose oracle always reports MOCK_UPDATE_VERSION."""
    return UpdateOrchestrator(
        environment=updater_env,
        oracle=StaticVersionOracle(MOCK_UPDATE_VERSION),
        applier=applier,
    )


def write_files(root: Path, files: dict[str, bytes]) -> None:
    """Create ``files`` (relative path -> content) under ``root``."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
