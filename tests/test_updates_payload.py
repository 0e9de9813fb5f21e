"""
Tests for the staged-directory payload applier.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import write_files

from app_updater.config import UpdatesConfig
from app_updater.updates.collaborators import PayloadApplier, UpdateDescriptor
from app_updater.updates.payload import DirectoryPayloadApplier


class TestDirectoryPayloadApplier:
    """Tests for DirectoryPayloadApplier."""

    @pytest.mark.asyncio
    async def test_apply_copies_release_over_binaries(self, tmp_path: Path) -> None:
        """Test the staged release replaces and extends the binary dir."""
        write_files(tmp_path / "bin", {"app": b"old", "keep.txt": b"untouched"})
        write_files(tmp_path / "staging" / "1.0", {"app": b"new", "lib/extra.so": b"x"})
        applier = DirectoryPayloadApplier(tmp_path / "staging", tmp_path / "bin")

        result = await applier.apply(UpdateDescriptor(version="1.0"))

        assert result.success is True
        assert (tmp_path / "bin" / "app").read_bytes() == b"new"
        assert (tmp_path / "bin" / "lib" / "extra.so").read_bytes() == b"x"
        assert (tmp_path / "bin" / "keep.txt").read_bytes() == b"untouched"

    @pytest.mark.asyncio
    async def test_apply_uses_source_path(self, tmp_path: Path) -> None:
        """Test a descriptor's source_path takes precedence over staging."""
        write_files(tmp_path / "unpacked", {"app": b"from source"})
        applier = DirectoryPayloadApplier(tmp_path / "staging", tmp_path / "bin")

        descriptor = UpdateDescriptor(version="1.0", source_path=tmp_path / "unpacked")
        result = await applier.apply(descriptor)

        assert result.success is True
        assert (tmp_path / "bin" / "app").read_bytes() == b"from source"

    @pytest.mark.asyncio
    async def test_missing_release_reports_failure(self, tmp_path: Path) -> None:
        """Test a missing staged release is an unsuccessful result."""
        applier = DirectoryPayloadApplier(tmp_path / "staging", tmp_path / "bin")

        result = await applier.apply(UpdateDescriptor(version="2.0"))

        assert result.success is False
        assert result.details["release_dir"] == str(tmp_path / "staging" / "2.0")

    @pytest.mark.asyncio
    async def test_apply_twice_is_safe(self, tmp_path: Path) -> None:
        """Test re-applying the same release succeeds."""
        write_files(tmp_path / "staging" / "1.0", {"app": b"new"})
        applier = DirectoryPayloadApplier(tmp_path / "staging", tmp_path / "bin")
        descriptor = UpdateDescriptor(version="1.0")

        await applier.apply(descriptor)
        result = await applier.apply(descriptor)

        assert result.success is True

    def test_from_config(self, tmp_path: Path) -> None:
        """Test creation from configuration."""
        config = UpdatesConfig(
            staging_dir=str(tmp_path / "staging"), binary_dir=str(tmp_path / "bin")
        )

        applier = DirectoryPayloadApplier.from_config(config)

        assert isinstance(applier, PayloadApplier)
        assert applier.release_dir(UpdateDescriptor(version="1.0")) == (
            tmp_path / "staging" / "1.0"
        )
