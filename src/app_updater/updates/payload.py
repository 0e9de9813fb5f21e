"""
Reference PayloadApplier that installs an unpacked release from disk.

Releases are expected under ``<staging_dir>/<version>/`` (or at the
descriptor's ``source_path``) with the same layout as the binary directory.
Applying copies that tree over the binary directory; running it again after a
partial failure simply copies again.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from app_updater.logging import get_logger
from app_updater.updates.collaborators import ApplyResult, UpdateDescriptor

if TYPE_CHECKING:
    from app_updater.config import UpdatesConfig

logger = get_logger(__name__)


class DirectoryPayloadApplier:
    """Copies a staged release directory over the binary directory."""

    def __init__(self, staging_dir: Path | str, binary_dir: Path | str) -> None:
        self._staging_dir = Path(staging_dir)
        self._binary_dir = Path(binary_dir)

    @classmethod
    def from_config(cls, config: UpdatesConfig) -> DirectoryPayloadApplier:
        """Create a DirectoryPayloadApplier from configuration."""
        return cls(staging_dir=config.staging_dir, binary_dir=config.binary_dir)

    def release_dir(self, descriptor: UpdateDescriptor) -> Path:
        """Return the directory the release for ``descriptor`` is read from."""
        if descriptor.source_path is not None:
            return descriptor.source_path
        return self._staging_dir / str(descriptor.version)

    async def apply(self, descriptor: UpdateDescriptor) -> ApplyResult:
        release_dir = self.release_dir(descriptor)
        if not release_dir.is_dir():
            return ApplyResult(
                success=False,
                message=f"Release payload not found: {release_dir}",
                details={"release_dir": str(release_dir)},
            )

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: shutil.copytree(release_dir, self._binary_dir, dirs_exist_ok=True),
        )

        logger.info(
            f"Applied release {descriptor.version}",
            extra={"release_dir": str(release_dir), "binary_dir": str(self._binary_dir)},
        )
        return ApplyResult(success=True, details={"release_dir": str(release_dir)})
