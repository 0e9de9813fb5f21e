"""
Versioned backups of an installation for the application updater.

Before an install mutates anything, the binary and application-data trees are
copied into ``<rollback_root>/<version>/bin`` and
``<rollback_root>/<version>/appdata``, preserving relative paths. The snapshot
is what external recovery tooling restores from; this module never restores
live directories itself and never deletes backups unless asked explicitly.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from app_updater.errors import BackupError, InvalidArgumentError
from app_updater.logging import get_logger
from app_updater.updates.version import Version, parse_version

logger = get_logger(__name__)

BINARY_SUBDIR = "bin"
APP_DATA_SUBDIR = "appdata"


def _raise_walk_error(error: OSError) -> None:
    raise error


def backup_tree(
    source_root: Path,
    destination_root: Path,
    *,
    exclude: Iterable[Path] = (),
) -> int:
    """
    Recursively copy every regular file under ``source_root``.

    Symbolic links are skipped rather than followed, so neither linked files
    nor linked directories end up in the backup.

    Each file lands at the same relative path under ``destination_root``,
    overwriting an existing copy. ``destination_root`` itself and every path
    in ``exclude`` are skipped together with everything beneath them.

    Args:
        source_root: Tree to back up. A missing root means nothing to copy.
        destination_root: Where the copy is written.
        exclude: Directories to leave out of the walk.

    Returns:
        Number of files copied.

    Raises:
        BackupError: If any directory cannot be read or any file cannot be
            copied. The backup is aborted at the first failure.
    """
    if not source_root.exists():
        logger.debug(
            "Backup source does not exist, nothing to copy",
            extra={"source": str(source_root)},
        )
        return 0

    excluded = {p.resolve() for p in exclude}
    excluded.add(destination_root.resolve())
    copied = 0

    try:
        for dirpath, dirnames, filenames in os.walk(
            source_root, onerror=_raise_walk_error
        ):
            current = Path(dirpath)
            dirnames[:] = [
                d for d in dirnames if (current / d).resolve() not in excluded
            ]

            for filename in filenames:
                source_file = current / filename
                if source_file.is_symlink() or not source_file.is_file():
                    continue

                target_file = destination_root / source_file.relative_to(source_root)
                target_file.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source_file, target_file)
                copied += 1
    except OSError as e:
        raise BackupError(
            f"Backup of {source_root} failed: {e}",
            details={
                "source": str(source_root),
                "destination": str(destination_root),
                "path": getattr(e, "filename", None),
                "error": str(e),
            },
        ) from e

    logger.debug(
        "Backed up directory tree",
        extra={
            "source": str(source_root),
            "destination": str(destination_root),
            "files": copied,
        },
    )
    return copied


class BackupStore:
    """
    Writes and enumerates versioned backups under a rollback root.

    Attributes:
        rollback_root: Directory holding one subdirectory per backed up version.
    """

    def __init__(self, rollback_root: Path | str) -> None:
        self._rollback_root = Path(rollback_root)

    @property
    def rollback_root(self) -> Path:
        """Get the rollback root directory."""
        return self._rollback_root

    def versioned_dir(self, version: Version) -> Path:
        """Return the backup directory for ``version``."""
        return self._rollback_root / str(version)

    def backup(
        self,
        source_root: Path,
        destination_root: Path,
        *,
        exclude: Iterable[Path] = (),
    ) -> int:
        """Copy ``source_root`` into ``destination_root``, skipping the rollback root."""
        return backup_tree(
            source_root,
            destination_root,
            exclude=[self._rollback_root, *exclude],
        )

    async def create_versioned_backup(
        self,
        version: Version,
        binary_dir: Path,
        app_data_dir: Path,
    ) -> Path:
        """
        Snapshot the binary and application-data trees for ``version``.

        Any existing backup for ``version`` is removed first, so the result
        mirrors the live trees at backup time. The copy runs in the default
        executor so the event loop keeps serving other callers.

        Returns:
            The versioned backup directory.

        Raises:
            BackupError: If a previous backup cannot be removed or any file
                fails to copy.
        """
        backup_dir = self.versioned_dir(version)

        def _copy() -> tuple[int, int]:
            if backup_dir.exists():
                try:
                    shutil.rmtree(backup_dir)
                except OSError as e:
                    raise BackupError(
                        f"Failed to clear previous backup {backup_dir}: {e}",
                        details={
                            "backup_dir": str(backup_dir),
                            "path": getattr(e, "filename", None),
                            "error": str(e),
                        },
                    ) from e
            binaries = self.backup(binary_dir, backup_dir / BINARY_SUBDIR)
            app_data = self.backup(app_data_dir, backup_dir / APP_DATA_SUBDIR)
            return binaries, app_data

        loop = asyncio.get_running_loop()
        binaries, app_data = await loop.run_in_executor(None, _copy)

        logger.info(
            f"Created backup for version {version}",
            extra={
                "backup_dir": str(backup_dir),
                "binary_files": binaries,
                "app_data_files": app_data,
            },
        )
        return backup_dir

    def _backup_dirs(self) -> list[tuple[Version, Path]]:
        if not self._rollback_root.exists():
            return []

        entries = []
        for entry in self._rollback_root.iterdir():
            if not entry.is_dir():
                continue
            try:
                entries.append((parse_version(entry.name), entry))
            except InvalidArgumentError:
                continue

        return sorted(entries, key=lambda item: item[0], reverse=True)

    def list_backups(self) -> list[Version]:
        """
        List versions that have a backup, newest first.

        Directories whose names are not versions are ignored.
        """
        return [version for version, _ in self._backup_dirs()]

    def prune_backups(self, keep: int) -> list[Path]:
        """
        Delete all but the ``keep`` newest backups.

        Only called by an explicit retention policy; installs never prune.

        Returns:
            The backup directories that were removed.

        Raises:
            InvalidArgumentError: If ``keep`` is negative.
        """
        if keep < 0:
            raise InvalidArgumentError(
                "Number of backups to keep must not be negative",
                details={"keep": keep},
            )

        removed = []
        for version, path in self._backup_dirs()[keep:]:
            shutil.rmtree(path)
            removed.append(path)
            logger.info(f"Removed backup for version {version}", extra={"path": str(path)})

        return removed
