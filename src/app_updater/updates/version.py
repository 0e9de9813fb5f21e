"""
Release version identifiers for the application updater.

Versions are dotted numeric identifiers of one to four components
(``major.minor[.build[.revision]]``), e.g. ``1.0`` or ``0.6.4.0``.
Missing trailing components compare as zero, so ``1.0 == 1.0.0.0``,
while ``str()`` keeps the components exactly as given because the text
form names the backup directory on disk.
"""

from __future__ import annotations

import re
from functools import total_ordering
from typing import Any

from app_updater.errors import InvalidArgumentError

MAX_COMPONENTS = 4

VERSION_PATTERN = re.compile(r"^\d+(?:\.\d+){0,3}$")


@total_ordering
class Version:
    """
    Immutable, totally ordered release version.

    Attributes:
        components: The numeric components as given.
    """

    __slots__ = ("_components",)

    def __init__(self, *components: int) -> None:
        if not components or len(components) > MAX_COMPONENTS:
            raise InvalidArgumentError(
                f"Version must have between 1 and {MAX_COMPONENTS} components",
                details={"components": list(components)},
            )
        if any(not isinstance(c, int) or isinstance(c, bool) or c < 0 for c in components):
            raise InvalidArgumentError(
                "Version components must be non-negative integers",
                details={"components": list(components)},
            )
        object.__setattr__(self, "_components", tuple(components))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def components(self) -> tuple[int, ...]:
        """Return the components as given."""
        return self._components

    @property
    def _key(self) -> tuple[int, ...]:
        return self._components + (0,) * (MAX_COMPONENTS - len(self._components))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __reduce__(self) -> tuple[Any, ...]:
        return (Version, self._components)

    def __str__(self) -> str:
        return ".".join(str(c) for c in self._components)

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"


def parse_version(version: str | Version) -> Version:
    """
    Parse and validate a version string.

    Args:
        version: Version string (e.g., "1.0", "0.1.0.0"), or a Version which
            is returned unchanged.

    Returns:
        The parsed Version.

    Raises:
        InvalidArgumentError: If the version string is invalid.
    """
    if isinstance(version, Version):
        return version

    if not version:
        raise InvalidArgumentError(
            "Version string cannot be empty",
            details={"version": version},
        )

    text = version.strip()

    if text.startswith("v"):
        raise InvalidArgumentError(
            "Version string must not start with 'v' prefix",
            details={"version": version, "hint": "Use '1.0' instead of 'v1.0'"},
        )

    if not VERSION_PATTERN.match(text):
        raise InvalidArgumentError(
            f"Invalid version: {version}",
            details={
                "version": version,
                "format": "MAJOR.MINOR[.BUILD[.REVISION]]",
                "examples": ["1.0", "0.6.4", "0.1.0.0"],
            },
        )

    return Version(*(int(part) for part in text.split(".")))


def compare_versions(v1: str | Version, v2: str | Version) -> int:
    """
    Compare two versions.

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2

    Raises:
        InvalidArgumentError: If either version is invalid.
    """
    p1 = parse_version(v1)
    p2 = parse_version(v2)

    if p1 < p2:
        return -1
    if p1 > p2:
        return 1
    return 0


def is_version_newer(current: str | Version, candidate: str | Version) -> bool:
    """Return ``True`` if ``candidate`` is strictly newer than ``current``."""
    return compare_versions(candidate, current) > 0
