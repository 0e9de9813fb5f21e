"""
Reference VersionOracle implementations.

- StaticVersionOracle: always reports one fixed release
- HttpVersionOracle: reads the latest release from a JSON feed, e.g.

    {"version": "0.6.4.0", "release_notes": "...", "download_url": "..."}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from app_updater.errors import MetadataFetchError, UpdateError
from app_updater.logging import get_logger
from app_updater.updates.collaborators import UpdateDescriptor
from app_updater.updates.version import Version

if TYPE_CHECKING:
    from app_updater.config import UpdatesConfig

logger = get_logger(__name__)


class StaticVersionOracle:
    """Reports a fixed release, for pinned deployments and tests."""

    def __init__(self, release: UpdateDescriptor | Version | str) -> None:
        if not isinstance(release, UpdateDescriptor):
            release = UpdateDescriptor(version=release)
        self._release = release

    async def get_latest(self) -> UpdateDescriptor:
        return self._release


class HttpVersionOracle:
    """
    Fetches the latest release description from an HTTP JSON feed.

    Attributes:
        feed_url: URL of the JSON document.
        timeout: Request timeout in seconds.

    Example:
        >>> oracle = HttpVersionOracle("https://example.com/app/latest.json")
        >>> descriptor = await oracle.get_latest()
    """

    def __init__(self, feed_url: str, timeout: float = 10.0) -> None:
        """
        Initialize the oracle.

        Args:
            feed_url: URL to fetch the release document from.
            timeout: Request timeout in seconds.
        """
        self._feed_url = feed_url
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: UpdatesConfig) -> HttpVersionOracle:
        """Create an HttpVersionOracle from configuration."""
        return cls(feed_url=config.feed_url, timeout=config.feed_timeout_seconds)

    @property
    def feed_url(self) -> str:
        """Return the feed URL."""
        return self._feed_url

    @property
    def timeout(self) -> float:
        """Return the request timeout in seconds."""
        return self._timeout

    async def get_latest(self) -> UpdateDescriptor:
        """
        Fetch and parse the release document.

        Raises:
            MetadataFetchError: If the request fails or the document is not a
                valid release description.
        """
        if not self._feed_url:
            raise MetadataFetchError("Release feed URL not configured")

        logger.debug("Fetching release feed from %s", self._feed_url)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._feed_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("Failed to fetch release feed: %s", str(e))
            raise MetadataFetchError(
                f"Failed to fetch release feed: {e}",
                details={"feed_url": self._feed_url},
            ) from e
        except ValueError as e:
            logger.error("Failed to parse release feed: %s", str(e))
            raise MetadataFetchError(
                f"Invalid release feed response: {e}",
                details={"feed_url": self._feed_url},
            ) from e

        return self._parse_release(data)

    def _parse_release(self, data: Any) -> UpdateDescriptor:
        if not isinstance(data, dict) or "version" not in data:
            raise MetadataFetchError(
                "Invalid release feed: missing 'version' field",
                details={"feed_url": self._feed_url},
            )

        try:
            return UpdateDescriptor(
                version=data["version"],
                release_notes=data.get("release_notes"),
                download_url=data.get("download_url"),
                metadata=data.get("metadata") or {},
            )
        except (ValidationError, UpdateError) as e:
            raise MetadataFetchError(
                f"Invalid release feed entry: {e}",
                details={"feed_url": self._feed_url, "version": data.get("version")},
            ) from e
