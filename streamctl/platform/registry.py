"""Platform registry and name resolution."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from streamctl.common.errors import PlatformNotFound
from streamctl.platform.backend import Platform
from streamctl.platform.fake import FakePlatform

logger = logging.getLogger(__name__)

AUTO_PLATFORM: str = "auto"


class PlatformRegistry:
    """Named platforms in priority order."""

    def __init__(self) -> None:
        self._platforms: dict[str, Platform] = {}

    def platform_register(self, platform: Platform) -> None:
        """
        Register a platform under its lowercase name.

        Args:
            platform: Platform implementation. A later registration with the
                same name replaces the earlier one.
        """
        self._platforms[platform.name.lower()] = platform

    def names_get(self) -> list[str]:
        """Return registered platform names in priority order."""
        return list(self._platforms)

    def platform_resolve(self, name: Optional[str]) -> Platform:
        """
        Resolve a platform by name.

        `auto` (or an empty name) picks the first available platform other
        than `fake`; `fake` must be asked for explicitly.

        Args:
            name: Configured platform name.

        Returns:
            Matching platform.

        Raises:
            PlatformNotFound: No platform matches or none is available.
        """
        requested: str = (name or AUTO_PLATFORM).strip().lower()
        if requested == AUTO_PLATFORM:
            for candidate in self._platforms.values():
                if candidate.name.lower() == FakePlatform.name:
                    continue
                if candidate.available_check():
                    logger.debug("Auto-selected platform %s", candidate.name)
                    return candidate
            logger.warning("No available platform among: %s", ", ".join(self.names_get()))
            raise PlatformNotFound(name or AUTO_PLATFORM)

        platform: Optional[Platform] = self._platforms.get(requested)
        if platform is None or not platform.available_check():
            logger.warning("Registered platforms: %s", ", ".join(self.names_get()))
            raise PlatformNotFound(name or requested)
        return platform


def defaultRegistry_create(extra_platforms: Iterable[Platform] = ()) -> PlatformRegistry:
    """
    Build the registry used at runtime.

    Args:
        extra_platforms: Platforms contributed by the loaded backend, highest
            priority first.

    Returns:
        Registry with backend platforms followed by the fake platform.
    """
    registry = PlatformRegistry()
    for platform in extra_platforms:
        registry.platform_register(platform)
    registry.platform_register(FakePlatform())
    return registry
