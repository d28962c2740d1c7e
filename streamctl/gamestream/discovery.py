"""
Host location and mDNS discovery.

A configured address is used as-is. Otherwise one bounded mDNS browse for
GameStream hosts is performed; there is no retry.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

from zeroconf import IPVersion, ServiceBrowser, ServiceListener, Zeroconf

from streamctl.common.errors import DiscoveryTimeout

logger = logging.getLogger(__name__)

__all__ = ["HostDiscoverer", "ZeroconfDiscoverer", "HostLocator"]

GAMESTREAM_SERVICE_TYPE: str = "_nvstream._tcp.local."
_SERVICE_INFO_TIMEOUT_MS: int = 1000


class HostDiscoverer(Protocol):
    """Discovery contract used by the host locator."""

    def host_discover(self, timeout: float) -> Optional[str]:
        """Return the first responding host address, or None on timeout."""
        ...


class _FirstHostListener(ServiceListener):
    """Records the first GameStream host that resolves to an IPv4 address."""

    def __init__(self) -> None:
        self.address: Optional[str] = None
        self.found: threading.Event = threading.Event()

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Resolve a newly announced service."""
        if self.found.is_set():
            return
        info = zc.get_service_info(type_, name, timeout=_SERVICE_INFO_TIMEOUT_MS)
        if info is None:
            logger.debug("Could not resolve %s", name)
            return
        addresses: list[str] = info.parsed_addresses(IPVersion.V4Only)
        if not addresses:
            return
        logger.info("Found GameStream host %s at %s", name, addresses[0])
        self.address = addresses[0]
        self.found.set()

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Treat updates like announcements."""
        self.add_service(zc, type_, name)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Removal is irrelevant once a host was picked."""


class ZeroconfDiscoverer:
    """Browses `_nvstream._tcp` over mDNS with zeroconf."""

    def __init__(self, service_type: str = GAMESTREAM_SERVICE_TYPE) -> None:
        self._service_type: str = service_type

    def host_discover(self, timeout: float) -> Optional[str]:
        """
        Browse for a GameStream host.

        Args:
            timeout:
                Maximum wait in seconds.

        Returns:
            IPv4 address of the first host found, or None.
        """
        zc = Zeroconf(ip_version=IPVersion.V4Only)
        try:
            listener = _FirstHostListener()
            browser = ServiceBrowser(zc, self._service_type, listener)
            try:
                listener.found.wait(timeout)
            finally:
                browser.cancel()
            return listener.address
        finally:
            zc.close()


class HostLocator:
    """Resolves the target host address for startup."""

    def __init__(
        self,
        discoverer: Optional[HostDiscoverer] = None,
        announce: Callable[[str], None] = print,
    ) -> None:
        """
        Initialize host locator.

        Args:
            discoverer:
                Discovery implementation (zeroconf by default).
            announce:
                Status callback used before a blocking search.
        """
        self._discoverer: HostDiscoverer = discoverer or ZeroconfDiscoverer()
        self._announce: Callable[[str], None] = announce

    def host_locate(self, address: Optional[str], timeout: float) -> str:
        """
        Return `address` or discover one.

        Args:
            address:
                Configured address, if any.
            timeout:
                Discovery bound in seconds.

        Returns:
            Host address.

        Raises:
            DiscoveryTimeout:
                Raised when discovery finds nothing in time.
        """
        if address:
            return address

        self._announce("Searching for server...")
        discovered: Optional[str] = self._discoverer.host_discover(timeout)
        if not discovered:
            raise DiscoveryTimeout(timeout)
        return discovered
