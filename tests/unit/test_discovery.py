"""Unit tests for host location and mDNS discovery listener."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from streamctl.common.errors import DiscoveryTimeout
from streamctl.gamestream import discovery
from streamctl.gamestream.discovery import HostLocator


class _FakeDiscoverer:
    """Discoverer double recording each attempt."""

    def __init__(self, result: str | None) -> None:
        self.result: str | None = result
        self.timeouts: list[float] = []

    def host_discover(self, timeout: float) -> str | None:
        self.timeouts.append(timeout)
        return self.result


class TestHostLocator:
    """Tests for address resolution policy."""

    def test_configured_address_returned_unchanged(self) -> None:
        """A configured address never triggers discovery."""
        discoverer = _FakeDiscoverer("10.0.0.1")
        locator = HostLocator(discoverer=discoverer, announce=Mock())

        assert locator.host_locate("192.168.1.20", 5.0) == "192.168.1.20"
        assert discoverer.timeouts == []

    def test_discovered_address_returned(self) -> None:
        """Missing address is discovered within the timeout."""
        discoverer = _FakeDiscoverer("192.168.1.50")
        announce = Mock()
        locator = HostLocator(discoverer=discoverer, announce=announce)

        assert locator.host_locate(None, 2.5) == "192.168.1.50"
        assert discoverer.timeouts == [2.5]
        announce.assert_called_once_with("Searching for server...")

    def test_timeout_raises_after_single_attempt(self) -> None:
        """Discovery failure is fatal and not retried."""
        discoverer = _FakeDiscoverer(None)
        locator = HostLocator(discoverer=discoverer, announce=Mock())

        with pytest.raises(DiscoveryTimeout, match="Autodiscovery failed"):
            locator.host_locate(None, 1.0)
        assert discoverer.timeouts == [1.0]


class TestFirstHostListener:
    """Tests for zeroconf listener address capture."""

    def test_first_resolved_host_is_kept(self) -> None:
        """Only the first host with an IPv4 address is recorded."""
        first_info = Mock()
        first_info.parsed_addresses.return_value = ["192.168.1.50"]
        second_info = Mock()
        second_info.parsed_addresses.return_value = ["192.168.1.51"]
        zc = Mock()
        zc.get_service_info.side_effect = [first_info, second_info]

        listener = discovery._FirstHostListener()
        listener.add_service(zc, discovery.GAMESTREAM_SERVICE_TYPE, "gaming-pc._nvstream._tcp.local.")
        listener.add_service(zc, discovery.GAMESTREAM_SERVICE_TYPE, "other-pc._nvstream._tcp.local.")

        assert listener.found.is_set()
        assert listener.address == "192.168.1.50"
        assert zc.get_service_info.call_count == 1

    def test_unresolvable_service_is_skipped(self) -> None:
        """Services without info or addresses do not complete discovery."""
        empty_info = Mock()
        empty_info.parsed_addresses.return_value = []
        zc = Mock()
        zc.get_service_info.side_effect = [None, empty_info]

        listener = discovery._FirstHostListener()
        listener.add_service(zc, discovery.GAMESTREAM_SERVICE_TYPE, "a._nvstream._tcp.local.")
        listener.update_service(zc, discovery.GAMESTREAM_SERVICE_TYPE, "b._nvstream._tcp.local.")

        assert not listener.found.is_set()
        assert listener.address is None
