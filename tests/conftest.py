"""Pytest configuration and shared fixtures for streamctl tests

This module provides fake GameStream library/transport/platform doubles and
fixtures that assemble a controller context around them.
"""

import logging
from typing import Any, Callable, Optional

import pytest

from streamctl.common.config import DEFAULTS, ConfigLoader, SessionConfig
from streamctl.common.reporter import Reporter
from streamctl.common.settings import Settings
from streamctl.common.types import DisplayFlags, ServerHandle, ServerInfo, StreamConfiguration
from streamctl.controller.context import ControllerContext
from streamctl.gamestream.client import SessionClient
from streamctl.gamestream.library import GS_OK
from streamctl.gamestream.pairing import PairingState
from streamctl.platform.registry import defaultRegistry_create


class FakeLibrary:
    """Scriptable GameStream library that records every RPC."""

    def __init__(self) -> None:
        self.last_error: str = ""
        self.calls: list[tuple[Any, ...]] = []
        self.init_code: int = GS_OK
        self.info: ServerInfo = ServerInfo(
            gpu_type="GeForce RTX 3080",
            gfe_version="3.27.0.112",
            app_version="7.1.450.0",
            gs_version="5.0.1",
            paired=False,
            native="native-server",
        )
        self.pair_code: int = GS_OK
        self.unpair_code: int = GS_OK
        self.applist_code: int = GS_OK
        self.apps: list[tuple[str, int]] = [("Steam", 1), ("Chrome", 2)]
        self.start_code: int = GS_OK
        self.quit_code: int = GS_OK

    def server_init(self, address: str, key_dir: str, debug_level: int, unsupported: bool):
        self.calls.append(("server_init", address, key_dir, debug_level, unsupported))
        if self.init_code != GS_OK:
            return self.init_code, None
        return self.init_code, self.info

    def server_pair(self, server: Any, pin: str) -> int:
        self.calls.append(("server_pair", server, pin))
        return self.pair_code

    def server_unpair(self, server: Any) -> int:
        self.calls.append(("server_unpair", server))
        return self.unpair_code

    def applist_get(self, server: Any):
        self.calls.append(("applist_get", server))
        if self.applist_code != GS_OK:
            return self.applist_code, []
        return self.applist_code, list(self.apps)

    def app_start(
        self,
        server: Any,
        stream_config: StreamConfiguration,
        app_id: int,
        sops: bool,
        local_audio: bool,
        gamepad_mask: int,
    ) -> int:
        self.calls.append(("app_start", server, stream_config, app_id, sops, local_audio, gamepad_mask))
        return self.start_code

    def app_quit(self, server: Any) -> int:
        self.calls.append(("app_quit", server))
        return self.quit_code

    def callNames_get(self) -> list[str]:
        """Return the recorded RPC names in order."""
        return [call[0] for call in self.calls]


class FakeTransport:
    """Connection transport that returns immediately."""

    def __init__(self) -> None:
        self.starts: list[dict[str, Any]] = []
        self.stops: int = 0
        self.start_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None

    def connection_start(
        self,
        server: Any,
        stream_config: StreamConfiguration,
        video_sink: Any,
        audio_sink: Any,
        display_flags: DisplayFlags,
        audio_device: Optional[str],
    ) -> None:
        self.starts.append(
            {
                "server": server,
                "stream_config": stream_config,
                "video_sink": video_sink,
                "audio_sink": audio_sink,
                "display_flags": display_flags,
                "audio_device": audio_device,
            }
        )
        if self.start_error is not None:
            raise self.start_error

    def connection_stop(self) -> None:
        self.stops += 1
        if self.stop_error is not None:
            raise self.stop_error


class FakeBackend:
    """Backend object bundling the fake library and transport."""

    def __init__(self) -> None:
        self.library: FakeLibrary = FakeLibrary()
        self.transport: FakeTransport = FakeTransport()


class FakePlatformDouble:
    """Recording platform with configurable HEVC support."""

    def __init__(self, name: str = "testplat", hevc: bool = False, available: bool = True) -> None:
        self.name: str = name
        self.hevc: bool = hevc
        self.available: bool = available
        self.start_calls: int = 0
        self.stop_calls: int = 0
        self.stop_error: Optional[Exception] = None
        self.video_sink: object = object()
        self.audio_devices: list[Optional[str]] = []

    def available_check(self) -> bool:
        return self.available

    def hevcSupport_check(self) -> bool:
        return self.hevc

    def start(self) -> None:
        self.start_calls += 1

    def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error

    def videoSink_get(self) -> object:
        return self.video_sink

    def audioSink_get(self, device: Optional[str]) -> object:
        self.audio_devices.append(device)
        return ("audio", device)


def sessionConfig_make(**overrides: Any) -> SessionConfig:
    """Build a SessionConfig from defaults plus raw override keys."""
    layer: dict[str, Any] = {"address": "192.168.1.50", "platform": "fake"}
    return ConfigLoader.config_parse(ConfigLoader.layers_merge(DEFAULTS, layer, overrides))


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Fresh fake backend"""
    return FakeBackend()


@pytest.fixture
def server_handle() -> ServerHandle:
    """Unpaired server handle"""
    return ServerHandle(
        address="192.168.1.50",
        gpu_type="GeForce RTX 3080",
        gfe_version="3.27.0.112",
        app_version="7.1.450.0",
        gs_version="5.0.1",
        paired=False,
        native="native-server",
    )


@pytest.fixture
def context_make(fake_backend: FakeBackend, server_handle: ServerHandle) -> Callable[..., ControllerContext]:
    """Factory for controller contexts around the fake backend

    Returns:
        Callable taking `paired`, extra platforms and raw config overrides.
    """

    def _make(paired: bool = True, platforms: tuple = (), gamepads: int = 0, **overrides: Any) -> ControllerContext:
        server_handle.paired = paired
        client = SessionClient(fake_backend.library, fake_backend.transport)
        reporter = Reporter()
        return ControllerContext(
            config=sessionConfig_make(**overrides),
            server=server_handle,
            client=client,
            pairing=PairingState(client, server_handle, reporter),
            platforms=defaultRegistry_create(platforms),
            reporter=reporter,
            gamepad_counter=lambda: gamepads,
        )

    return _make


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the settings data directory at a temporary path"""
    monkeypatch.setattr(Settings, "DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Setup logging for tests"""
    caplog.set_level(logging.DEBUG)
