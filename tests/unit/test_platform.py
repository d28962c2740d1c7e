"""Unit tests for platform registry, fake platform and gamepad detection."""

from __future__ import annotations

import pytest
from evdev import ecodes

from conftest import FakePlatformDouble
from streamctl.common.errors import PlatformNotFound
from streamctl.platform import gamepads
from streamctl.platform.fake import FakePlatform
from streamctl.platform.registry import PlatformRegistry, defaultRegistry_create


class TestPlatformRegistry:
    """Tests for platform name resolution."""

    def test_fake_always_registered_last(self) -> None:
        registry = defaultRegistry_create([FakePlatformDouble("sdl"), FakePlatformDouble("x11")])
        assert registry.names_get() == ["sdl", "x11", "fake"]

    def test_resolve_is_case_insensitive(self) -> None:
        sdl = FakePlatformDouble("sdl")
        registry = defaultRegistry_create([sdl])
        assert registry.platform_resolve("SDL") is sdl

    def test_auto_skips_unavailable_and_fake(self) -> None:
        broken = FakePlatformDouble("x11", available=False)
        sdl = FakePlatformDouble("sdl")
        registry = defaultRegistry_create([broken, sdl])
        assert registry.platform_resolve("auto") is sdl

    def test_auto_without_real_platform_fails(self) -> None:
        """auto never falls back to the fake platform."""
        with pytest.raises(PlatformNotFound, match="auto"):
            defaultRegistry_create().platform_resolve("auto")

    def test_explicit_fake_resolves(self) -> None:
        assert isinstance(defaultRegistry_create().platform_resolve("fake"), FakePlatform)

    def test_unknown_name_fails(self) -> None:
        with pytest.raises(PlatformNotFound, match="Platform 'vdpau' not found"):
            PlatformRegistry().platform_resolve("vdpau")

    def test_unavailable_named_platform_fails(self) -> None:
        registry = defaultRegistry_create([FakePlatformDouble("x11", available=False)])
        with pytest.raises(PlatformNotFound):
            registry.platform_resolve("x11")

    def test_failure_logs_registered_names(self, caplog) -> None:
        registry = defaultRegistry_create([FakePlatformDouble("sdl", available=False)])
        with pytest.raises(PlatformNotFound):
            registry.platform_resolve("auto")
        assert any("sdl, fake" in record.getMessage() for record in caplog.records)


class TestFakePlatform:
    """Tests for the discarding platform."""

    def test_sinks_discard_and_count(self) -> None:
        platform = FakePlatform()
        platform.start()
        video = platform.videoSink_get()
        audio = platform.audioSink_get("hw:0")

        video.frame_submit(b"\x00" * 10)
        audio.samples_submit(b"\x00" * 4)
        platform.stop()

        assert video.frames == 1
        assert video.bytes_received == 10
        assert audio.device == "hw:0"
        assert audio.packets == 1
        assert platform.started is False


class _FakeInputDevice:
    def __init__(self, name: str, capabilities: dict) -> None:
        self.name = name
        self._capabilities = capabilities
        self.closed = False

    def capabilities(self) -> dict:
        return self._capabilities

    def close(self) -> None:
        self.closed = True


class TestGamepadDetection:
    """Tests for evdev-based gamepad counting."""

    def test_gamepad_requires_axes_and_button(self) -> None:
        pad = _FakeInputDevice("pad", {ecodes.EV_ABS: [0, 1], ecodes.EV_KEY: [ecodes.BTN_SOUTH]})
        keyboard = _FakeInputDevice("kbd", {ecodes.EV_KEY: [ecodes.KEY_A]})
        touchpad = _FakeInputDevice("touch", {ecodes.EV_ABS: [0, 1], ecodes.EV_KEY: [ecodes.BTN_TOUCH]})
        flight_stick = _FakeInputDevice("stick", {ecodes.EV_ABS: [0, 1], ecodes.EV_KEY: [ecodes.BTN_TRIGGER]})

        assert gamepads.deviceIsGamepad_check(pad) is True
        assert gamepads.deviceIsGamepad_check(keyboard) is False
        assert gamepads.deviceIsGamepad_check(touchpad) is False
        assert gamepads.deviceIsGamepad_check(flight_stick) is False

    def test_count_skips_unopenable_devices(self, monkeypatch) -> None:
        devices = {
            "/dev/input/event0": _FakeInputDevice("pad0", {ecodes.EV_ABS: [0], ecodes.EV_KEY: [ecodes.BTN_GAMEPAD]}),
            "/dev/input/event2": _FakeInputDevice("kbd", {ecodes.EV_KEY: [ecodes.KEY_A]}),
            "/dev/input/event3": _FakeInputDevice("pad1", {ecodes.EV_ABS: [0], ecodes.EV_KEY: [ecodes.BTN_A]}),
        }

        def _open(path: str) -> _FakeInputDevice:
            if path not in devices:
                raise PermissionError(path)
            return devices[path]

        monkeypatch.setattr(
            gamepads, "list_devices", lambda: ["/dev/input/event0", "/dev/input/event1", "/dev/input/event2", "/dev/input/event3"]
        )
        monkeypatch.setattr(gamepads, "InputDevice", _open)

        assert gamepads.gamepads_count() == 2
        assert all(device.closed for device in devices.values())

    def test_enumeration_failure_counts_zero(self, monkeypatch) -> None:
        def _fail() -> list:
            raise OSError("no /dev/input")

        monkeypatch.setattr(gamepads, "list_devices", _fail)
        assert gamepads.gamepads_count() == 0
