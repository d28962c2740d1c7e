"""Connected gamepad detection through evdev."""

from __future__ import annotations

import logging
from typing import Any

from evdev import InputDevice, ecodes, list_devices

logger = logging.getLogger(__name__)

_GAMEPAD_BUTTON: int = ecodes.BTN_GAMEPAD


def deviceIsGamepad_check(device: InputDevice) -> bool:
    """
    Determine whether an input device looks like a gamepad.

    Args:
        device: Input device.

    Returns:
        True when the device has analog axes and a gamepad face button.
    """
    capabilities: dict[int, Any] = device.capabilities()
    if ecodes.EV_ABS not in capabilities:
        return False
    key_caps = capabilities.get(ecodes.EV_KEY, [])
    return _GAMEPAD_BUTTON in key_caps


def gamepads_count() -> int:
    """
    Count gamepads currently attached.

    Devices that cannot be opened (permissions, hot-unplug) are skipped.

    Returns:
        Number of detected gamepads.
    """
    count: int = 0
    try:
        paths: list[str] = list_devices()
    except OSError as e:
        logger.debug(f"Cannot enumerate input devices: {e}")
        return 0

    for path in paths:
        try:
            device = InputDevice(path)
        except OSError:
            continue
        try:
            if deviceIsGamepad_check(device):
                logger.debug(f"Gamepad detected: {device.name} ({path})")
                count += 1
        finally:
            device.close()
    return count
