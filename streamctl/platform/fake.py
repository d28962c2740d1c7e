"""Fake platform that discards audio and video (testing and headless hosts)."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class DiscardVideoSink:
    """Video sink that only counts what it receives."""

    def __init__(self) -> None:
        self.frames: int = 0
        self.bytes_received: int = 0

    def frame_submit(self, data: bytes) -> None:
        """Count and drop one video unit."""
        self.frames += 1
        self.bytes_received += len(data)


class DiscardAudioSink:
    """Audio sink that only counts what it receives."""

    def __init__(self, device: Optional[str]) -> None:
        self.device: Optional[str] = device
        self.packets: int = 0

    def samples_submit(self, data: bytes) -> None:
        """Count and drop one audio packet."""
        self.packets += 1


class FakePlatform:
    """Always-available platform with discarding sinks."""

    name: str = "fake"

    def __init__(self) -> None:
        self.started: bool = False
        self._video_sink: DiscardVideoSink = DiscardVideoSink()

    def available_check(self) -> bool:
        """Fake platform runs anywhere."""
        return True

    def hevcSupport_check(self) -> bool:
        """Nothing is decoded, so any codec is acceptable."""
        return True

    def start(self) -> None:
        """Mark platform started."""
        self.started = True
        logger.debug("Fake platform started")

    def stop(self) -> None:
        """Mark platform stopped and log what was discarded."""
        self.started = False
        logger.debug("Fake platform stopped after %d video frames", self._video_sink.frames)

    def videoSink_get(self) -> DiscardVideoSink:
        """Return the discarding video sink."""
        return self._video_sink

    def audioSink_get(self, device: Optional[str]) -> DiscardAudioSink:
        """Return a discarding audio sink for `device`."""
        return DiscardAudioSink(device)
