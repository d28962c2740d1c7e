"""Platform protocols for video output, audio output and lifecycle hooks."""

from __future__ import annotations

from typing import Optional, Protocol


class VideoSink(Protocol):
    """Receives decoded-unit callbacks from the connection transport."""

    def frame_submit(self, data: bytes) -> None:
        """Accept one video unit."""


class AudioSink(Protocol):
    """Receives audio sample callbacks from the connection transport."""

    def samples_submit(self, data: bytes) -> None:
        """Accept one audio packet."""


class Platform(Protocol):
    """Abstract platform: decoder/renderer pair plus start/stop hooks."""

    name: str

    def available_check(self) -> bool:
        """Return True if this platform can run on the current machine."""

    def hevcSupport_check(self) -> bool:
        """Return True if the platform can decode HEVC."""

    def start(self) -> None:
        """Prepare the platform before a stream starts."""

    def stop(self) -> None:
        """Release platform resources after a stream ends."""

    def videoSink_get(self) -> VideoSink:
        """Return the video sink for the connection."""

    def audioSink_get(self, device: Optional[str]) -> AudioSink:
        """Return the audio sink bound to `device` (None for default)."""
