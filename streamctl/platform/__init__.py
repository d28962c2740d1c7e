"""Platform abstraction layer for video/audio sinks and controller detection."""

from streamctl.platform.backend import AudioSink, Platform, VideoSink
from streamctl.platform.registry import PlatformRegistry, defaultRegistry_create

__all__ = [
    "AudioSink",
    "Platform",
    "PlatformRegistry",
    "VideoSink",
    "defaultRegistry_create",
]
