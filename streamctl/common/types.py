"""Common types and data structures for streamctl"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Any, Optional


class Codec(Enum):
    """Video codec preference"""
    AUTO = "auto"
    H264 = "h264"
    HEVC = "hevc"

    @classmethod
    def fromName_parse(cls, name: str) -> "Codec":
        """
        Parse codec name as accepted on the command line and in config

        Args:
            name: One of auto, h264, h265 or hevc (case-insensitive).

        Returns:
            Matching codec.

        Raises:
            ValueError: If the name is not a known codec.
        """
        normalized = name.strip().lower()
        if normalized == "h265":
            normalized = "hevc"
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown codec '{name}' (expected auto, h264 or h265)") from None


class Command(Enum):
    """Discrete user commands serviced by the dispatcher"""
    LIST = "list"
    STREAM = "stream"
    PAIR = "pair"
    UNPAIR = "unpair"
    QUIT_APP = "quit_app"  # Ask the host to close the running app
    QUIT = "quit"          # Leave the dispatch loop
    NONE = "none"


class OrchestratorState(Enum):
    """Per-attempt streaming session state"""
    IDLE = "idle"
    APP_RESOLVING = "app_resolving"
    LAUNCHING = "launching"
    STREAMING = "streaming"
    TEARDOWN = "teardown"


class AudioConfiguration(Enum):
    """Audio channel layout requested from the host"""
    STEREO = "stereo"
    SURROUND_51 = "surround_51"


class DisplayFlags(IntFlag):
    """Flags handed to the video sink when the connection starts"""
    NONE = 0
    FULLSCREEN = 0x01


@dataclass(frozen=True)
class AppCatalogEntry:
    """One application offered by the host"""
    name: str
    id: int


@dataclass(frozen=True)
class ServerInfo:
    """Host metadata reported by the GameStream library on init"""
    gpu_type: str
    gfe_version: str
    app_version: str
    gs_version: str
    paired: bool
    native: Any = None  # Library-owned handle, passed back on every RPC


@dataclass
class ServerHandle:
    """
    One remote host for the lifetime of a controller run.

    `paired` is the only field that changes after init and gates every
    privileged operation.
    """
    address: str
    gpu_type: str
    gfe_version: str
    app_version: str
    gs_version: str
    paired: bool = False
    native: Any = None


@dataclass(frozen=True)
class StreamConfiguration:
    """Negotiated stream parameters sent to the host and transport"""
    width: int
    height: int
    fps: int
    bitrate: int
    packet_size: int
    streaming_remotely: bool
    audio_configuration: AudioConfiguration
    supports_hevc: bool


@dataclass(frozen=True)
class StreamRequest:
    """Everything needed for one launch attempt; discarded afterwards"""
    app_id: int
    stream: StreamConfiguration
    gamepad_mask: int
    supports_hevc: bool
    display_flags: DisplayFlags
    sops: bool
    local_audio: bool
    audio_device: Optional[str] = None
