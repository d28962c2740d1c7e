"""
GameStream library and transport contracts.

The RPC library (pairing, app control) and the connection transport are
external. This module declares the surface the controller consumes, the raw
result codes the library returns, and the loader that imports a concrete
backend from a `package.module:attribute` path.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Optional, Protocol

from streamctl.common.errors import ConfigError
from streamctl.common.types import DisplayFlags, ServerInfo, StreamConfiguration

logger = logging.getLogger(__name__)

__all__ = [
    "GS_OK",
    "GS_FAILED",
    "GS_OUT_OF_MEMORY",
    "GS_INVALID",
    "GS_WRONG_STATE",
    "GS_IO_ERROR",
    "GS_NOT_SUPPORTED_4K",
    "GS_UNSUPPORTED_VERSION",
    "GS_NOT_SUPPORTED_MODE",
    "GS_ERROR",
    "GameStreamLibrary",
    "ConnectionTransport",
    "GameStreamBackend",
    "backend_load",
]

GS_OK: int = 0
GS_FAILED: int = -1
GS_OUT_OF_MEMORY: int = -2
GS_INVALID: int = -3
GS_WRONG_STATE: int = -4
GS_IO_ERROR: int = -5
GS_NOT_SUPPORTED_4K: int = -6
GS_UNSUPPORTED_VERSION: int = -7
GS_NOT_SUPPORTED_MODE: int = -8
GS_ERROR: int = -9


class GameStreamLibrary(Protocol):
    """RPC surface of a GameStream host client library."""

    last_error: str
    """Detail text for the most recent failing call."""

    def server_init(
        self,
        address: str,
        key_dir: str,
        debug_level: int,
        unsupported: bool,
    ) -> tuple[int, Optional[ServerInfo]]:
        """Connect to the host and read its metadata."""
        ...

    def server_pair(self, server: Any, pin: str) -> int:
        """Run the PIN pairing handshake."""
        ...

    def server_unpair(self, server: Any) -> int:
        """Drop the pairing with the host."""
        ...

    def applist_get(self, server: Any) -> tuple[int, list[tuple[str, int]]]:
        """Fetch `(name, id)` pairs for every app the host offers."""
        ...

    def app_start(
        self,
        server: Any,
        stream_config: StreamConfiguration,
        app_id: int,
        sops: bool,
        local_audio: bool,
        gamepad_mask: int,
    ) -> int:
        """Launch or resume an app with the given stream parameters."""
        ...

    def app_quit(self, server: Any) -> int:
        """Quit the app currently running on the host."""
        ...


class ConnectionTransport(Protocol):
    """Audio/video/input connection to a launched app."""

    def connection_start(
        self,
        server: Any,
        stream_config: StreamConfiguration,
        video_sink: Any,
        audio_sink: Any,
        display_flags: DisplayFlags,
        audio_device: Optional[str],
    ) -> None:
        """Run the session; returns when it ends."""
        ...

    def connection_stop(self) -> None:
        """Tear the connection down."""
        ...


class GameStreamBackend(Protocol):
    """A loaded backend: one library plus the matching transport."""

    library: GameStreamLibrary
    transport: ConnectionTransport


def backend_load(import_path: Optional[str]) -> GameStreamBackend:
    """
    Import a GameStream backend from `package.module:attribute`.

    The attribute may be the backend object itself or a zero-argument
    factory returning it.

    Args:
        import_path:
            Backend import path from config or `-backend`.

    Returns:
        Backend exposing `library` and `transport`.

    Raises:
        ConfigError:
            Raised when no path is configured or it cannot be imported.
    """
    if not import_path:
        raise ConfigError(
            "No GameStream backend configured. Set 'backend: package.module:attribute' "
            "in the config file or pass -backend"
        )
    if ":" not in import_path:
        raise ConfigError(f"Backend path must be in format package.module:attribute, got '{import_path}'")

    module_name, attribute = import_path.split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import backend module '{module_name}': {exc}") from exc

    try:
        backend = getattr(module, attribute)
    except AttributeError as exc:
        raise ConfigError(f"Backend module '{module_name}' has no attribute '{attribute}'") from exc

    if callable(backend) and not hasattr(backend, "library"):
        backend = backend()
    if not hasattr(backend, "library") or not hasattr(backend, "transport"):
        raise ConfigError(f"Backend '{import_path}' must provide 'library' and 'transport'")

    logger.info("Loaded GameStream backend %s", import_path)
    return backend
