"""
Controller error taxonomy.

Raw GameStream result codes never leave the session client; they are decoded
into a `SessionResult` and, where an operation fails, raised as one of the
exceptions below. Startup failures end the process, in-loop failures are
local to one command.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = [
    "ResultKind",
    "SessionResult",
    "StreamCtlError",
    "ConfigError",
    "DiscoveryTimeout",
    "ServerConnectionError",
    "PairingFailure",
    "PreconditionNotMet",
    "AppNotFound",
    "NegotiationFailure",
    "Unsupported4K",
    "UnsupportedMode",
    "PlatformNotFound",
]


class ResultKind(Enum):
    """Normalized outcome of a session client operation"""
    OK = "ok"
    OUT_OF_MEMORY = "out_of_memory"
    PROTOCOL_ERROR = "protocol_error"
    INVALID_SERVER_DATA = "invalid_server_data"
    UNSUPPORTED_SERVER_VERSION = "unsupported_server_version"
    UNSUPPORTED_RESOLUTION = "unsupported_resolution"
    UNSUPPORTED_4K = "unsupported_4k"
    OTHER = "other"


@dataclass(frozen=True)
class SessionResult:
    """Decoded result of one RPC"""
    kind: ResultKind
    detail: str = ""
    code: Optional[int] = None

    def isOk_check(self) -> bool:
        """Check if the operation succeeded"""
        return self.kind == ResultKind.OK

    def describe(self) -> str:
        """
        Render the result as a user-facing sentence.

        Returns:
            Diagnostic text for this result.
        """
        if self.kind == ResultKind.OUT_OF_MEMORY:
            return "Not enough memory"
        if self.kind == ResultKind.PROTOCOL_ERROR:
            return f"Gamestream error: {self.detail}"
        if self.kind == ResultKind.INVALID_SERVER_DATA:
            return f"Invalid data received from server: {self.detail}"
        if self.kind == ResultKind.UNSUPPORTED_SERVER_VERSION:
            return f"Unsupported version: {self.detail}"
        if self.kind == ResultKind.UNSUPPORTED_RESOLUTION:
            return "Server doesn't support the requested mode"
        if self.kind == ResultKind.UNSUPPORTED_4K:
            return "Server doesn't support 4K"
        if self.kind == ResultKind.OK:
            return "OK"
        if self.detail:
            return f"error {self.code}: {self.detail}"
        return f"error {self.code}"


class StreamCtlError(Exception):
    """Base class for controller failures"""


class ConfigError(StreamCtlError):
    """Global configuration is malformed or a backend cannot be loaded"""


class DiscoveryTimeout(StreamCtlError):
    """No host answered discovery within the timeout"""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            f"Autodiscovery failed after {timeout:g}s. Specify an IP address next time."
        )
        self.timeout: float = timeout


class ServerConnectionError(StreamCtlError):
    """A session client RPC returned a non-OK result"""

    def __init__(self, result: SessionResult, operation: str = "") -> None:
        message: str = result.describe()
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message)
        self.result: SessionResult = result
        self.operation: str = operation


class PairingFailure(StreamCtlError):
    """Pair or unpair RPC failed; trust state is unchanged"""

    def __init__(self, operation: str, result: SessionResult) -> None:
        detail: str = result.detail or result.describe()
        super().__init__(f"Failed to {operation} to server: {detail}")
        self.operation: str = operation
        self.result: SessionResult = result


class PreconditionNotMet(StreamCtlError):
    """Privileged operation requested while unpaired"""

    def __init__(self, message: str = "You must pair with the PC first") -> None:
        super().__init__(message)


class AppNotFound(StreamCtlError):
    """Requested app name is not in the host catalog"""

    def __init__(self, app_name: str) -> None:
        super().__init__(f"Can't find app {app_name}")
        self.app_name: str = app_name


class NegotiationFailure(StreamCtlError):
    """Host rejected the requested stream parameters"""


class Unsupported4K(NegotiationFailure):
    """Host cannot stream at 4K"""

    def __init__(self) -> None:
        super().__init__("Server doesn't support 4K")


class UnsupportedMode(NegotiationFailure):
    """Host cannot stream the requested resolution and frame rate"""

    def __init__(self, width: int, height: int, fps: int) -> None:
        super().__init__(
            f"Server doesn't support {width}x{height} ({fps} fps) "
            f"or try -unsupported option"
        )
        self.width: int = width
        self.height: int = height
        self.fps: int = fps


class PlatformNotFound(StreamCtlError):
    """No platform matches the configured name"""

    def __init__(self, name: str) -> None:
        super().__init__(f"Platform '{name}' not found")
        self.name: str = name
