"""
Session client for one GameStream host.

This module wraps the external library/transport pair and is the only place
raw integer result codes are interpreted. Callers see `ServerHandle`,
`AppCatalogEntry` values and the exceptions in `streamctl.common.errors`.
"""

from __future__ import annotations

import logging
from typing import Optional

from streamctl.common.errors import (
    PairingFailure,
    ResultKind,
    ServerConnectionError,
    SessionResult,
    Unsupported4K,
    UnsupportedMode,
)
from streamctl.common.types import AppCatalogEntry, ServerHandle, ServerInfo, StreamRequest
from streamctl.gamestream import library as gs
from streamctl.gamestream.library import ConnectionTransport, GameStreamLibrary

logger = logging.getLogger(__name__)

__all__ = ["SessionClient", "resultCode_decode"]

_CODE_KINDS: dict[int, ResultKind] = {
    gs.GS_OK: ResultKind.OK,
    gs.GS_OUT_OF_MEMORY: ResultKind.OUT_OF_MEMORY,
    gs.GS_ERROR: ResultKind.PROTOCOL_ERROR,
    gs.GS_INVALID: ResultKind.INVALID_SERVER_DATA,
    gs.GS_UNSUPPORTED_VERSION: ResultKind.UNSUPPORTED_SERVER_VERSION,
    gs.GS_NOT_SUPPORTED_MODE: ResultKind.UNSUPPORTED_RESOLUTION,
    gs.GS_NOT_SUPPORTED_4K: ResultKind.UNSUPPORTED_4K,
}


def resultCode_decode(code: int, detail: str = "") -> SessionResult:
    """
    Map a raw library result code into the controller taxonomy.

    Args:
        code:
            Integer code returned by the library.
        detail:
            Library diagnostic text for the call.

    Returns:
        Decoded result. Unknown codes keep their number in `code`.
    """
    kind: ResultKind = _CODE_KINDS.get(code, ResultKind.OTHER)
    if kind == ResultKind.OK:
        return SessionResult(kind=kind, code=code)
    return SessionResult(kind=kind, detail=detail or "", code=code)


class SessionClient:
    """
    Typed facade over the GameStream library and connection transport.

    Each method performs exactly one RPC; nothing is cached between calls.
    """

    def __init__(self, library: GameStreamLibrary, transport: ConnectionTransport) -> None:
        """
        Initialize session client.

        Args:
            library:
                External RPC library.
            transport:
                External connection transport.
        """
        self._library: GameStreamLibrary = library
        self._transport: ConnectionTransport = transport

    def _result_get(self, code: int) -> SessionResult:
        """Decode `code` with the library's last error text."""
        return resultCode_decode(code, getattr(self._library, "last_error", "") or "")

    def server_init(
        self,
        address: str,
        key_dir: str,
        debug_level: int,
        unsupported: bool,
    ) -> ServerHandle:
        """
        Connect to the host and build its handle.

        Args:
            address:
                Host address.
            key_dir:
                Directory holding client trust material.
            debug_level:
                Library verbosity.
            unsupported:
                Allow hosts with unsupported versions.

        Returns:
            Server handle populated with version and GPU metadata.

        Raises:
            ServerConnectionError:
                Raised for any non-OK result.
        """
        code: int
        info: Optional[ServerInfo]
        code, info = self._library.server_init(address, key_dir, debug_level, unsupported)
        result: SessionResult = self._result_get(code)
        if not result.isOk_check():
            raise ServerConnectionError(result, f"Can't connect to server {address}")
        if info is None:
            raise ServerConnectionError(
                SessionResult(kind=ResultKind.INVALID_SERVER_DATA, detail="no server info", code=code),
                f"Can't connect to server {address}",
            )

        return ServerHandle(
            address=address,
            gpu_type=info.gpu_type,
            gfe_version=info.gfe_version,
            app_version=info.app_version,
            gs_version=info.gs_version,
            paired=info.paired,
            native=info.native,
        )

    def server_pair(self, server: ServerHandle, pin: str) -> None:
        """
        Run the pairing RPC with `pin`.

        Raises:
            PairingFailure:
                Raised for any non-OK result.
        """
        result: SessionResult = self._result_get(self._library.server_pair(server.native, pin))
        if not result.isOk_check():
            raise PairingFailure("pair", result)

    def server_unpair(self, server: ServerHandle) -> None:
        """
        Run the unpair RPC.

        Raises:
            PairingFailure:
                Raised for any non-OK result.
        """
        result: SessionResult = self._result_get(self._library.server_unpair(server.native))
        if not result.isOk_check():
            raise PairingFailure("unpair", result)

    def apps_list(self, server: ServerHandle) -> list[AppCatalogEntry]:
        """
        Fetch the host's app catalog.

        Failure is not fatal: the user can simply ask again.

        Args:
            server:
                Host handle.

        Returns:
            Catalog in host order, or an empty list on failure.
        """
        code: int
        apps: list[tuple[str, int]]
        code, apps = self._library.applist_get(server.native)
        result: SessionResult = self._result_get(code)
        if not result.isOk_check():
            logger.warning("Can't get app list: %s", result.describe())
            return []
        return [AppCatalogEntry(name=name, id=app_id) for name, app_id in apps]

    def app_start(self, server: ServerHandle, request: StreamRequest) -> None:
        """
        Ask the host to launch the requested app.

        Args:
            server:
                Host handle.
            request:
                Launch parameters for this attempt.

        Raises:
            Unsupported4K:
                Host cannot stream at 4K.
            UnsupportedMode:
                Host rejects the resolution/frame-rate combination.
            ServerConnectionError:
                Any other non-OK result.
        """
        code: int = self._library.app_start(
            server.native,
            request.stream,
            request.app_id,
            request.sops,
            request.local_audio,
            request.gamepad_mask,
        )
        result: SessionResult = self._result_get(code)
        if result.isOk_check():
            return
        if result.kind == ResultKind.UNSUPPORTED_4K:
            raise Unsupported4K()
        if result.kind == ResultKind.UNSUPPORTED_RESOLUTION:
            raise UnsupportedMode(request.stream.width, request.stream.height, request.stream.fps)
        raise ServerConnectionError(result, "start app")

    def app_quit(self, server: ServerHandle) -> None:
        """
        Ask the host to quit the running app.

        Raises:
            ServerConnectionError:
                Raised for any non-OK result.
        """
        result: SessionResult = self._result_get(self._library.app_quit(server.native))
        if not result.isOk_check():
            raise ServerConnectionError(result, "quit app")

    def connection_run(
        self,
        server: ServerHandle,
        request: StreamRequest,
        video_sink: object,
        audio_sink: object,
    ) -> None:
        """
        Start the stream connection and block until the session ends.

        Args:
            server:
                Host handle.
            request:
                Launch parameters for this attempt.
            video_sink:
                Platform video sink.
            audio_sink:
                Platform audio sink.
        """
        self._transport.connection_start(
            server.native,
            request.stream,
            video_sink,
            audio_sink,
            request.display_flags,
            request.audio_device,
        )

    def session_stop(self) -> None:
        """Stop the stream connection."""
        self._transport.connection_stop()
