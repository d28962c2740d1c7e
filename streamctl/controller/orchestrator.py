"""
Streaming session orchestration.

One call to `SessionOrchestrator.stream_run` is one attempt:
IDLE -> APP_RESOLVING -> LAUNCHING -> STREAMING -> TEARDOWN -> IDLE.
Every failure is reported on the diagnostic channel and the orchestrator is
back in IDLE when the call returns.
"""

from __future__ import annotations

import logging
from typing import Callable

from streamctl.common.config import SessionConfig
from streamctl.common.errors import (
    AppNotFound,
    NegotiationFailure,
    ResultKind,
    ServerConnectionError,
)
from streamctl.common.reporter import Reporter
from streamctl.common.settings import settings
from streamctl.common.types import (
    AudioConfiguration,
    Codec,
    DisplayFlags,
    OrchestratorState,
    ServerHandle,
    StreamConfiguration,
    StreamRequest,
)
from streamctl.gamestream.client import SessionClient
from streamctl.platform.backend import Platform

logger = logging.getLogger(__name__)

__all__ = [
    "SessionOrchestrator",
    "gamepadMask_build",
    "hevcSupport_resolve",
    "bitrate_derive",
    "streamConfiguration_build",
]


def gamepadMask_build(count: int) -> int:
    """
    Build the gamepad-presence mask for `count` connected controllers.

    Args:
        count:
            Detected controllers; values above the slot limit are clamped.

    Returns:
        Mask with one low-order bit set per occupied slot.
    """
    mask: int = 0
    for _ in range(min(max(count, 0), settings.MAX_GAMEPADS)):
        mask = (mask << 1) | 1
    return mask


def hevcSupport_resolve(codec: Codec, platform_supports_hevc: bool) -> bool:
    """
    Decide whether HEVC is offered to the host.

    Args:
        codec:
            Configured codec preference.
        platform_supports_hevc:
            Decoder capability of the selected platform.

    Returns:
        False for H264, True for HEVC, platform capability for AUTO.
    """
    if codec == Codec.H264:
        return False
    return codec == Codec.HEVC or platform_supports_hevc


def bitrate_derive(width: int, height: int, fps: int) -> int:
    """
    Pick a default bitrate (kbps) for a resolution and frame rate.

    Args:
        width:
            Horizontal resolution (tiers are keyed on height alone).
        height:
            Vertical resolution.
        fps:
            Frames per second.

    Returns:
        Bitrate in kbps.
    """
    if height >= 2160 and fps >= 60:
        return 80000
    if height >= 2160:
        return 40000
    if height >= 1080 and fps >= 60:
        return 20000
    if height >= 1080 or fps >= 60:
        return 10000
    return 5000


def streamConfiguration_build(config: SessionConfig, supports_hevc: bool) -> StreamConfiguration:
    """
    Build negotiated stream parameters from session config.

    Args:
        config:
            Session configuration.
        supports_hevc:
            Resolved HEVC eligibility.

    Returns:
        Stream configuration for the host and transport.
    """
    stream = config.stream
    bitrate: int = stream.bitrate
    if bitrate <= 0:
        bitrate = bitrate_derive(stream.width, stream.height, stream.fps)
    return StreamConfiguration(
        width=stream.width,
        height=stream.height,
        fps=stream.fps,
        bitrate=bitrate,
        packet_size=stream.packet_size,
        streaming_remotely=stream.remote,
        audio_configuration=(
            AudioConfiguration.SURROUND_51 if stream.surround else AudioConfiguration.STEREO
        ),
        supports_hevc=supports_hevc,
    )


class SessionOrchestrator:
    """Runs one streaming attempt at a time against a paired host."""

    def __init__(
        self,
        client: SessionClient,
        server: ServerHandle,
        config: SessionConfig,
        reporter: Reporter,
        gamepad_counter: Callable[[], int],
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            client:
                Session client.
            server:
                Paired host handle.
            config:
                Immutable session configuration.
            reporter:
                Output channels.
            gamepad_counter:
                Returns the number of connected controllers.
        """
        self._client: SessionClient = client
        self._server: ServerHandle = server
        self._config: SessionConfig = config
        self._reporter: Reporter = reporter
        self._gamepad_counter: Callable[[], int] = gamepad_counter
        self.state: OrchestratorState = OrchestratorState.IDLE
        self.transitions: list[OrchestratorState] = []

    def _state_set(self, state: OrchestratorState) -> None:
        """Record a state transition."""
        logger.debug("[STATE] %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def appId_resolve(self, app_name: str) -> int:
        """
        Find the id of `app_name` in a freshly fetched catalog.

        Args:
            app_name:
                Exact, case-sensitive app name.

        Returns:
            App id.

        Raises:
            AppNotFound:
                Raised when no catalog entry has that name.
        """
        for entry in self._client.apps_list(self._server):
            if entry.name == app_name:
                return entry.id
        raise AppNotFound(app_name)

    def request_build(self, app_id: int, platform: Platform) -> StreamRequest:
        """
        Build the launch request for this attempt.

        Args:
            app_id:
                Resolved app id.
            platform:
                Selected platform.

        Returns:
            Stream request.
        """
        supports_hevc: bool = hevcSupport_resolve(self._config.codec, platform.hevcSupport_check())
        display_flags: DisplayFlags = DisplayFlags.NONE
        if self._config.fullscreen:
            display_flags |= DisplayFlags.FULLSCREEN
        return StreamRequest(
            app_id=app_id,
            stream=streamConfiguration_build(self._config, supports_hevc),
            gamepad_mask=gamepadMask_build(self._gamepad_counter()),
            supports_hevc=supports_hevc,
            display_flags=display_flags,
            sops=self._config.sops,
            local_audio=self._config.local_audio,
            audio_device=self._config.audio_device,
        )

    def stream_run(self, platform: Platform) -> bool:
        """
        Run one streaming attempt to completion.

        Args:
            platform:
                Platform whose sinks receive the stream.

        Returns:
            True when a session was streamed and torn down cleanly.
        """
        request: StreamRequest | None = self._launch(platform)
        if request is None:
            self._state_set(OrchestratorState.IDLE)
            return False

        streamed: bool = self._stream(platform, request)
        self._teardown(platform)
        return streamed

    def _launch(self, platform: Platform) -> StreamRequest | None:
        """Resolve the app and ask the host to start it."""
        self._state_set(OrchestratorState.APP_RESOLVING)
        try:
            app_id: int = self.appId_resolve(self._config.app)
        except AppNotFound as exc:
            self._reporter.diagnostic(str(exc))
            return None

        self._state_set(OrchestratorState.LAUNCHING)
        request: StreamRequest = self.request_build(app_id, platform)
        logger.info(
            "Launching app %s (id=%s) mask=%#x hevc=%s",
            self._config.app,
            app_id,
            request.gamepad_mask,
            request.supports_hevc,
        )
        try:
            self._client.app_start(self._server, request)
        except NegotiationFailure as exc:
            self._reporter.diagnostic(str(exc))
            return None
        except ServerConnectionError as exc:
            self._reporter.diagnostic(self._startFailure_describe(exc))
            return None
        return request

    @staticmethod
    def _startFailure_describe(exc: ServerConnectionError) -> str:
        """Render a non-negotiation start failure."""
        if exc.result.kind == ResultKind.PROTOCOL_ERROR:
            return f"Gamestream error: {exc.result.detail}"
        return f"Errorcode starting app: {exc.result.code}"

    def _stream(self, platform: Platform, request: StreamRequest) -> bool:
        """Attach the platform and block on the connection."""
        self._state_set(OrchestratorState.STREAMING)
        stream = request.stream
        if self._config.debug_level > 0:
            self._reporter.status(
                f"Stream {stream.width} x {stream.height}, {stream.fps} fps, {stream.bitrate} kbps"
            )
        try:
            platform.start()
            self._client.connection_run(
                self._server,
                request,
                platform.videoSink_get(),
                platform.audioSink_get(request.audio_device),
            )
        except Exception as exc:
            logger.exception("Stream connection failed")
            self._reporter.diagnostic(f"Stream ended with error: {exc}")
            return False
        return True

    def _teardown(self, platform: Platform) -> None:
        """Stop the connection and detach the platform; never raises."""
        self._state_set(OrchestratorState.TEARDOWN)
        try:
            self._client.session_stop()
        except Exception as exc:
            logger.warning("Stopping connection failed: %s", exc)
        try:
            platform.stop()
        except Exception as exc:
            logger.warning("Stopping platform %s failed: %s", platform.name, exc)
        self._state_set(OrchestratorState.IDLE)
