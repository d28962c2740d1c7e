"""Explicit controller context shared by every dispatcher branch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from streamctl.common.config import SessionConfig
from streamctl.common.reporter import Reporter
from streamctl.common.types import ServerHandle
from streamctl.gamestream.client import SessionClient
from streamctl.gamestream.pairing import PairingState
from streamctl.platform.registry import PlatformRegistry


@dataclass
class ControllerContext:
    """
    Everything the dispatcher needs for one controller run.

    `config` is immutable; `server.paired` is the only state that changes
    between commands and only the dispatcher thread changes it.
    """

    config: SessionConfig
    server: ServerHandle
    client: SessionClient
    pairing: PairingState
    platforms: PlatformRegistry
    reporter: Reporter
    gamepad_counter: Callable[[], int]
