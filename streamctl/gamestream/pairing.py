"""
Pairing and trust state for the current host.

`ServerHandle.paired` reflects the last successful pair/unpair RPC only;
failed calls never touch it.
"""

from __future__ import annotations

import logging
import random

from streamctl.common.errors import PairingFailure
from streamctl.common.reporter import Reporter
from streamctl.common.settings import settings
from streamctl.common.types import ServerHandle
from streamctl.gamestream.client import SessionClient

logger = logging.getLogger(__name__)

__all__ = ["PairingState", "pin_generate"]


def pin_generate(rng: random.Random, length: int = settings.PIN_LENGTH) -> str:
    """
    Generate a numeric pairing PIN.

    Every digit is drawn independently from 0-9, so leading zeros occur
    ("0000" is a valid PIN).

    Args:
        rng:
            Random source.
        length:
            Number of digits.

    Returns:
        PIN string of exactly `length` digits.
    """
    return "".join(str(rng.randrange(10)) for _ in range(length))


class PairingState:
    """Gatekeeper for privileged operations and driver of the PIN handshake."""

    def __init__(
        self,
        client: SessionClient,
        server: ServerHandle,
        reporter: Reporter,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize pairing state.

        Args:
            client:
                Session client used for the pair/unpair RPCs.
            server:
                Handle whose `paired` flag this object maintains.
            reporter:
                Output channels for the PIN prompt.
            rng:
                PIN random source (system entropy by default).
        """
        self._client: SessionClient = client
        self._server: ServerHandle = server
        self._reporter: Reporter = reporter
        self._rng: random.Random = rng or random.SystemRandom()

    def pair_check(self) -> bool:
        """Return True when the host is currently paired."""
        return self._server.paired

    def pair(self) -> None:
        """
        Pair with the host.

        Shows a fresh PIN for entry on the host, then runs the RPC. Re-pairing
        an already paired host is allowed.

        Raises:
            PairingFailure:
                Raised when the RPC fails; `paired` is unchanged.
        """
        pin: str = pin_generate(self._rng)
        self._reporter.status(f"Please enter the following PIN on the target PC: {pin}")
        self._client.server_pair(self._server, pin)
        self._server.paired = True
        logger.info("Paired with %s", self._server.address)

    def unpair(self) -> None:
        """
        Unpair from the host.

        The RPC always runs, even when the flag already says unpaired.

        Raises:
            PairingFailure:
                Raised when the RPC fails; `paired` is unchanged.
        """
        try:
            self._client.server_unpair(self._server)
        except PairingFailure:
            logger.info("Unpair from %s failed, paired=%s", self._server.address, self._server.paired)
            raise
        self._server.paired = False
        logger.info("Unpaired from %s", self._server.address)
