"""
Command dispatch loop.

The loop is single-threaded and cooperative: one command is polled per
iteration, its branch runs to completion (a stream blocks the loop for the
whole session), and only `Command.QUIT` ends the loop. A failure inside a
branch is reported and affects that command only.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from streamctl.common.errors import PreconditionNotMet, StreamCtlError
from streamctl.common.settings import settings
from streamctl.common.types import Command
from streamctl.controller.commands import CommandSource
from streamctl.controller.context import ControllerContext
from streamctl.controller.orchestrator import SessionOrchestrator
from streamctl.platform.backend import Platform

logger = logging.getLogger(__name__)

__all__ = ["CommandDispatcher"]


class CommandDispatcher:
    """Maps polled commands onto controller operations."""

    def __init__(
        self,
        context: ControllerContext,
        source: CommandSource,
        poll_interval: float = settings.DISPATCH_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            context:
                Controller context.
            source:
                Command source polled once per iteration.
            poll_interval:
                Idle sleep when no command is pending.
            sleep:
                Sleep function.
        """
        self._context: ControllerContext = context
        self._source: CommandSource = source
        self._poll_interval: float = poll_interval
        self._sleep: Callable[[float], None] = sleep
        self._handlers: dict[Command, Callable[[], None]] = {
            Command.LIST: self.list_handle,
            Command.STREAM: self.stream_handle,
            Command.PAIR: self.pair_handle,
            Command.UNPAIR: self.unpair_handle,
            Command.QUIT_APP: self.quitApp_handle,
            Command.NONE: self.idle_handle,
        }

    def loop_run(self) -> int:
        """
        Service commands until `QUIT`.

        Returns:
            Process exit status (always 0).
        """
        while True:
            command: Command = self._source.command_poll()
            if command == Command.QUIT:
                logger.info("Quit requested")
                return 0
            self.command_dispatch(command)

    def command_dispatch(self, command: Command) -> None:
        """
        Run the branch for one command, reporting any failure.

        Args:
            command:
                Command to service.
        """
        if command != Command.NONE:
            logger.debug("Dispatching %s", command.value)
        handler: Callable[[], None] = self._handlers[command]
        try:
            handler()
        except StreamCtlError as exc:
            self._context.reporter.diagnostic(str(exc))
        except Exception as exc:
            logger.exception("Command %s failed", command.value)
            self._context.reporter.diagnostic(f"Command {command.value} failed: {exc}")

    def _pairing_require(self) -> None:
        """Raise unless the host is paired."""
        if not self._context.pairing.pair_check():
            raise PreconditionNotMet()

    def list_handle(self) -> None:
        """Print the host's app catalog."""
        self._pairing_require()
        for index, entry in enumerate(
            self._context.client.apps_list(self._context.server), start=1
        ):
            self._context.reporter.status(f"{index}. {entry.name}")

    def stream_handle(self) -> None:
        """Resolve the platform and run one streaming attempt."""
        self._pairing_require()
        config = self._context.config
        platform: Platform = self._context.platforms.platform_resolve(config.platform)
        if config.debug_level > 0:
            self._context.reporter.status(f"Beginning streaming on platform {platform.name}")

        orchestrator = SessionOrchestrator(
            client=self._context.client,
            server=self._context.server,
            config=config,
            reporter=self._context.reporter,
            gamepad_counter=self._context.gamepad_counter,
        )
        orchestrator.stream_run(platform)

    def pair_handle(self) -> None:
        """Pair with the host."""
        self._context.pairing.pair()
        self._context.reporter.status("Successfully paired")

    def unpair_handle(self) -> None:
        """Unpair from the host."""
        self._context.pairing.unpair()
        self._context.reporter.status("Successfully unpaired")

    def quitApp_handle(self) -> None:
        """Ask the host to close the running app."""
        self._pairing_require()
        self._context.client.app_quit(self._context.server)
        self._context.reporter.status("Stopped streaming app")

    def idle_handle(self) -> None:
        """Nothing pending; wait one poll interval."""
        if self._poll_interval > 0:
            self._sleep(self._poll_interval)
