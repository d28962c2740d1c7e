"""
Command sources polled by the dispatcher.

A source returns exactly one `Command` per poll and `Command.NONE` when
nothing is pending; it never blocks.
"""

from __future__ import annotations

import logging
import select
import sys
from collections import deque
from typing import Iterable, Protocol, TextIO

from streamctl.common.reporter import Reporter
from streamctl.common.types import Command

logger = logging.getLogger(__name__)

__all__ = [
    "CommandSource",
    "ScriptedCommandSource",
    "ConsoleCommandSource",
    "command_parse",
    "menu_show",
]

COMMAND_TOKENS: dict[str, Command] = {
    "a": Command.LIST,
    "list": Command.LIST,
    "b": Command.STREAM,
    "stream": Command.STREAM,
    "x": Command.PAIR,
    "pair": Command.PAIR,
    "y": Command.UNPAIR,
    "unpair": Command.UNPAIR,
    "-": Command.QUIT_APP,
    "quitapp": Command.QUIT_APP,
    "+": Command.QUIT,
    "q": Command.QUIT,
    "exit": Command.QUIT,
}


class CommandSource(Protocol):
    """Non-blocking command producer."""

    def command_poll(self) -> Command:
        """Return the next pending command or `Command.NONE`."""
        ...


def command_parse(token: str) -> Command:
    """
    Map one console token to a command.

    Args:
        token:
            Raw user input (case and surrounding whitespace ignored).

    Returns:
        Matching command, or `Command.NONE` when unrecognized.
    """
    normalized: str = token.strip().lower()
    if not normalized:
        return Command.NONE
    command: Command | None = COMMAND_TOKENS.get(normalized)
    if command is None:
        logger.warning("Unknown command '%s'", normalized)
        return Command.NONE
    return command


def menu_show(reporter: Reporter) -> None:
    """Print the interactive key menu."""
    reporter.status("")
    reporter.status("a: list")
    reporter.status("b: stream")
    reporter.status("x: pair")
    reporter.status("y: unpair")
    reporter.status("-: quit running app")
    reporter.status("+: quit")
    reporter.status("")


class ScriptedCommandSource:
    """Replays a fixed command sequence, then asks the loop to quit."""

    def __init__(self, commands: Iterable[Command]) -> None:
        self._pending: deque[Command] = deque(commands)

    def command_poll(self) -> Command:
        """Return the next scripted command, `QUIT` once exhausted."""
        if not self._pending:
            return Command.QUIT
        return self._pending.popleft()


class ConsoleCommandSource:
    """Reads line commands from a terminal without blocking the loop."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """
        Initialize console source.

        Args:
            stream:
                Input stream (defaults to stdin). Must expose `fileno()`.
        """
        self._stream: TextIO = stream or sys.stdin

    def command_poll(self) -> Command:
        """
        Return a command if a full line is waiting.

        End of input is treated as `QUIT`.
        """
        readable, _, _ = select.select([self._stream], [], [], 0)
        if not readable:
            return Command.NONE
        line: str = self._stream.readline()
        if line == "":
            return Command.QUIT
        return command_parse(line)
