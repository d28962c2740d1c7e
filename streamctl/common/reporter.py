"""
User-facing output channels.

Status lines go to stdout; every failure goes to the diagnostic channel
(stderr) and is mirrored into the log.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

__all__ = ["Reporter"]

logger = logging.getLogger(__name__)


class Reporter:
    """Two-channel console reporter."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None) -> None:
        """
        Initialize reporter.

        Args:
            out:
                Status stream (defaults to the current `sys.stdout`).
            err:
                Diagnostic stream (defaults to the current `sys.stderr`).
        """
        self._out: TextIO | None = out
        self._err: TextIO | None = err

    def status(self, message: str) -> None:
        """Print a normal status line."""
        print(message, file=self._out or sys.stdout, flush=True)

    def diagnostic(self, message: str) -> None:
        """Print a failure on the diagnostic channel."""
        logger.debug("diagnostic: %s", message)
        print(message, file=self._err or sys.stderr, flush=True)
