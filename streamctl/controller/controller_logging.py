"""
Controller logging configuration helpers.

This module owns runtime logging setup for the controller process, including
version-tagged formatting, optional file handler wiring, and mapping of the
-verbose/-debug flags onto log levels.
"""

from __future__ import annotations

import logging

from streamctl import __version__

__all__ = [
    "logging_setup",
    "logFormatWithVersion_get",
    "logLevel_resolve",
]


def logging_setup(level: str, log_format: str, log_file: str | None) -> None:
    """
    Configure logging handlers and version-tagged format string.

    Args:
        level:
            Effective log level token (for example `INFO` or `DEBUG`).
        log_format:
            Base formatter string.
        log_file:
            Optional log file path.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=logFormatWithVersion_get(log_format),
        handlers=handlers,
    )


def logFormatWithVersion_get(log_format: str) -> str:
    """
    Inject runtime version tag into timestamped log format.

    Args:
        log_format:
            Base formatter string.

    Returns:
        Formatter string with embedded version token.
    """
    return log_format.replace("%(asctime)s", f"%(asctime)s [v{__version__}]")


def logLevel_resolve(debug_level: int, configured_level: str) -> str:
    """
    Resolve the effective log level.

    Args:
        debug_level:
            0 normal, 1 verbose, 2 debug.
        configured_level:
            Level from the config file.

    Returns:
        Log level name.
    """
    if debug_level >= 2:
        return "DEBUG"
    if debug_level == 1:
        return "INFO"
    return configured_level
