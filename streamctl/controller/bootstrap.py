"""Controller bootstrap: config, host, backend and context wiring."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Callable, Optional

from streamctl import __version__
from streamctl.common.config import ConfigLoader, SessionConfig
from streamctl.common.errors import (
    ConfigError,
    DiscoveryTimeout,
    ServerConnectionError,
)
from streamctl.common.reporter import Reporter
from streamctl.common.settings import settings
from streamctl.common.types import Command, ServerHandle
from streamctl.controller.commands import (
    CommandSource,
    ConsoleCommandSource,
    ScriptedCommandSource,
    menu_show,
)
from streamctl.controller.context import ControllerContext
from streamctl.controller.controller_logging import logging_setup, logLevel_resolve
from streamctl.controller.dispatcher import CommandDispatcher
from streamctl.gamestream.client import SessionClient
from streamctl.gamestream.discovery import HostDiscoverer, HostLocator
from streamctl.gamestream.library import GameStreamBackend, backend_load
from streamctl.gamestream.pairing import PairingState
from streamctl.platform.gamepads import gamepads_count
from streamctl.platform.registry import defaultRegistry_create

logger = logging.getLogger(__name__)

EXIT_OK: int = 0
EXIT_STARTUP_FAILURE: int = 1

ACTION_COMMANDS: dict[str, Command] = {
    "list": Command.LIST,
    "stream": Command.STREAM,
    "pair": Command.PAIR,
    "unpair": Command.UNPAIR,
    "quit": Command.QUIT_APP,
}


def config_load(
    global_path: Optional[str],
    host_template: Optional[str],
    cli_overrides: dict[str, Any],
    reporter: Reporter,
    discoverer: Optional[HostDiscoverer] = None,
) -> SessionConfig:
    """
    Resolve the session configuration, discovering the host if needed.

    Args:
        global_path: Global config path (default location when None).
        host_template: Host override template (default location when None).
        cli_overrides: Override layer from command-line flags.
        reporter: Output channels.
        discoverer: Optional discovery implementation.

    Returns:
        Session configuration.
    """
    locator = HostLocator(discoverer=discoverer, announce=reporter.status)
    return ConfigLoader.config_resolve(
        global_path=Path(global_path) if global_path else settings.globalConfigPath_get(),
        host_path_template=host_template or settings.hostConfigTemplate_get(),
        cli_overrides=cli_overrides,
        locator=locator,
    )


def server_connect(client: SessionClient, config: SessionConfig, reporter: Reporter) -> ServerHandle:
    """
    Initialize the connection to the configured host.

    Args:
        client: Session client.
        config: Session configuration (address resolved).
        reporter: Output channels.

    Returns:
        Server handle.

    Raises:
        ConfigError: No address was resolved.
        OSError: The key directory cannot be created.
        ServerConnectionError: Host init failed.
    """
    if not config.address:
        raise ConfigError("No host address resolved")
    key_dir: Path = Path(config.key_dir) if config.key_dir else settings.keyDir_get()
    key_dir.mkdir(parents=True, exist_ok=True)

    reporter.status(f"Connect to {config.address}...")
    server: ServerHandle = client.server_init(
        config.address, str(key_dir), config.debug_level, config.unsupported
    )
    if config.debug_level > 0:
        reporter.status(
            f"NVIDIA {server.gpu_type}, GFE {server.gfe_version} "
            f"({server.gs_version}, {server.app_version})"
        )
    logger.info("Connected to %s, paired=%s", server.address, server.paired)
    return server


def context_create(
    config: SessionConfig,
    backend: GameStreamBackend,
    reporter: Reporter,
    gamepad_counter: Callable[[], int] = gamepads_count,
    rng: Optional[random.Random] = None,
) -> ControllerContext:
    """
    Connect to the host and assemble the controller context.

    Args:
        config: Session configuration.
        backend: Loaded GameStream backend.
        reporter: Output channels.
        gamepad_counter: Connected-controller counter.
        rng: Optional PIN random source.

    Returns:
        Controller context.

    Raises:
        ServerConnectionError: Host init failed.
    """
    client = SessionClient(backend.library, backend.transport)
    server: ServerHandle = server_connect(client, config, reporter)
    return ControllerContext(
        config=config,
        server=server,
        client=client,
        pairing=PairingState(client, server, reporter, rng=rng),
        platforms=defaultRegistry_create(getattr(backend, "platforms", ())),
        reporter=reporter,
        gamepad_counter=gamepad_counter,
    )


def commandSource_create(action: Optional[str], reporter: Reporter) -> CommandSource:
    """
    Pick the command source for a run.

    Args:
        action: One-shot CLI action, or None for the interactive loop.
        reporter: Output channels.

    Returns:
        Command source.
    """
    if action is not None:
        return ScriptedCommandSource([ACTION_COMMANDS[action]])
    menu_show(reporter)
    return ConsoleCommandSource()


def controller_run(
    action: Optional[str],
    global_path: Optional[str],
    cli_overrides: dict[str, Any],
    save_path: Optional[str] = None,
    host_template: Optional[str] = None,
    reporter: Optional[Reporter] = None,
    discoverer: Optional[HostDiscoverer] = None,
    backend: Optional[GameStreamBackend] = None,
    source: Optional[CommandSource] = None,
    gamepad_counter: Callable[[], int] = gamepads_count,
) -> int:
    """
    Run the controller from startup to quit.

    Args:
        action: One-shot action name, or None for interactive mode.
        global_path: Global config path override.
        cli_overrides: Override layer from command-line flags.
        save_path: Where to save the effective config, if requested.
        host_template: Host override template override.
        reporter: Output channels.
        discoverer: Discovery implementation override.
        backend: Pre-loaded backend (otherwise imported from config).
        source: Command source override.
        gamepad_counter: Connected-controller counter.

    Returns:
        Process exit status.
    """
    reporter = reporter or Reporter()

    try:
        config: SessionConfig = config_load(
            global_path, host_template, cli_overrides, reporter, discoverer
        )
    except (ConfigError, DiscoveryTimeout) as e:
        reporter.diagnostic(str(e))
        return EXIT_STARTUP_FAILURE

    log_level: str = logLevel_resolve(config.debug_level, config.logging.level)
    logging_setup(log_level, config.logging.format, config.logging.file)
    if config.debug_level > 0:
        reporter.status(f"streamctl {__version__}")

    if save_path:
        ConfigLoader.config_save(config, Path(save_path))

    try:
        loaded: GameStreamBackend = backend or backend_load(config.backend)
        context: ControllerContext = context_create(
            config, loaded, reporter, gamepad_counter=gamepad_counter
        )
    except (ConfigError, ServerConnectionError) as e:
        reporter.diagnostic(str(e))
        return EXIT_STARTUP_FAILURE
    except OSError as e:
        reporter.diagnostic(f"Startup failed: {e}")
        return EXIT_STARTUP_FAILURE

    dispatcher = CommandDispatcher(context, source or commandSource_create(action, reporter))
    return dispatcher.loop_run()
