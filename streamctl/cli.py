"""streamctl command-line interface"""

import argparse
import sys
from typing import Any, NoReturn, Optional

from streamctl import __version__

ACTIONS: list[str] = ["pair", "unpair", "stream", "list", "quit", "map", "help"]

RESOLUTION_PRESETS: dict[str, tuple[int, int]] = {
    "res_720": (1280, 720),
    "res_1080": (1920, 1080),
    "res_4k": (3840, 2160),
}

EPILOG: str = (
    "Use Ctrl+Alt+Shift+Q or Play+Back+LeftShoulder+RightShoulder "
    "to exit streaming session"
)


def parser_create() -> argparse.ArgumentParser:
    """
    Build the argument parser

    Returns:
        Configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="streamctl",
        description="Pair with a GameStream host, list its apps and stream them",
        epilog=EPILOG,
    )

    parser.add_argument("--version", action="version", version=f"streamctl {__version__}")

    parser.add_argument(
        "action",
        nargs="?",
        choices=ACTIONS,
        default=None,
        help="pair, unpair, stream, list, quit (running app), map, help. "
             "Omit for the interactive menu.",
    )
    parser.add_argument(
        "host", nargs="?", default=None, help="Host address (skips discovery)"
    )

    # Global options
    parser.add_argument(
        "-config", "--config", type=str, default=None,
        help="Load configuration file (default: ~/.config/streamctl/streamctl.yml)",
    )
    parser.add_argument(
        "-save", "--save", type=str, default=None, help="Save effective configuration file"
    )
    parser.add_argument(
        "-hostconfig", "--hostconfig", type=str, default=None,
        help="Host override path template containing {address}",
    )
    parser.add_argument(
        "-verbose", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "-debug", "--debug", action="store_true", help="Enable verbose and debug output"
    )

    # Streaming options
    resolution = parser.add_mutually_exclusive_group()
    resolution.add_argument(
        "-720", "--720", dest="res_720", action="store_true",
        help="Use 1280x720 resolution [default]",
    )
    resolution.add_argument(
        "-1080", "--1080", dest="res_1080", action="store_true",
        help="Use 1920x1080 resolution",
    )
    resolution.add_argument(
        "-4k", "--4k", dest="res_4k", action="store_true", help="Use 3840x2160 resolution"
    )
    parser.add_argument("-width", "--width", type=int, default=None, help="Horizontal resolution")
    parser.add_argument("-height", "--height", type=int, default=None, help="Vertical resolution")
    parser.add_argument("-fps", "--fps", type=int, default=None, help="Frames per second")
    parser.add_argument(
        "-bitrate", "--bitrate", type=int, default=None, help="Bitrate in Kbps"
    )
    parser.add_argument(
        "-packetsize", "--packetsize", type=int, default=None,
        help="Maximum packetsize in bytes",
    )
    parser.add_argument(
        "-codec", "--codec", type=str, default=None,
        choices=["auto", "h264", "h265", "hevc"],
        help="Select used codec (default auto)",
    )
    parser.add_argument(
        "-remote", "--remote", action="store_true", help="Enable remote optimizations"
    )
    parser.add_argument("-app", "--app", type=str, default=None, help="Name of app to stream")
    parser.add_argument(
        "-nosops", "--nosops", action="store_true",
        help="Don't allow the host to modify game settings",
    )
    parser.add_argument(
        "-localaudio", "--localaudio", action="store_true", help="Play audio locally"
    )
    parser.add_argument(
        "-surround", "--surround", action="store_true", help="Stream 5.1 surround sound"
    )
    parser.add_argument(
        "-keydir", "--keydir", type=str, default=None,
        help="Load encryption keys from directory",
    )
    parser.add_argument(
        "-mapping", "--mapping", type=str, default=None,
        help="Use file as gamepad mappings configuration file",
    )
    parser.add_argument(
        "-platform", "--platform", type=str, default=None,
        help="Platform used for audio and video (default auto)",
    )
    parser.add_argument(
        "-audio", "--audio", type=str, default=None, help="Audio output device"
    )
    parser.add_argument(
        "-backend", "--backend", type=str, default=None,
        help="GameStream backend as package.module:attribute",
    )
    parser.add_argument(
        "-unsupported", "--unsupported", action="store_true",
        help="Try streaming if host version or options are unsupported",
    )

    # WM options
    parser.add_argument(
        "-windowed", "--windowed", action="store_true", help="Display screen in a window"
    )

    return parser


def arguments_parse(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed CLI arguments.
    """
    return parser_create().parse_args(argv)


def debugLevel_get(args: argparse.Namespace) -> Optional[int]:
    """
    Resolve -verbose/-debug into a debug level.

    Args:
        args: Parsed CLI args.

    Returns:
        2 for debug, 1 for verbose, None when neither is set.
    """
    if args.debug:
        return 2
    if args.verbose:
        return 1
    return None


def cliOverrides_build(args: argparse.Namespace) -> dict[str, Any]:
    """
    Translate parsed flags into the highest-precedence config layer.

    Only flags the user actually passed appear in the layer.

    Args:
        args: Parsed CLI args.

    Returns:
        Raw override layer in config-file key layout.
    """
    overrides: dict[str, Any] = {}
    stream: dict[str, Any] = {}

    for preset, (width, height) in RESOLUTION_PRESETS.items():
        if getattr(args, preset):
            stream["width"] = width
            stream["height"] = height
    for key in ("width", "height", "fps", "bitrate", "packetsize"):
        value = getattr(args, key)
        if value is not None:
            stream[key] = value
    if args.remote:
        stream["remote"] = True
    if args.surround:
        stream["surround"] = True
    if stream:
        overrides["stream"] = stream

    optional_values: dict[str, Optional[str]] = {
        "address": args.host,
        "app": args.app,
        "codec": args.codec,
        "keydir": args.keydir,
        "mapping": args.mapping,
        "platform": args.platform,
        "audio_device": args.audio,
        "backend": args.backend,
    }
    for key, value in optional_values.items():
        if value is not None:
            overrides[key] = value

    if args.nosops:
        overrides["sops"] = False
    if args.localaudio:
        overrides["localaudio"] = True
    if args.unsupported:
        overrides["unsupported"] = True
    if args.windowed:
        overrides["fullscreen"] = False

    debug_level: Optional[int] = debugLevel_get(args)
    if debug_level is not None:
        overrides["debug_level"] = debug_level

    return overrides


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """
    Main entry point for the streamctl command

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    args = arguments_parse(argv)

    if args.action == "help":
        parser_create().print_help()
        sys.exit(0)
    if args.action == "map":
        print("Gamepad mapping is not supported by streamctl", file=sys.stderr)
        sys.exit(1)

    from streamctl.controller.bootstrap import controller_run

    try:
        status: int = controller_run(
            action=args.action,
            global_path=args.config,
            cli_overrides=cliOverrides_build(args),
            save_path=args.save,
            host_template=args.hostconfig,
        )
        sys.exit(status)

    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
