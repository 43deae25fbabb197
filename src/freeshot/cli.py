"""Command-line interface for Freeshot.

Entry point flow:
1. Parse arguments; introspection flags exit early
2. Load configuration and set up logging/events
3. Capture the monitor (fatal on failure)
4. Run the interactive lasso window
"""

import argparse
import atexit
import json
import logging
import sys
import time
import uuid
from pathlib import Path
from typing import Optional

from . import __version__
from .capture import capture_monitor
from .config import (
    Config,
    config_defaults,
    config_schema,
    config_to_dict,
    load_config,
    validate_config_file,
)
from .emit import LIFECYCLE_POINTS, configure, emit, event_catalog
from .errors import CaptureError
from .mask import RASTERIZERS
from .output import OutputOptions

log = logging.getLogger(__name__)

OPERATION_TYPE = "freeshot.lasso"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI usage."""
    parser = argparse.ArgumentParser(
        prog="freeshot",
        description="Free-form lasso screenshots for Wayland",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                           # Lasso on the first monitor, copy to clipboard
  %(prog)s --monitor 1               # Lasso on the second monitor
  %(prog)s --monitor HDMI-A-1        # Lasso on a monitor by output name
  %(prog)s --save                    # Also save the crop to the output dir
  %(prog)s --output /tmp/crop.png --json  # Save to a path, print JSON metadata
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"freeshot {__version__}",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )

    # Introspection
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-config-schema",
        action="store_true",
        help="Print configuration schema as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-event-catalog",
        action="store_true",
        help="Print event catalog as JSON and exit",
    )
    parser.add_argument(
        "--print-lifecycle",
        action="store_true",
        help="Print lifecycle points as JSON and exit",
    )

    # Capture and selection
    parser.add_argument(
        "--monitor",
        metavar="N|NAME",
        help="Monitor index or output name (default: 0)",
    )
    parser.add_argument(
        "--rasterizer",
        choices=sorted(RASTERIZERS),
        help="Mask strategy (default: scanline)",
    )
    parser.add_argument(
        "--throttle-ms",
        type=int,
        metavar="MS",
        help="Minimum interval between lasso points (default: 100)",
    )

    # Output options
    parser.add_argument(
        "--output", "-o",
        metavar="PATH",
        help="Also save the selection to this PNG path",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=None,
        help="Also save the selection to the output directory",
    )
    parser.add_argument(
        "--no-clipboard",
        action="store_true",
        help="Do not copy to clipboard",
    )
    parser.add_argument(
        "--no-notification",
        action="store_true",
        help="Do not show notification",
    )
    parser.add_argument(
        "--no-sound",
        action="store_true",
        help="Do not play shutter sound",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Silent mode: no clipboard, no notification, no sound, no stderr events",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print output path to stdout",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON metadata to stdout",
    )

    parser.add_argument(
        "--delay",
        type=int,
        metavar="MS",
        help="Delay before capture in milliseconds",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def config_overrides(args: argparse.Namespace) -> dict:
    """Config keys set explicitly on the command line."""
    return {
        "monitor": args.monitor,
        "rasterizer": args.rasterizer,
        "throttle_ms": args.throttle_ms,
        "save_to_disk": args.save,
    }


def build_output_options(args: argparse.Namespace, config: Config) -> OutputOptions:
    """Build OutputOptions from config and parsed arguments."""
    options = OutputOptions.from_config(
        config,
        output_path=Path(args.output).expanduser() if args.output else None,
        stdout=args.stdout,
        json_output=args.json or args.silent,
        silent=args.silent,
    )
    if args.no_clipboard:
        options.clipboard = False
    if args.no_notification:
        options.notification = False
    if args.no_sound:
        options.sound = False
    return options


def _emit_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _handle_introspection(args: argparse.Namespace) -> Optional[int]:
    config_path = Path(args.config).expanduser() if args.config else None

    if args.print_defaults:
        _emit_json(config_defaults())
        return 0

    if args.print_config_schema:
        _emit_json(config_schema())
        return 0

    if args.validate_config:
        try:
            errors = validate_config_file(config_path)
        except ValueError as e:
            errors = [str(e)]
        if errors:
            for error in errors:
                print(error, file=sys.stderr)
            return 1
        return 0

    if args.print_resolved:
        config = load_config(config_path=config_path, overrides=config_overrides(args))
        _emit_json(config_to_dict(config))
        return 0

    if args.print_event_catalog:
        _emit_json({"catalog": event_catalog()})
        return 0

    if args.print_lifecycle:
        _emit_json({"points": LIFECYCLE_POINTS})
        return 0

    return None


def run_lasso(config: Config, options: OutputOptions) -> int:
    """Capture the configured monitor and run the lasso window."""
    operation_id = str(uuid.uuid4())
    emit("operation.started", {
        "operation_type": OPERATION_TYPE,
        "operation_id": operation_id,
        "monitor": config.monitor,
    })

    try:
        raster = capture_monitor(config.monitor, config=config)
    except CaptureError as e:
        emit("error.handled", {"error_type": "CaptureError", "message": str(e), "stage": "capture"})
        log.error("Capture failed: %s", e)
        return 1

    # Import here to avoid GTK initialization for introspection and failures
    from .ui import run_interactive
    return run_interactive(raster, config, options, operation_id)


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    # Introspection flags short-circuit normal execution
    result = _handle_introspection(parsed_args)
    if result is not None:
        return result

    # Suppress stderr events in silent mode (scripting captures stderr)
    configure("freeshot", stderr=not parsed_args.silent)
    atexit.register(lambda: emit("shutdown", {}))

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    config_path = Path(parsed_args.config).expanduser() if parsed_args.config else None
    config = load_config(config_path=config_path, overrides=config_overrides(parsed_args))

    emit("config.resolved", {
        "config_path": str(config_path or "default"),
        "source": "cli" if config_path else "default",
    })

    if parsed_args.delay:
        time.sleep(parsed_args.delay / 1000.0)

    options = build_output_options(parsed_args, config)
    return run_lasso(config, options)


if __name__ == "__main__":
    sys.exit(main())
