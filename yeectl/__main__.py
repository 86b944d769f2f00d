"""
yeectl CLI - send a single command to a bulb.

Usage:
    python -m yeectl --host 192.168.1.20 on
    python -m yeectl --host 192.168.1.20 ct 2700
    python -m yeectl --host 192.168.1.20 --port 55443 toggle
    python -m yeectl --config bulb.yaml rgb 255 80 0
"""

import argparse
import logging
import sys
from typing import Any, List, Optional

from yeectl.config import Config, load_config
from yeectl.network.transport import parse_address
from yeectl.protocol.errors import BulbError
from yeectl.protocol.messages import Effect, Response
from yeectl.session import BulbSession


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt or "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_raw_param(value: str) -> Any:
    """Interpret a raw command-line param as int, then float, else string."""
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    return value


def run_action(bulb: BulbSession, args: argparse.Namespace) -> Response:
    """Dispatch the parsed action to the session."""
    effect = Effect(args.effect) if args.effect else None
    transition = {"effect": effect, "duration": args.duration}

    if args.action == "on":
        return bulb.turn_on(**transition)
    if args.action == "off":
        return bulb.turn_off(**transition)
    if args.action == "toggle":
        return bulb.toggle()
    if args.action == "ct":
        return bulb.color_temp(args.kelvin, **transition)
    if args.action == "rgb":
        return bulb.rgb(args.red, args.green, args.blue, **transition)
    if args.action == "hsv":
        return bulb.hsv(args.hue, args.saturation, **transition)
    if args.action == "bright":
        return bulb.brightness(args.percent, **transition)
    if args.action == "raw":
        return bulb.send(args.method, *[parse_raw_param(p) for p in args.params])
    raise ValueError(f"unknown action: {args.action}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yeectl",
        description="Send a control command to a Yeelight-style bulb",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m yeectl --host 10.0.0.5 on              Switch on
    python -m yeectl --host 10.0.0.5 bright 40       Dim to 40%
    python -m yeectl --host 10.0.0.5 raw toggle      Send a raw command
        """,
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Bulb address, host or host:port (overrides config)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Control port when --host has none (overrides config)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Socket timeout in seconds (overrides config)",
    )
    parser.add_argument(
        "--effect",
        choices=[e.value for e in Effect],
        help="Transition effect",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=30,
        help="Transition duration in milliseconds (default: 30)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config)",
    )

    actions = parser.add_subparsers(dest="action", required=True)
    actions.add_parser("on", help="Switch on")
    actions.add_parser("off", help="Switch off")
    actions.add_parser("toggle", help="Toggle power")

    ct = actions.add_parser("ct", help="Set color temperature")
    ct.add_argument("kelvin", type=int)

    rgb = actions.add_parser("rgb", help="Set RGB color")
    rgb.add_argument("red", type=int)
    rgb.add_argument("green", type=int)
    rgb.add_argument("blue", type=int)

    hsv = actions.add_parser("hsv", help="Set hue and saturation")
    hsv.add_argument("hue", type=int)
    hsv.add_argument("saturation", type=int)

    bright = actions.add_parser("bright", help="Set brightness")
    bright.add_argument("percent", type=int)

    raw = actions.add_parser("raw", help="Send a raw command")
    raw.add_argument("method")
    raw.add_argument("params", nargs="*")

    return parser


def connect(config: Config, args: argparse.Namespace) -> BulbSession:
    """
    Open a session from config, with command-line overrides applied.

    Host, port and timeout come from the command line first and the config
    second. A port inside --host wins over --port.
    """
    bulb = config.bulb
    port = args.port if args.port is not None else bulb.port
    if args.host:
        host, port = parse_address(args.host, port)
    else:
        host = bulb.host
    timeout = args.timeout if args.timeout is not None else bulb.timeout
    return BulbSession.from_config(
        bulb.model_copy(update={"host": host, "port": port, "timeout": timeout})
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(args.log_level or config.logging.level, config.logging.format)
    logger = logging.getLogger(__name__)

    if not args.host and not config.bulb.host:
        parser.error("no bulb host given (use --host or set bulb.host in the config)")

    try:
        with connect(config, args) as bulb:
            response = run_action(bulb, args)
    except BulbError as e:
        logger.error(f"Command failed: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid command: {e}")
        return 1

    logger.info(f"Bulb replied: {', '.join(response.result)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
