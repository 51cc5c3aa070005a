"""
Command line entry point.

    relaywatch run [--config PATH] [--debug]
    relaywatch watch [URL] [--count N]
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

# Set UTF-8 encoding for output before anything logs (fixes symbol rendering)
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

from relaywatch import __version__
from relaywatch.models.enums import LogLevel
from relaywatch.models.errors import ConfigError
from relaywatch.utils.logger import configure_logger, get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)

EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="relaywatch", description="Relay node supervisor")
    parser.add_argument("--version", action="version", version=f"relaywatch {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="start the relay node and the status server")
    run.add_argument("--config", help="path to relaywatch.yaml")
    run.add_argument("--debug", action="store_true", help="log at DEBUG level")

    watch = sub.add_parser("watch", help="print status snapshots from a running supervisor")
    watch.add_argument("url", nargs="?", default="http://127.0.0.1:8765")
    watch.add_argument("--channel", default="ipc-update")
    watch.add_argument("--count", type=int, default=None, help="stop after N snapshots")

    return parser


def _run(args) -> int:
    from relaywatch.app import run_supervisor
    from relaywatch.managers.config_manager import ConfigManager

    config = ConfigManager(args.config).load()
    level = LogLevel.DEBUG if args.debug else LogLevel[config.logging.level.upper()]
    configure_logger(level, use_colors=config.logging.colors)

    log.info(f"Starting relaywatch {__version__}...")
    try:
        return asyncio.run(run_supervisor(config))
    except ConfigError as ex:
        log.error("Invalid configuration", error=str(ex))
        return EXIT_CONFIG_ERROR


def _watch(args) -> int:
    from relaywatch.client import watch_status

    def _print(snapshot):
        print(json.dumps(snapshot), flush=True)

    try:
        asyncio.run(watch_status(args.url, _print, channel=args.channel, count=args.count))
    except KeyboardInterrupt:
        pass
    except Exception as ex:
        log.error(f"watch failed: {type(ex).__name__}: {ex}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "run":
        sys.exit(_run(args))
    sys.exit(_watch(args))


if __name__ == "__main__":
    main()
