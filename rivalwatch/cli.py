"""
Command-line entry point.

Usage:
    python -m rivalwatch
    python -m rivalwatch --settings appsettings.json --ahead 2 --behind 2
    python -m rivalwatch --port 9000 --verbose
"""

import argparse
import asyncio
import logging
import sys

from rivalwatch.config import SettingsError, load_settings

logger = logging.getLogger('rivalwatch')


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rivalwatch",
        description="Track same-class rivals in iRacing and broadcast catch-up projections over WebSocket.",
    )
    parser.add_argument("--settings", help="Path to a JSON settings file")
    parser.add_argument("--laps", type=int, dest="laps_to_consider", help="Laps used for the pace average")
    parser.add_argument("--decay", type=float, dest="weight_decay_factor", help="Weight decay per lap of age (0-1]")
    parser.add_argument("--ahead", type=int, dest="num_opponents_ahead", help="Rivals shown ahead")
    parser.add_argument("--behind", type=int, dest="num_opponents_behind", help="Rivals shown behind")
    parser.add_argument("--interval-ms", type=int, dest="update_interval_ms", help="Tick period in milliseconds")
    parser.add_argument("--host", dest="websocket_host", help="WebSocket bind address")
    parser.add_argument("--port", type=int, dest="websocket_port", help="WebSocket port")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(asctime)s] [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        settings = load_settings(args.settings).replace(
            laps_to_consider=args.laps_to_consider,
            weight_decay_factor=args.weight_decay_factor,
            num_opponents_ahead=args.num_opponents_ahead,
            num_opponents_behind=args.num_opponents_behind,
            update_interval_ms=args.update_interval_ms,
            websocket_host=args.websocket_host,
            websocket_port=args.websocket_port,
        )
    except SettingsError as e:
        logger.error(f"❌ {e}")
        return 2

    logger.info("=" * 50)
    logger.info("iRacing Rival Tracker")
    logger.info("=" * 50)
    logger.info(f"WebSocket port: {settings.websocket_port}")
    logger.info(f"Update interval: {settings.update_interval_ms}ms")
    logger.info(f"Pace window: {settings.laps_to_consider} laps (decay {settings.weight_decay_factor})")
    logger.info(f"Rivals: {settings.num_opponents_ahead} ahead / {settings.num_opponents_behind} behind")
    logger.info("=" * 50)

    from rivalwatch.irsdk_source import IRacingSnapshotSource
    from rivalwatch.service import run

    try:
        asyncio.run(run(settings, IRacingSnapshotSource()))
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    return 0


if __name__ == "__main__":
    sys.exit(main())
