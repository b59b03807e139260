#!/usr/bin/env python3
"""Replay a recorded AIS log onto a ZMQ PUB endpoint with original timing.

Examples:
  # Statistics only
  python -m main_player -f logs/DonneesBrutesAIS.bin --info

  # Real time, subscribers connect to tcp://<host>:6100
  python -m main_player -f logs/day1.nm4 -e tcp://*:6100

  # 20x faster, "/" separated topics, repeat sentences dropped
  python -m main_player -f logs/day1.nm4 -e tcp://*:6100 -r 20 -s / --dedupe
"""
from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import List, Optional

from config import (
    DEDUPE_DEFAULT,
    DEFAULT_FILE,
    DEFAULT_RATE,
    DEFAULT_SEPARATOR,
    DEFAULT_TOPIC,
    LOG_LEVEL,
    PUB_BIND,
    PUB_ENDPOINT,
)
from network.publisher_sink import LogOnlySink, ZmqPublisherSink
from playback.dispatch import DispatchAdapter
from playback.filters import suppress_consecutive_duplicates
from playback.scheduler import PlaybackScheduler
from recording.ais_log import detect_format, read_packets, write_bin
from recording.file_stats import compute_file_stats, print_file_stats

logger = logging.getLogger("main_player")


def parse_rate(raw) -> float:
    try:
        rate = float(str(raw).strip())
    except ValueError:
        raise ValueError(f"Invalid playback rate: {raw}") from None
    if not math.isfinite(rate) or rate <= 0:
        raise ValueError(f"Invalid playback rate: {raw}")
    return rate


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="AIS log player (recorded log -> ZMQ PUB)")
    ap.add_argument("-f", "--file", default=DEFAULT_FILE, help="Path to AIS file (.bin or .nm4)")
    ap.add_argument(
        "-e", "--endpoint",
        default=PUB_ENDPOINT or None,
        help="ZMQ PUB endpoint, e.g. tcp://*:6100 (mandatory unless --info/--dry-run/--convert)",
    )
    ap.add_argument(
        "--connect",
        action="store_true",
        default=not PUB_BIND,
        help="connect() to the endpoint (XSUB proxy) instead of bind()",
    )
    ap.add_argument("-t", "--topic", default=DEFAULT_TOPIC, help="Topic prefix; messages go to <topic>/<mmsi>")
    ap.add_argument(
        "-s", "--separator",
        default=DEFAULT_SEPARATOR,
        help='Topic separator on the wire: "." or "/"',
    )
    ap.add_argument("-r", "--rate", default=DEFAULT_RATE, help="Playback rate multiplier (1 = real time)")
    ap.add_argument("-i", "--info", action="store_true", help="Show statistics about the AIS file and exit")
    ap.add_argument(
        "--dedupe",
        action="store_true",
        default=DEDUPE_DEFAULT,
        help="Drop back-to-back repeats of the same timestamped sentence",
    )
    ap.add_argument("--dry-run", action="store_true", help="Replay with timing but only log what would be sent")
    ap.add_argument("--convert", metavar="OUT_BIN", default=None, help="Write the parsed packets as a .bin log and exit")
    ap.add_argument("--debug", action="store_true", help="Enable debug logs")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    _setup_logging("DEBUG" if args.debug else LOG_LEVEL)

    try:
        rate = parse_rate(args.rate)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    if not args.endpoint and not (args.info or args.dry_run or args.convert):
        logger.error("endpoint is mandatory unless --info, --dry-run or --convert is used.")
        ap.print_help(sys.stderr)
        return 1

    try:
        fmt = detect_format(args.file)
        packets = read_packets(args.file, fmt)
    except OSError as e:
        logger.error("Cannot read %s: %s", args.file, e)
        return 1

    if args.info:
        print_file_stats(compute_file_stats(packets, path=args.file, fmt=fmt))
        return 0

    if args.convert:
        out = write_bin(args.convert, packets)
        logger.info("Wrote %d packets to %s", len(packets), out)
        return 0

    logger.info("Parsed %d AIS packets from file %s", len(packets), args.file)

    if args.dry_run:
        sink = LogOnlySink(separator=args.separator)
        label = "DRY-RUN"
    else:
        sink = ZmqPublisherSink(args.endpoint, bind=not args.connect, separator=args.separator)
        label = "ZMQ"

    try:
        if isinstance(sink, ZmqPublisherSink):
            sink.open()

        adapter = DispatchAdapter(sink, args.topic, label=label)
        adapter.send_clear()

        on_send = suppress_consecutive_duplicates(adapter) if args.dedupe else adapter
        sched = PlaybackScheduler(packets, on_send, rate)

        try:
            sched.start(threaded=True)
            # Keep the main thread responsive to Ctrl-C.
            while not sched.join(timeout=0.25):
                pass
        except KeyboardInterrupt:
            logger.info("stopping…")
            sched.stop()
            sched.join(timeout=2.0)

        result = sched.result
        if result is not None:
            logger.info(
                "sent=%d skipped=%d failed=%d (not AIS: %d)",
                adapter.sent, adapter.skipped, adapter.failed, result.skipped,
            )
        logger.info("Playback complete.")
        return 0
    except Exception as e:
        logger.error("Error: %s", e)
        logger.debug("details", exc_info=True)
        return 1
    finally:
        sink.close()


if __name__ == "__main__":
    sys.exit(main())
