#!/usr/bin/env python3
"""ICMP Echo (ping) test tool."""

import argparse
import logging
import sys

from client.runner import run_ping
from common.protocol import (
    DEFAULT_INTERVAL_S,
    DEFAULT_PAYLOAD_SIZE,
    DEFAULT_RECV_TIMEOUT_S,
    INTERVAL_ENV,
    MAX_PAYLOAD_SIZE,
    PAYLOAD_SIZE_ENV,
    TIMEOUT_ENV,
    env_default,
)

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    count = int(value)
    if count < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {count}")
    return count


def _non_negative_float(value: str) -> float:
    seconds = float(value)
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {seconds}")
    return seconds


def _payload_size(value: str) -> int:
    size = int(value)
    if not 0 <= size <= MAX_PAYLOAD_SIZE:
        raise argparse.ArgumentTypeError(f"must be between 0 and {MAX_PAYLOAD_SIZE}, got {size}")
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Send ICMP Echo Requests to a host and report round-trip times",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s 192.0.2.1                   Ping until Ctrl-C
  %(prog)s -c 5 example.com            Send 5 probes, then print statistics
  %(prog)s -i 0.2 -W 1 -s 128 host     Faster probes, longer timeout, bigger payload

Raw ICMP sockets need root or CAP_NET_RAW.
""",
    )
    parser.add_argument("host", help="Target IPv4 address or host name")
    parser.add_argument(
        "-c",
        "--count",
        type=_positive_int,
        default=None,
        help="Stop after this many probes (default: run until interrupted)",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=_non_negative_float,
        default=env_default(INTERVAL_ENV, DEFAULT_INTERVAL_S),
        help=f"Seconds between probes (default: {DEFAULT_INTERVAL_S}, envvar {INTERVAL_ENV})",
    )
    parser.add_argument(
        "-W",
        "--timeout",
        type=_non_negative_float,
        default=env_default(TIMEOUT_ENV, DEFAULT_RECV_TIMEOUT_S),
        help=f"Seconds to wait for each reply (default: {DEFAULT_RECV_TIMEOUT_S}, envvar {TIMEOUT_ENV})",
    )
    parser.add_argument(
        "-s",
        "--size",
        type=_payload_size,
        default=env_default(PAYLOAD_SIZE_ENV, DEFAULT_PAYLOAD_SIZE),
        help=f"Payload bytes, 0-{MAX_PAYLOAD_SIZE} (default: {DEFAULT_PAYLOAD_SIZE}, envvar {PAYLOAD_SIZE_ENV})",
    )
    parser.add_argument(
        "--stop-on-anomaly",
        action="store_true",
        help="Stop probing after an unexpected ICMP reply",
    )
    parser.add_argument(
        "--loose-match",
        action="store_true",
        help="Accept any Echo Reply, ignoring identifier and sequence",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    logger.debug(f"Arguments: {vars(args)}")

    return run_ping(
        args.host,
        count=args.count,
        payload_size=args.size,
        interval_s=args.interval,
        recv_timeout_s=args.timeout,
        stop_on_anomaly=args.stop_on_anomaly,
        strict_match=not args.loose_match,
    )


if __name__ == "__main__":
    sys.exit(main())
