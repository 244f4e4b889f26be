"""Client runner for ping-testkit.

Contains run_ping() which resolves the target, opens the ICMP transport,
runs the echo session until interrupted (or count probes), prints the
summary and returns an exit code.
"""

import logging
from enum import IntEnum

from client.interrupt import InterruptListener
from common.packet import EncodingError, make_payload
from common.protocol import (
    DEFAULT_INTERVAL_S,
    DEFAULT_PAYLOAD_SIZE,
    DEFAULT_RECV_TIMEOUT_S,
    IcmpTransport,
)
from common.report import StartupReport
from common.transport import RawIcmpTransport, TransportError, resolve_address
from session.exchange import EchoSession
from session.report import OutcomeReport, SummaryReport
from session.result import EchoOutcome, SessionStats

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Exit codes for ping operations."""

    SUCCESS = 0  # Session ended cleanly, summary printed
    PROTOCOL_ANOMALY = 1  # Unexpected ICMP message received
    # 2 is argparse's usage error
    STARTUP_FAILED = 3  # Bad payload size, resolution or socket open failure


def _print_outcome(outcome: EchoOutcome) -> None:
    OutcomeReport(outcome).print()


def finish_session(target: str, stats: SessionStats) -> int:
    """Print the final report and map the session to an exit code."""
    report = SummaryReport(target=target, stats=stats)
    report.print()
    if not report.success():
        logger.error("Session tainted by an unexpected ICMP reply")
        return ExitCode.PROTOCOL_ANOMALY
    return ExitCode.SUCCESS


def run_session(
    transport: IcmpTransport,
    target: str,
    address: str,
    listener: InterruptListener,
    count: int | None = None,
    payload_size: int = DEFAULT_PAYLOAD_SIZE,
    interval_s: float = DEFAULT_INTERVAL_S,
    recv_timeout_s: float = DEFAULT_RECV_TIMEOUT_S,
    stop_on_anomaly: bool = False,
    strict_match: bool = True,
    identifier: int | None = None,
) -> int:
    """Run the echo session on an open transport. Returns exit code."""
    try:
        payload = make_payload(payload_size)
    except (EncodingError, ValueError) as e:
        logger.error(f"Invalid payload size {payload_size}: {e}")
        StartupReport(target=target, ready=False, error=e).print()
        return ExitCode.STARTUP_FAILED

    StartupReport(target=target, ready=True, address=address, payload_size=payload_size).print()

    session = EchoSession(
        transport,
        address,
        identifier=identifier,
        payload=payload,
        recv_timeout_s=recv_timeout_s,
        interval_s=interval_s,
        stop_on_anomaly=stop_on_anomaly,
        strict_match=strict_match,
        on_outcome=_print_outcome,
    )
    stats = session.run(listener.stop, count=count)
    if listener.interrupted:
        logger.info("Interrupted, printing summary")
    return finish_session(target, stats)


def run_ping(
    target: str,
    count: int | None = None,
    payload_size: int = DEFAULT_PAYLOAD_SIZE,
    interval_s: float = DEFAULT_INTERVAL_S,
    recv_timeout_s: float = DEFAULT_RECV_TIMEOUT_S,
    stop_on_anomaly: bool = False,
    strict_match: bool = True,
) -> int:
    """Run ping against target. Returns exit code.

    The client:
    - Resolves the target and opens a raw ICMP socket (fatal on failure)
    - Probes once per interval until SIGINT/SIGTERM or count probes
    - Prints the summary and returns an exit code based on the session
    """
    try:
        address = resolve_address(target)
    except TransportError as e:
        logger.error(f"Failed to resolve target: {e}")
        StartupReport(target=target, ready=False, error=e).print()
        return ExitCode.STARTUP_FAILED

    transport = RawIcmpTransport()
    try:
        transport.open()
    except TransportError as e:
        logger.error(f"Failed to open ICMP socket: {e}")
        StartupReport(target=target, ready=False, error=e).print()
        return ExitCode.STARTUP_FAILED

    try:
        with InterruptListener() as listener:
            return run_session(
                transport,
                target,
                address,
                listener,
                count=count,
                payload_size=payload_size,
                interval_s=interval_s,
                recv_timeout_s=recv_timeout_s,
                stop_on_anomaly=stop_on_anomaly,
                strict_match=strict_match,
            )
    finally:
        transport.close()
