"""Echo session loop for ping-testkit.

Contains:
- EchoSession: Sends Echo Requests one at a time, correlates replies,
  measures RTT and accumulates SessionStats
"""

import logging
import os
import time
from collections.abc import Callable

from common.packet import (
    EchoReply,
    EncodingError,
    build_echo_request,
    parse_echo_reply,
    quoted_request,
    verify_checksum,
)
from common.protocol import (
    DEFAULT_INTERVAL_S,
    DEFAULT_RECV_TIMEOUT_S,
    ICMP_ERROR_TYPES,
    SEQUENCE_MODULO,
    TRACE,
    UINT16_MAX,
    IcmpTransport,
    IcmpType,
    StopSignal,
)
from common.transport import ReceiveTimeout, TransportError
from session.result import (
    EchoOutcome,
    SendFailure,
    SessionStats,
    Success,
    Timeout,
    UnexpectedReply,
)

logger = logging.getLogger(__name__)


def default_identifier() -> int:
    """Process-scoped 16-bit identifier."""
    return os.getpid() & UINT16_MAX


class EchoSession:
    """One ping session against a single resolved address.

    Probes are strictly sequential: a request is sent, replies are read until
    one is accepted or the receive deadline passes, then the session sleeps
    for the interval. No two requests are ever outstanding.

    With strict_match (the default) an Echo Reply is only accepted when its
    identifier and sequence match the outstanding request; otherwise any Echo
    Reply is accepted. ICMP error messages are likewise only attributed to
    the probe when the request they quote carries our identifier and the
    outstanding sequence. Messages that are not ours are skipped and reading
    continues until the deadline.
    """

    def __init__(
        self,
        transport: IcmpTransport,
        address: str,
        identifier: int | None = None,
        payload: bytes = b"",
        recv_timeout_s: float = DEFAULT_RECV_TIMEOUT_S,
        interval_s: float = DEFAULT_INTERVAL_S,
        stop_on_anomaly: bool = False,
        strict_match: bool = True,
        on_outcome: Callable[[EchoOutcome], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.address = address
        self.identifier = default_identifier() if identifier is None else identifier
        self.payload = payload
        self.recv_timeout_s = recv_timeout_s
        self.interval_s = interval_s
        self.stop_on_anomaly = stop_on_anomaly
        self.strict_match = strict_match
        self.on_outcome = on_outcome
        self.clock = clock
        self.sequence = 0
        self.stats = SessionStats()

    def _next_sequence(self) -> int:
        self.sequence = (self.sequence + 1) % SEQUENCE_MODULO
        return self.sequence

    def _accepts(self, reply: EchoReply, sequence: int) -> bool:
        if not self.strict_match:
            return True
        return reply.identifier == self.identifier and reply.sequence == sequence

    def _quotes_outstanding(self, error: EchoReply, sequence: int) -> bool:
        if not self.strict_match:
            return True
        quoted = quoted_request(error)
        return (
            quoted is not None
            and quoted.type == IcmpType.ECHO_REQUEST
            and quoted.identifier == self.identifier
            and quoted.sequence == sequence
        )

    def _await_reply(self, sequence: int, sent_at: float) -> EchoOutcome:
        """Read until an acceptable reply arrives or the deadline passes."""
        deadline = sent_at + self.recv_timeout_s

        while True:
            try:
                data, source = self.transport.receive(deadline)
            except ReceiveTimeout:
                logger.debug(f"Timeout waiting for reply to icmp_seq={sequence}")
                return Timeout(sequence)
            except TransportError as e:
                logger.warning(f"Receive failed for icmp_seq={sequence}: {e}")
                return Timeout(sequence)

            try:
                reply = parse_echo_reply(data)
            except EncodingError as e:
                logger.debug(f"Ignoring malformed message from {source}: {e}")
                continue

            if reply.type == IcmpType.ECHO_REQUEST:
                # Our own request looped back (pinging a local address)
                logger.log(TRACE, f"Ignoring echo request from {source}")
                continue

            if not verify_checksum(data):
                logger.warning(f"Dropping reply from {source} with bad checksum 0x{reply.checksum:04x}")
                continue

            if reply.is_echo_reply:
                if not self._accepts(reply, sequence):
                    logger.debug(
                        f"Ignoring echo reply id={reply.identifier} seq={reply.sequence} "
                        f"(expected id={self.identifier} seq={sequence})"
                    )
                    continue
                rtt_ms = (self.clock() - sent_at) * 1000
                return Success(sequence, rtt_ms, len(data), source)

            if reply.type in ICMP_ERROR_TYPES and not self._quotes_outstanding(reply, sequence):
                logger.debug(
                    f"Ignoring ICMP type {reply.type} code {reply.code} from {source} "
                    f"not quoting icmp_seq={sequence}"
                )
                continue

            logger.error(
                f"Unexpected ICMP type {reply.type} code {reply.code} from {source} "
                f"for icmp_seq={sequence}"
            )
            return UnexpectedReply(sequence, reply.type, reply.code, source)

    def probe(self) -> EchoOutcome:
        """Send one Echo Request and classify the exchange.

        The sequence advances exactly once per call, whatever the outcome.
        """
        sequence = self._next_sequence()
        packet = build_echo_request(self.identifier, sequence, self.payload)

        sent_at = self.clock()
        try:
            written = self.transport.send(packet, self.address)
        except TransportError as e:
            outcome: EchoOutcome = SendFailure(sequence, e)
        else:
            if written != len(packet):
                outcome = SendFailure(
                    sequence, TransportError(f"Short write: {written}/{len(packet)} bytes")
                )
            else:
                self.stats.total_sent += 1
                logger.log(TRACE, f"Sent icmp_seq={sequence} ({len(packet)} bytes)")
                outcome = self._await_reply(sequence, sent_at)

        if isinstance(outcome, SendFailure):
            logger.warning(f"Send failed for icmp_seq={sequence}: {outcome.error}")

        self.stats.record(outcome)
        return outcome

    def run(self, stop: StopSignal, count: int | None = None) -> SessionStats:
        """Probe until stop is set, count probes were made, or an anomaly stops the session.

        The inter-probe sleep waits on stop, so an interrupt is observed
        without waiting out the interval.

        Returns:
            Snapshot of the session statistics.
        """
        logger.info(
            f"Starting echo session to {self.address} (id=0x{self.identifier:04x}, "
            f"timeout={self.recv_timeout_s}s, interval={self.interval_s}s)"
        )
        probes = 0

        while not stop.is_set():
            outcome = self.probe()
            probes += 1
            if self.on_outcome is not None:
                self.on_outcome(outcome)

            if isinstance(outcome, UnexpectedReply) and self.stop_on_anomaly:
                logger.error("Stopping session after unexpected reply")
                break
            if count is not None and probes >= count:
                break

            stop.wait(self.interval_s)

        logger.info(
            f"Echo session finished ({self.stats.total_sent} sent, "
            f"{self.stats.total_succeeded} received, {self.stats.total_failed} failed)"
        )
        return self.stats.snapshot()
