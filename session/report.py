"""Session reporting for ping-testkit.

Contains:
- OutcomeReport: One line per probe, printed as soon as the probe completes
- SummaryReport: Statistics block printed once when the session ends
"""

from dataclasses import dataclass

from common.report import Report
from session.result import (
    EchoOutcome,
    SendFailure,
    SessionStats,
    Success,
    Timeout,
    UnexpectedReply,
)


@dataclass
class OutcomeReport(Report):
    """Report for a single probe."""

    outcome: EchoOutcome

    def line(self) -> str:
        match self.outcome:
            case Success(sequence=seq, round_trip_ms=rtt, reply_length=n, source=src):
                return f"{n} bytes from {src}: icmp_seq={seq} time={rtt:.3f} ms"
            case Timeout(sequence=seq):
                return f"Request timeout for icmp_seq {seq}"
            case SendFailure(sequence=seq, error=err):
                return f"Packet send failure icmp_seq={seq}: {err}"
            case UnexpectedReply(sequence=seq, received_type=t, received_code=c, source=src):
                return f"Unexpected ICMP type {t} code {c} from {src} for icmp_seq {seq}"
        raise TypeError(f"Unknown outcome: {self.outcome!r}")

    def print(self) -> None:
        print(self.line(), flush=True)

    def success(self) -> bool:
        return isinstance(self.outcome, Success)


@dataclass
class SummaryReport(Report):
    """Report after the echo session ends."""

    target: str
    stats: SessionStats

    def print(self) -> None:
        """Print the statistics block."""
        s = self.stats

        print(f"\n--- {self.target} ping statistics ---")

        if s.tainted:
            print(
                f"Session: FAILED (unexpected ICMP reply; {s.total_sent} sent, "
                f"{s.total_succeeded} received)"
            )
            return  # Don't print loss/latency for a tainted session

        loss = s.packet_loss
        if loss is None:
            print(f"{s.total_sent} packets transmitted, {s.total_succeeded} received, no data")
        else:
            print(
                f"{s.total_sent} packets transmitted, {s.total_succeeded} received, "
                f"{loss:.2f}% packet loss"
            )
        if s.send_failures:
            print(f"{s.send_failures} send failures")

        # Latency line (only if we have RTT samples)
        trip = s.trip_statistics
        if trip:
            print(
                f"round-trip min/max/mean/stddev = {trip.min_ms:.3f}/{trip.max_ms:.3f}/"
                f"{trip.mean_ms:.3f}/{trip.stddev_ms:.3f} ms"
            )
        else:
            print("round-trip: no data")

    def success(self) -> bool:
        """Return True unless the session received an unexpected ICMP message."""
        return not self.stats.tainted
