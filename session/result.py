"""Session result types for ping-testkit.

Contains:
- Success, Timeout, SendFailure, UnexpectedReply: per-probe outcomes (EchoOutcome)
- InsufficientDataError: Raised when statistics are requested without samples
- TripStatistics: Round-trip statistics in milliseconds
- trip_statistics: Compute stats from RTT samples
- packet_loss: Loss percentage, guarded against zero sent
- SessionStats: Counters and RTT samples accumulated by the echo session
"""

import math
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Success:
    """Echo Reply received before the deadline."""

    sequence: int
    round_trip_ms: float
    reply_length: int
    source: str


@dataclass(frozen=True)
class Timeout:
    """No acceptable reply before the deadline (or the receive failed)."""

    sequence: int


@dataclass(frozen=True)
class SendFailure:
    """The request could not be written in full."""

    sequence: int
    error: Exception | None = None


@dataclass(frozen=True)
class UnexpectedReply:
    """An ICMP message other than Echo Reply arrived for the probe."""

    sequence: int
    received_type: int
    received_code: int
    source: str


EchoOutcome = Success | Timeout | SendFailure | UnexpectedReply


class InsufficientDataError(ValueError):
    """Raised when statistics are computed over an empty sample set."""

    pass


@dataclass
class TripStatistics:
    """Computed round-trip statistics in milliseconds."""

    count: int
    min_ms: float
    max_ms: float
    mean_ms: float
    stddev_ms: float


def trip_statistics(samples: list[float]) -> TripStatistics:
    """Compute round-trip statistics from RTT samples (in milliseconds).

    The standard deviation is the square root of the population variance
    (divisor n, not n - 1).

    Raises:
        InsufficientDataError: If samples is empty.
    """
    if not samples:
        raise InsufficientDataError("No round-trip samples")

    count = len(samples)
    ordered = sorted(samples)
    mean = sum(ordered) / count
    variance = sum((s - mean) ** 2 for s in ordered) / count

    return TripStatistics(
        count=count,
        min_ms=ordered[0],
        max_ms=ordered[-1],
        mean_ms=mean,
        stddev_ms=math.sqrt(variance),
    )


def packet_loss(total_sent: int, total_failed: int) -> float | None:
    """Return packet loss as a percentage (0-100), or None if nothing was sent."""
    if total_sent == 0:
        return None
    return (total_failed / total_sent) * 100


@dataclass
class SessionStats:
    """Counters accumulated by the echo session.

    Attributes:
        total_sent: Requests written in full.
        total_succeeded: Echo Replies received in time.
        total_failed: Timeouts plus unexpected replies.
        send_failures: Requests that could not be written (not counted as sent).
        round_trip_samples: RTT of each success, in milliseconds.
        tainted: True once an unexpected ICMP message was received.
    """

    total_sent: int = 0
    total_succeeded: int = 0
    total_failed: int = 0
    send_failures: int = 0
    round_trip_samples: list[float] = field(default_factory=list)
    tainted: bool = False

    def record(self, outcome: EchoOutcome) -> None:
        """Apply one probe outcome.

        total_sent is incremented by the session at send time, not here.
        """
        match outcome:
            case Success(round_trip_ms=rtt):
                self.total_succeeded += 1
                self.round_trip_samples.append(rtt)
            case Timeout():
                self.total_failed += 1
            case UnexpectedReply():
                self.total_failed += 1
                self.tainted = True
            case SendFailure():
                self.send_failures += 1

    def snapshot(self) -> "SessionStats":
        """Return an independent copy for readers."""
        return replace(self, round_trip_samples=list(self.round_trip_samples))

    @property
    def packet_loss(self) -> float | None:
        return packet_loss(self.total_sent, self.total_failed)

    @property
    def trip_statistics(self) -> TripStatistics | None:
        """Round-trip statistics, or None when no reply was received."""
        if not self.round_trip_samples:
            return None
        return trip_statistics(self.round_trip_samples)
