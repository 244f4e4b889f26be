"""Echo session package for ping-testkit.

This package handles the probing loop once the target is resolved:
- Echo Request / Echo Reply exchange with a bounded receive deadline
- RTT (round-trip time) measurement
- Statistics tracking (sent, succeeded, failed, min/max/mean/stddev)
- Per-probe and summary reporting
"""

from session.exchange import EchoSession
from session.report import OutcomeReport, SummaryReport
from session.result import (
    EchoOutcome,
    InsufficientDataError,
    SendFailure,
    SessionStats,
    Success,
    Timeout,
    TripStatistics,
    UnexpectedReply,
    packet_loss,
    trip_statistics,
)

__all__ = [
    "EchoOutcome",
    "EchoSession",
    "InsufficientDataError",
    "OutcomeReport",
    "SendFailure",
    "SessionStats",
    "Success",
    "SummaryReport",
    "Timeout",
    "TripStatistics",
    "UnexpectedReply",
    "packet_loss",
    "trip_statistics",
]
