"""Unit tests for session statistics."""

import math

import pytest

from common.transport import TransportError
from session.result import (
    InsufficientDataError,
    SendFailure,
    SessionStats,
    Success,
    Timeout,
    UnexpectedReply,
    packet_loss,
    trip_statistics,
)


@pytest.mark.unit
class TestTripStatistics:
    """Tests for trip_statistics."""

    def test_three_samples(self) -> None:
        stats = trip_statistics([10.0, 20.0, 30.0])
        assert stats.count == 3
        assert stats.min_ms == 10.0
        assert stats.max_ms == 30.0
        assert stats.mean_ms == pytest.approx(20.0)
        assert stats.stddev_ms == pytest.approx(math.sqrt(200.0 / 3))
        assert stats.stddev_ms == pytest.approx(8.165, abs=1e-3)

    def test_unsorted_input(self) -> None:
        stats = trip_statistics([30.0, 10.0, 20.0])
        assert stats.min_ms == 10.0
        assert stats.max_ms == 30.0

    def test_does_not_reorder_caller_samples(self) -> None:
        samples = [3.0, 1.0, 2.0]
        trip_statistics(samples)
        assert samples == [3.0, 1.0, 2.0]

    def test_single_sample(self) -> None:
        stats = trip_statistics([4.5])
        assert stats.min_ms == stats.max_ms == stats.mean_ms == 4.5
        assert stats.stddev_ms == 0.0

    def test_empty_raises(self) -> None:
        with pytest.raises(InsufficientDataError):
            trip_statistics([])

    def test_empty_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            trip_statistics([])


@pytest.mark.unit
class TestPacketLoss:
    """Tests for packet_loss."""

    def test_no_loss(self) -> None:
        assert packet_loss(10, 0) == 0.0

    def test_total_loss(self) -> None:
        assert packet_loss(4, 4) == 100.0

    def test_partial(self) -> None:
        assert packet_loss(3, 1) == pytest.approx(33.333, abs=1e-3)

    def test_nothing_sent(self) -> None:
        assert packet_loss(0, 0) is None


@pytest.mark.unit
class TestSessionStats:
    """Tests for SessionStats accumulation."""

    def test_default_values(self) -> None:
        stats = SessionStats()
        assert stats.total_sent == 0
        assert stats.total_succeeded == 0
        assert stats.total_failed == 0
        assert stats.send_failures == 0
        assert stats.round_trip_samples == []
        assert stats.tainted is False
        assert stats.packet_loss is None
        assert stats.trip_statistics is None

    def test_record_success(self) -> None:
        stats = SessionStats(total_sent=1)
        stats.record(Success(1, 1.25, 64, "192.0.2.1"))
        assert stats.total_succeeded == 1
        assert stats.round_trip_samples == [1.25]
        assert stats.packet_loss == 0.0

    def test_record_timeout(self) -> None:
        stats = SessionStats(total_sent=1)
        stats.record(Timeout(1))
        assert stats.total_failed == 1
        assert stats.round_trip_samples == []
        assert stats.packet_loss == 100.0

    def test_record_unexpected_taints(self) -> None:
        stats = SessionStats(total_sent=1)
        stats.record(UnexpectedReply(1, 3, 1, "192.0.2.1"))
        assert stats.total_failed == 1
        assert stats.tainted is True

    def test_record_send_failure(self) -> None:
        stats = SessionStats()
        stats.record(SendFailure(1, TransportError("down")))
        assert stats.send_failures == 1
        assert stats.total_sent == 0
        assert stats.total_failed == 0

    def test_snapshot_is_independent(self) -> None:
        stats = SessionStats(total_sent=1)
        stats.record(Success(1, 2.0, 64, "192.0.2.1"))
        snap = stats.snapshot()

        stats.total_sent += 1
        stats.record(Success(2, 3.0, 64, "192.0.2.1"))

        assert snap.total_sent == 1
        assert snap.total_succeeded == 1
        assert snap.round_trip_samples == [2.0]

    def test_trip_statistics_property(self) -> None:
        stats = SessionStats(round_trip_samples=[1.0, 3.0])
        trip = stats.trip_statistics
        assert trip is not None
        assert trip.mean_ms == pytest.approx(2.0)
        assert trip.stddev_ms == pytest.approx(1.0)
