"""Reporting abstractions for ping-testkit.

Contains:
- Report ABC: Base class for all reports
- StartupReport: Banner printed once the target is resolved, or the startup failure
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from common.protocol import ICMP_HEADER_SIZE


class Report(ABC):
    """Abstract base class for ping reports."""

    @abstractmethod
    def print(self) -> None:
        """Print the report to stdout."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class StartupReport(Report):
    """Report after address resolution and socket setup.

    When ready=True, address is required.
    When ready=False, error should be set.
    """

    target: str
    ready: bool
    address: str | None = None
    payload_size: int = 0
    error: Exception | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.ready and self.address is None:
            raise ValueError("address is required when ready=True")

    def print(self) -> None:
        """Print the startup banner."""
        if self.ready:
            total = self.payload_size + ICMP_HEADER_SIZE
            print(
                f"PING {self.target} ({self.address}): {self.payload_size} data bytes "
                f"({total} bytes per packet)"
            )
        else:
            print(f"ping: {self.target}: {self.error}")

    def success(self) -> bool:
        """Return True if the session could start."""
        return self.ready
