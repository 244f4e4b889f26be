"""pytest configuration and fixtures for ping-testkit tests.

Provides:
- EchoTransport: Answers every request with a matching Echo Reply
- SilentTransport: Never answers (every receive times out)
- ScriptedTransport: Returns queued datagrams/exceptions, then times out
- FailingSendTransport: Every send raises or writes short
- make_reply: Build an ICMP message with a valid checksum
- icmp_error: Build an ICMP error quoting the request it answers
- Markers for unit vs integration tests
"""

import struct
from collections import deque
from collections.abc import Callable

import pytest

from common.packet import compute_checksum
from common.protocol import ICMP_HEADER_FORMAT, ICMP_HEADER_SIZE, IcmpType
from common.transport import ReceiveTimeout, TransportError

PEER_ADDRESS = "192.0.2.7"

# Minimal IPv4 header (IHL=5) as quoted by ICMP error messages
QUOTED_IP_HEADER = bytes([0x45]) + bytes(19)


def build_icmp(
    icmp_type: int,
    identifier: int,
    sequence: int,
    payload: bytes = b"",
    code: int = 0,
) -> bytes:
    """Build an ICMP message of any type with a valid checksum."""
    header = struct.pack(ICMP_HEADER_FORMAT, icmp_type, code, 0, identifier, sequence)
    checksum = compute_checksum(header + payload)
    header = struct.pack(ICMP_HEADER_FORMAT, icmp_type, code, checksum, identifier, sequence)
    return header + payload


def echo_reply_for(request: bytes) -> bytes:
    """Turn an Echo Request into the Echo Reply a host would send back."""
    body = bytes([IcmpType.ECHO_REPLY]) + request[1:2] + b"\x00\x00" + request[4:]
    checksum = compute_checksum(body)
    return body[:2] + struct.pack("!H", checksum) + body[4:]


def quoting(request: bytes) -> bytes:
    """Quote of request as carried in an ICMP error: IPv4 header + first 8 bytes."""
    return QUOTED_IP_HEADER + request[:ICMP_HEADER_SIZE]


def icmp_error_for(icmp_type: int, code: int = 0) -> Callable[[bytes], bytes]:
    """Script entry answering the last request with an ICMP error that quotes it."""

    def build(request: bytes) -> bytes:
        return build_icmp(icmp_type, 0, 0, quoting(request), code=code)

    return build


class EchoTransport:
    """Echoes every request back as an Echo Reply.

    Type is rewritten to Echo Reply and the checksum recomputed, everything
    else is returned byte-for-byte.
    """

    def __init__(self, source: str = PEER_ADDRESS) -> None:
        self.source = source
        self.sent: list[bytes] = []
        self._pending: deque[bytes] = deque()

    def send(self, packet: bytes, address: str, /) -> int:
        self.sent.append(packet)
        self._pending.append(echo_reply_for(packet))
        return len(packet)

    def receive(self, deadline: float, /) -> tuple[bytes, str]:
        if not self._pending:
            raise ReceiveTimeout("nothing pending")
        return self._pending.popleft(), self.source


class SilentTransport:
    """Accepts every send, never delivers anything."""

    def __init__(self) -> None:
        self.sent: list[bytes] = []

    def send(self, packet: bytes, address: str, /) -> int:
        self.sent.append(packet)
        return len(packet)

    def receive(self, deadline: float, /) -> tuple[bytes, str]:
        raise ReceiveTimeout("no reply")


class ScriptedTransport:
    """Returns queued datagrams (or raises queued exceptions) on receive.

    Once the queue is empty every receive times out. Entries may be callables
    taking the last sent packet, so replies can depend on the request.
    """

    def __init__(self, script: list[bytes | Exception | Callable[[bytes], bytes]], source: str = PEER_ADDRESS) -> None:
        self.source = source
        self.sent: list[bytes] = []
        self._script = deque(script)

    def send(self, packet: bytes, address: str, /) -> int:
        self.sent.append(packet)
        return len(packet)

    def receive(self, deadline: float, /) -> tuple[bytes, str]:
        if not self._script:
            raise ReceiveTimeout("script exhausted")
        entry = self._script.popleft()
        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            return entry(self.sent[-1]), self.source
        return entry, self.source


class FailingSendTransport:
    """Every send fails: raises TransportError, or writes short if short_write."""

    def __init__(self, short_write: bool = False) -> None:
        self.short_write = short_write
        self.attempts = 0
        self.receives = 0

    def send(self, packet: bytes, address: str, /) -> int:
        self.attempts += 1
        if self.short_write:
            return len(packet) - 1
        raise TransportError("Network is unreachable")

    def receive(self, deadline: float, /) -> tuple[bytes, str]:
        self.receives += 1
        raise ReceiveTimeout("no reply")


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (uses local sockets)")


@pytest.fixture
def echo_transport() -> EchoTransport:
    return EchoTransport()


@pytest.fixture
def silent_transport() -> SilentTransport:
    return SilentTransport()


@pytest.fixture
def scripted_transport() -> Callable[..., ScriptedTransport]:
    """Factory fixture: scripted_transport([datagram, exception, ...])."""
    return ScriptedTransport


@pytest.fixture
def failing_transport() -> Callable[..., FailingSendTransport]:
    """Factory fixture: failing_transport(short_write=False)."""
    return FailingSendTransport


@pytest.fixture
def make_reply() -> Callable[..., bytes]:
    """Factory fixture: make_reply(icmp_type, identifier, sequence, payload=b"", code=0)."""
    return build_icmp


@pytest.fixture
def icmp_error() -> Callable[..., Callable[[bytes], bytes]]:
    """Factory fixture: icmp_error(icmp_type, code=0) -> script entry."""
    return icmp_error_for


@pytest.fixture
def reply_to() -> Callable[[bytes], bytes]:
    """Fixture returning echo_reply_for(request)."""
    return echo_reply_for

