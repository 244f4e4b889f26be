"""Raw ICMP transport for ping-testkit.

Contains:
- resolve_address: Resolve a host name or dotted quad to an IPv4 address
- RawIcmpTransport: Raw IPv4 ICMP socket with deadline-bounded receive
- Transport exceptions
"""

import logging
import select
import socket
import time
from types import TracebackType

from common.packet import EncodingError, strip_ip_header
from common.protocol import RECV_BUFFER_SIZE, TRACE

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when sending or receiving on the ICMP socket fails."""

    pass


class ReceiveTimeout(TransportError):
    """Raised when no datagram arrives before the receive deadline."""

    pass


class ResolutionError(TransportError):
    """Raised when the target address cannot be resolved."""

    pass


class TransportOpenError(TransportError):
    """Raised when the raw ICMP socket cannot be opened."""

    pass


def resolve_address(host: str) -> str:
    """Resolve host to an IPv4 address string."""
    try:
        address = socket.gethostbyname(host)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"Cannot resolve {host!r}: {e}") from e
    logger.debug(f"Resolved {host} to {address}")
    return address


class RawIcmpTransport:
    """Raw IPv4 ICMP socket.

    Opening requires CAP_NET_RAW (or root). Received datagrams have their IP
    header stripped, so callers always see a bare ICMP message.
    """

    def __init__(self) -> None:
        self._sock: socket.socket | None = None

    def open(self) -> "RawIcmpTransport":
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        except PermissionError as e:
            raise TransportOpenError(
                f"Permission denied opening raw ICMP socket (run as root or grant CAP_NET_RAW): {e}"
            ) from e
        except OSError as e:
            raise TransportOpenError(f"Failed to open raw ICMP socket: {e}") from e
        self._sock.setblocking(False)
        logger.debug("Opened raw ICMP socket")
        return self

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug("Closed raw ICMP socket")

    def __enter__(self) -> "RawIcmpTransport":
        if self._sock is None:
            self.open()
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.close()

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("Transport is not open")
        return self._sock

    def send(self, packet: bytes, address: str, /) -> int:
        """Send packet to address. Returns bytes written."""
        try:
            written = self._socket().sendto(packet, (address, 0))
        except OSError as e:
            raise TransportError(f"Send to {address} failed: {e}") from e
        logger.log(TRACE, f"Sent {written} bytes to {address}")
        return written

    def receive(self, deadline: float, /) -> tuple[bytes, str]:
        """Receive one ICMP message before deadline (a time.monotonic() value).

        Returns (icmp_message, source_address).

        Raises:
            ReceiveTimeout: If the deadline passes first.
            TransportError: On socket errors.
        """
        sock = self._socket()
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ReceiveTimeout("Receive deadline exceeded")

            try:
                ready, _, _ = select.select([sock], [], [], remaining)
            except OSError as e:
                raise TransportError(f"select failed: {e}") from e
            if not ready:
                continue

            try:
                data, (source, _) = sock.recvfrom(RECV_BUFFER_SIZE)
            except BlockingIOError:
                continue
            except OSError as e:
                raise TransportError(f"Receive failed: {e}") from e

            logger.log(TRACE, f"Received {len(data)} bytes from {source}")
            try:
                return strip_ip_header(data), source
            except EncodingError as e:
                logger.warning(f"Dropping datagram from {source}: {e}")
