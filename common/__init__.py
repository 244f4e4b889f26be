"""Common modules for ping-testkit.

This package contains the ICMP layer shared by the session and the client:
- protocol: IcmpType enum, size/timing constants, IcmpTransport and StopSignal Protocols
- packet: Echo Request encoding, reply decoding, RFC 1071 checksum
- transport: Address resolution and the raw ICMP socket
- report: Reporting abstractions
"""

from common.packet import (
    EchoReply,
    EncodingError,
    PayloadTooLargeError,
    build_echo_request,
    compute_checksum,
    parse_echo_reply,
    quoted_request,
    verify_checksum,
)
from common.protocol import (
    DEFAULT_INTERVAL_S,
    DEFAULT_PAYLOAD_SIZE,
    DEFAULT_RECV_TIMEOUT_S,
    ICMP_ERROR_TYPES,
    ICMP_HEADER_SIZE,
    MAX_PAYLOAD_SIZE,
    IcmpTransport,
    IcmpType,
    StopSignal,
)
from common.transport import (
    ReceiveTimeout,
    ResolutionError,
    TransportError,
    TransportOpenError,
)

__all__ = [
    # Protocol
    "IcmpType",
    "IcmpTransport",
    "StopSignal",
    "ICMP_ERROR_TYPES",
    "ICMP_HEADER_SIZE",
    "MAX_PAYLOAD_SIZE",
    "DEFAULT_PAYLOAD_SIZE",
    "DEFAULT_RECV_TIMEOUT_S",
    "DEFAULT_INTERVAL_S",
    # Packet
    "EchoReply",
    "build_echo_request",
    "compute_checksum",
    "parse_echo_reply",
    "quoted_request",
    "verify_checksum",
    # Exceptions
    "EncodingError",
    "PayloadTooLargeError",
    "ReceiveTimeout",
    "ResolutionError",
    "TransportError",
    "TransportOpenError",
]
