"""ICMP Echo packet encoding/decoding for ping-testkit.

Echo messages use the fixed 8-byte ICMP header followed by the payload:
  [1-byte type][1-byte code][2-byte checksum][2-byte identifier][2-byte sequence][payload]

All header integers are big-endian (network order). The checksum is the
RFC 1071 one's-complement checksum over the whole ICMP message.
"""

import logging
import struct
from dataclasses import dataclass

from common.protocol import (
    ICMP_HEADER_FORMAT,
    ICMP_HEADER_SIZE,
    MAX_PAYLOAD_SIZE,
    PAYLOAD_FILLER,
    UINT16_MAX,
    IcmpType,
)

logger = logging.getLogger(__name__)

# Offset of the checksum field within the ICMP header
_CHECKSUM_OFFSET = 2

# Smallest IPv4 header (IHL=5)
_MIN_IPV4_HEADER_SIZE = 20


class EncodingError(Exception):
    """Raised when a packet cannot be encoded or decoded."""

    pass


class PayloadTooLargeError(EncodingError, ValueError):
    """Raised when an echo payload exceeds MAX_PAYLOAD_SIZE."""

    pass


@dataclass(frozen=True)
class EchoReply:
    """Decoded ICMP header and payload of a received message."""

    type: int
    code: int
    checksum: int
    identifier: int
    sequence: int
    payload: bytes

    @property
    def is_echo_reply(self) -> bool:
        return self.type == IcmpType.ECHO_REPLY


def compute_checksum(data: bytes) -> int:
    """Compute the RFC 1071 Internet checksum of data.

    Sums the buffer as big-endian 16-bit words (a trailing odd byte is padded
    with zero), folds carries back into the low 16 bits until none remain and
    returns the one's complement of the result.
    """
    if len(data) % 2:
        data += b"\x00"

    total = 0
    for i in range(0, len(data), 2):
        total += (data[i] << 8) | data[i + 1]

    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)

    return ~total & 0xFFFF


def verify_checksum(packet: bytes) -> bool:
    """Return True if packet (checksum field included) sums to 0xFFFF."""
    return compute_checksum(packet) == 0


def make_payload(size: int, filler: bytes = PAYLOAD_FILLER) -> bytes:
    """Repeat filler to exactly size bytes.

    Raises:
        ValueError: If size is negative.
        PayloadTooLargeError: If size exceeds MAX_PAYLOAD_SIZE.
    """
    if size < 0:
        raise ValueError(f"Payload size must be non-negative, got {size}")
    if size > MAX_PAYLOAD_SIZE:
        raise PayloadTooLargeError(f"Payload too large: {size} bytes, max {MAX_PAYLOAD_SIZE}")
    if size == 0:
        return b""
    return (filler * (size // len(filler) + 1))[:size]


def build_echo_request(identifier: int, sequence: int, payload: bytes = b"") -> bytes:
    """Build an ICMP Echo Request with a valid checksum.

    Raises:
        PayloadTooLargeError: If payload exceeds MAX_PAYLOAD_SIZE bytes.
        EncodingError: If identifier or sequence does not fit in 16 bits.
    """
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise PayloadTooLargeError(
            f"Payload too large: {len(payload)} bytes, max {MAX_PAYLOAD_SIZE}"
        )
    for name, value in (("identifier", identifier), ("sequence", sequence)):
        if not 0 <= value <= UINT16_MAX:
            raise EncodingError(f"{name} out of range: {value}")

    header = struct.pack(ICMP_HEADER_FORMAT, IcmpType.ECHO_REQUEST, 0, 0, identifier, sequence)
    packet = bytearray(header + payload)
    checksum = compute_checksum(bytes(packet))
    struct.pack_into("!H", packet, _CHECKSUM_OFFSET, checksum)
    return bytes(packet)


def parse_echo_reply(data: bytes) -> EchoReply:
    """Decode the ICMP header and payload of a received message.

    The checksum is returned as received, not validated.

    Raises:
        EncodingError: If data is shorter than the ICMP header.
    """
    if len(data) < ICMP_HEADER_SIZE:
        raise EncodingError(
            f"ICMP message too short: {len(data)} bytes, need at least {ICMP_HEADER_SIZE}"
        )

    icmp_type, code, checksum, identifier, sequence = struct.unpack(
        ICMP_HEADER_FORMAT, data[:ICMP_HEADER_SIZE]
    )
    return EchoReply(
        type=icmp_type,
        code=code,
        checksum=checksum,
        identifier=identifier,
        sequence=sequence,
        payload=data[ICMP_HEADER_SIZE:],
    )


def strip_ip_header(data: bytes) -> bytes:
    """Drop a leading IPv4 header if present.

    Raw sockets deliver the IP header ahead of the ICMP message, datagram
    ICMP sockets don't. An IPv4 header is recognised by its version nibble.

    Raises:
        EncodingError: If the IPv4 header is truncated.
    """
    if not data or data[0] >> 4 != 4:
        return data

    header_len = (data[0] & 0x0F) * 4
    if header_len < _MIN_IPV4_HEADER_SIZE or len(data) < header_len:
        raise EncodingError(f"Truncated IPv4 header: {len(data)} bytes, IHL={header_len}")
    return data[header_len:]


def quoted_request(error: EchoReply) -> EchoReply | None:
    """Decode the ICMP header quoted by an ICMP error message.

    Error messages carry the offending datagram's IPv4 header plus at least
    its first 8 bytes, which for an Echo Request holds identifier and
    sequence. Returns None when the quote is missing or unreadable.
    """
    quote = error.payload
    if not quote or quote[0] >> 4 != 4:
        return None
    try:
        return parse_echo_reply(strip_ip_header(quote))
    except EncodingError as e:
        logger.debug(f"Unreadable quote in ICMP type {error.type}: {e}")
        return None
