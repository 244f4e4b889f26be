"""Protocol definitions for ping-testkit.

Contains:
- IcmpType enum for the ICMP message types we send and recognise
- IcmpTransport and StopSignal Protocols for type checking
- Packet size and timing constants (overridable via envvars)
- Logging configuration
"""

import logging
import os
from enum import IntEnum
from typing import Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class IcmpType(IntEnum):
    """ICMP message types."""

    ECHO_REPLY = 0
    DEST_UNREACHABLE = 3
    SOURCE_QUENCH = 4
    REDIRECT = 5
    ECHO_REQUEST = 8
    TIME_EXCEEDED = 11
    PARAMETER_PROBLEM = 12


# Error messages that quote the datagram that caused them
ICMP_ERROR_TYPES = frozenset(
    {
        IcmpType.DEST_UNREACHABLE,
        IcmpType.SOURCE_QUENCH,
        IcmpType.REDIRECT,
        IcmpType.TIME_EXCEEDED,
        IcmpType.PARAMETER_PROBLEM,
    }
)


class IcmpTransport(Protocol):
    """Protocol for the raw ICMP transport used by the echo session."""

    def send(self, packet: bytes, address: str, /) -> int: ...
    def receive(self, deadline: float, /) -> tuple[bytes, str]: ...


class StopSignal(Protocol):
    """Protocol for the stop flag polled by the echo session."""

    def is_set(self) -> bool: ...
    def wait(self, timeout: float | None = ..., /) -> bool: ...


# ICMP header: type, code, checksum, identifier, sequence
ICMP_HEADER_FORMAT = "!BBHHH"
ICMP_HEADER_SIZE = 8

# Largest payload accepted by build_echo_request
MAX_PAYLOAD_SIZE = 256

# Identifier and sequence are 16-bit fields
UINT16_MAX = 0xFFFF
SEQUENCE_MODULO = 0x10000

# Receive buffer for a single datagram (IP header + ICMP message)
RECV_BUFFER_SIZE = 1024

# Payload filler (64-byte packets by default, like the classic ping)
PAYLOAD_FILLER = b"Hello, world!"

# Default sizes and timing
DEFAULT_PAYLOAD_SIZE = 56
DEFAULT_RECV_TIMEOUT_S = 0.5
DEFAULT_INTERVAL_S = 1.0

# Envvars overriding the CLI defaults
PAYLOAD_SIZE_ENV = "PING_PAYLOAD_SIZE"
TIMEOUT_ENV = "PING_TIMEOUT_S"
INTERVAL_ENV = "PING_INTERVAL_S"


def env_default(name: str, default: object) -> str:
    """Raw envvar value, or default as a string.

    Returned unparsed so the CLI validates it like any other argument.
    """
    return os.environ.get(name, str(default))
