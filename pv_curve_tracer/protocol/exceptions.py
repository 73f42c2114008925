"""
Custom exceptions for the curve tracer protocol.
"""

from typing import Optional


class PVProtocolError(Exception):
    """Base exception for curve tracer protocol errors."""
    pass


class PacketError(PVProtocolError):
    """A single line could not be parsed into a packet."""
    pass


class ValidationError(PVProtocolError):
    """Command packet rejected before it reaches the board."""
    pass


class MalformedFieldError(PacketError):
    """Numeric token failed to parse as its target type."""

    def __init__(self, field: str, token: str):
        self.field = field
        self.token = token
        super().__init__(f"Malformed {field}: {token!r}")


class WrongArityError(PacketError):
    """Token count does not match the packet shape."""

    def __init__(self, packet_type: str, expected: int, received: int):
        self.packet_type = packet_type
        self.expected = expected
        self.received = received
        super().__init__(
            f"{packet_type} expects {expected} tokens, received {received}"
        )


class UnknownPacketTypeError(PacketError):
    """First token is not a known packet type."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Unknown packet type: {token!r}")


class UnknownMeasurementKindError(PacketError):
    """DATA packet carries a measurement code outside the known range."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"Unknown measurement kind code: {code}")


class InvalidCommandParametersError(PacketError, ValidationError):
    """TEST command voltages violate the sweep constraints."""
    pass


class InvalidHeaderError(PVProtocolError):
    """Log file does not start with the expected header line."""

    def __init__(self, found: Optional[str]):
        self.found = found
        if found is None:
            msg = "Log file is empty, header missing"
        else:
            msg = f"Invalid log header: {found!r}"
        super().__init__(msg)


class TransportError(PVProtocolError):
    """Serial connection or I/O error."""
    pass


class AbortedError(PVProtocolError):
    """Regime session aborted by the operator or a cancel signal."""

    def __init__(self, reason: str = "Aborted"):
        self.reason = reason
        super().__init__(reason)
