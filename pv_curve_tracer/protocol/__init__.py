"""
PV Curve Tracer Protocol - host side of the curve tracer board protocol.

This package provides:
- Protocol constants and measurement kinds
- Packet parsing and rendering
- Stream reassembly of ';'-delimited records
- Aggregation of packets into test regimes
- Log file reading and writing
- Serial transport layer
- Live regime session driver
"""

from .constants import (
    DELIMITER, LOG_HEADER,
    PacketCommand, MeasurementKind
)
from .exceptions import (
    PVProtocolError, PacketError, ValidationError,
    MalformedFieldError, WrongArityError, UnknownPacketTypeError,
    UnknownMeasurementKindError, InvalidCommandParametersError,
    InvalidHeaderError, TransportError, AbortedError
)
from .packet import (
    CommandPacket, DataPacket, PacketBuilder, parse_packet, render_packet
)
from .reassembler import LineReassembler
from .regime import CurvePoint, PacketSet
from .aggregator import PacketAggregator
from .logfile import parse_log_lines, read_log, render_log, write_log
from .transport import SerialTransport, find_port
from .session import RegimeSession, SessionState

__version__ = "0.1.0"
__all__ = [
    # Constants
    "DELIMITER", "LOG_HEADER",
    "PacketCommand", "MeasurementKind",
    # Exceptions
    "PVProtocolError", "PacketError", "ValidationError",
    "MalformedFieldError", "WrongArityError", "UnknownPacketTypeError",
    "UnknownMeasurementKindError", "InvalidCommandParametersError",
    "InvalidHeaderError", "TransportError", "AbortedError",
    # Packets
    "CommandPacket", "DataPacket", "PacketBuilder",
    "parse_packet", "render_packet",
    # Reassembly and aggregation
    "LineReassembler", "PacketAggregator",
    "CurvePoint", "PacketSet",
    # Log files
    "parse_log_lines", "read_log", "render_log", "write_log",
    # Transport
    "SerialTransport", "find_port",
    # Session
    "RegimeSession", "SessionState",
]
