"""
Packet parsing and rendering.

Line shapes (fields separated by a single space):
- START <id>
- END <id>
- TEST <id> <v_start> <v_end> <v_res>     (voltages in mV)
- DATA <id> <subid> <kind_code> <value>

Live records are terminated by ';', log file records by a newline.
Neither terminator is part of the line handled here.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Tuple, Union

from .constants import (
    DATA_TOKEN, DELIMITER, FIELD_SEPARATOR, PACKET_ARITY, TEST_PARAM_COUNT,
    MeasurementKind, PacketCommand,
)
from .exceptions import (
    InvalidCommandParametersError, MalformedFieldError,
    UnknownMeasurementKindError, UnknownPacketTypeError, WrongArityError,
)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


@dataclass(frozen=True)
class CommandPacket:
    """Session control or test regime command."""
    regime_id: int
    command: PacketCommand
    params: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(float(p) for p in self.params))

    @classmethod
    def test(
        cls,
        regime_id: int,
        voltage_start: float,
        voltage_end: float,
        voltage_resolution: float
    ) -> 'CommandPacket':
        """Create a TEST command for a voltage sweep."""
        return cls(
            regime_id,
            PacketCommand.TEST,
            (voltage_start, voltage_end, voltage_resolution)
        )

    @classmethod
    def start(cls, regime_id: int) -> 'CommandPacket':
        """Create a START command."""
        return cls(regime_id, PacketCommand.START)

    @classmethod
    def end(cls, regime_id: int) -> 'CommandPacket':
        """Create an END command."""
        return cls(regime_id, PacketCommand.END)

    @property
    def voltage_start(self) -> float:
        return self._param(0)

    @property
    def voltage_end(self) -> float:
        return self._param(1)

    @property
    def voltage_resolution(self) -> float:
        return self._param(2)

    @property
    def expected_groups(self) -> int:
        """
        Number of sub-id groups a TEST sweep should produce.

        Used for progress estimation only.
        """
        span = self.voltage_end - self.voltage_start
        return int(math.floor(span / self.voltage_resolution)) + 1

    def _param(self, index: int) -> float:
        if self.command != PacketCommand.TEST:
            raise AttributeError(f"{self.command.value} command has no voltage parameters")
        return self.params[index]

    def validate(self) -> None:
        """
        Check the command against the sweep constraints.

        Raises:
            InvalidCommandParametersError: If id, parameter count or
                voltages are invalid
        """
        if isinstance(self.regime_id, bool) or not isinstance(self.regime_id, int) \
                or self.regime_id < 0:
            raise InvalidCommandParametersError(
                f"Regime id must be a nonnegative integer, got {self.regime_id!r}"
            )

        if not isinstance(self.command, PacketCommand):
            raise InvalidCommandParametersError(f"Unknown command: {self.command!r}")

        if self.command != PacketCommand.TEST:
            if self.params:
                raise InvalidCommandParametersError(
                    f"{self.command.value} takes no parameters, got {len(self.params)}"
                )
            return

        if len(self.params) != TEST_PARAM_COUNT:
            raise InvalidCommandParametersError(
                f"TEST takes {TEST_PARAM_COUNT} parameters, got {len(self.params)}"
            )

        start, end, resolution = self.params
        if not end > start:
            raise InvalidCommandParametersError(
                f"Voltage end ({end} mV) must exceed voltage start ({start} mV)"
            )
        if not 0 < resolution <= end - start:
            raise InvalidCommandParametersError(
                f"Voltage resolution ({resolution} mV) must be within "
                f"(0, {end - start}] mV"
            )

    @property
    def is_valid(self) -> bool:
        try:
            self.validate()
        except InvalidCommandParametersError:
            return False
        return True

    def __repr__(self) -> str:
        if self.command == PacketCommand.TEST and len(self.params) == TEST_PARAM_COUNT:
            return (f"CommandPacket(TEST id={self.regime_id}, "
                    f"[{self.params[0]}:{self.params[1]}:{self.params[2]}] mV)")
        return f"CommandPacket({self.command.value} id={self.regime_id})"


@dataclass(frozen=True)
class DataPacket:
    """Single measurement reported by the board."""
    regime_id: int
    sub_id: int
    kind: MeasurementKind
    value: float

    def __post_init__(self):
        object.__setattr__(self, "kind", MeasurementKind(self.kind))
        object.__setattr__(self, "value", float(self.value))

    def __repr__(self) -> str:
        return (f"DataPacket(id={self.regime_id}, sub={self.sub_id}, "
                f"{MeasurementKind.name_of(self.kind)}={self.value})")


Packet = Union[CommandPacket, DataPacket]


def _parse_int(token: str, field_name: str) -> int:
    if not _INT_RE.fullmatch(token):
        raise MalformedFieldError(field_name, token)
    return int(token)


def _parse_index(token: str, field_name: str) -> int:
    value = _parse_int(token, field_name)
    if value < 0:
        raise MalformedFieldError(field_name, token)
    return value


def _parse_float(token: str, field_name: str) -> float:
    if not _FLOAT_RE.fullmatch(token):
        raise MalformedFieldError(field_name, token)
    value = float(token)
    if not math.isfinite(value):
        raise MalformedFieldError(field_name, token)
    return value


def parse_packet(line: str) -> Packet:
    """
    Parse one line into a command or data packet.

    Args:
        line: Packet text without its terminator

    Returns:
        CommandPacket or DataPacket

    Raises:
        UnknownPacketTypeError: If the first token is not a packet type
        WrongArityError: If the token count does not match the type
        MalformedFieldError: If a numeric field does not parse
        InvalidCommandParametersError: If a TEST violates sweep constraints
        UnknownMeasurementKindError: If a DATA kind code is not 0-3
    """
    tokens = line.split(FIELD_SEPARATOR)
    packet_type = tokens[0]

    expected = PACKET_ARITY.get(packet_type)
    if expected is None:
        raise UnknownPacketTypeError(packet_type)
    if len(tokens) != expected:
        raise WrongArityError(packet_type, expected, len(tokens))

    if packet_type == DATA_TOKEN:
        regime_id = _parse_index(tokens[1], "regime id")
        sub_id = _parse_index(tokens[2], "sub id")
        code = _parse_int(tokens[3], "measurement kind")
        value = _parse_float(tokens[4], "measurement value")
        try:
            kind = MeasurementKind(code)
        except ValueError:
            raise UnknownMeasurementKindError(code) from None
        return DataPacket(regime_id, sub_id, kind, value)

    command = PacketCommand(packet_type)
    regime_id = _parse_index(tokens[1], "regime id")
    params = tuple(
        _parse_float(token, name)
        for token, name in zip(
            tokens[2:], ("voltage start", "voltage end", "voltage resolution")
        )
    )
    packet = CommandPacket(regime_id, command, params)
    packet.validate()
    return packet


def render_packet(packet: Packet) -> str:
    """
    Render a packet to its canonical line form (no terminator).

    Floats use repr() so that parse_packet(render_packet(p)) == p.
    """
    if isinstance(packet, DataPacket):
        fields = [
            DATA_TOKEN,
            str(packet.regime_id),
            str(packet.sub_id),
            str(int(packet.kind)),
            repr(packet.value),
        ]
    else:
        fields = [packet.command.value, str(packet.regime_id)]
        fields.extend(repr(p) for p in packet.params)
    return FIELD_SEPARATOR.join(fields)


class PacketBuilder:
    """Builds delimited packets for transmission."""

    @staticmethod
    def build(packet: Packet) -> bytes:
        """
        Build wire bytes for a packet.

        Args:
            packet: Command or data packet

        Returns:
            ASCII line terminated by the live stream delimiter
        """
        return render_packet(packet).encode("ascii") + DELIMITER

    @staticmethod
    def build_test(
        regime_id: int,
        voltage_start: float,
        voltage_end: float,
        voltage_resolution: float
    ) -> bytes:
        """Build TEST command."""
        return PacketBuilder.build(
            CommandPacket.test(regime_id, voltage_start, voltage_end, voltage_resolution)
        )

    @staticmethod
    def build_start(regime_id: int) -> bytes:
        """Build START command."""
        return PacketBuilder.build(CommandPacket.start(regime_id))

    @staticmethod
    def build_end(regime_id: int) -> bytes:
        """Build END command."""
        return PacketBuilder.build(CommandPacket.end(regime_id))
