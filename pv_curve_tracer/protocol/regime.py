"""
Regime data structures.

A regime is one voltage sweep: the TEST command that ordered it plus the
DATA packets the board reported for it. Packets sharing a sub-id describe
one voltage step read by several sensors.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import MeasurementKind, PacketCommand
from .packet import CommandPacket, DataPacket


@dataclass
class CurvePoint:
    """One sweep step with all readings reported for it."""
    sub_id: int
    voltage: float
    current: Optional[float] = None
    temperature: Optional[float] = None
    irradiance: Optional[float] = None

    @property
    def power(self) -> Optional[float]:
        """Power at this step, if a current reading exists."""
        if self.current is None:
            return None
        return self.voltage * self.current


@dataclass
class PacketSet:
    """Command packet and its data packets for a single test regime."""
    command_packet: CommandPacket
    data_packets: List[DataPacket] = field(default_factory=list)

    def __post_init__(self):
        if self.command_packet.command != PacketCommand.TEST:
            raise ValueError(
                f"PacketSet requires a TEST command, got {self.command_packet.command.value}"
            )

    @property
    def regime_id(self) -> int:
        return self.command_packet.regime_id

    @property
    def expected_groups(self) -> int:
        return self.command_packet.expected_groups

    def add(self, packet: DataPacket) -> None:
        """Append a data packet, keeping arrival order."""
        if packet.regime_id != self.regime_id:
            raise ValueError(
                f"Packet for regime {packet.regime_id} added to regime {self.regime_id}"
            )
        self.data_packets.append(packet)

    def sub_ids(self) -> List[int]:
        """Distinct sub-ids in order of first appearance."""
        return list(self.groups().keys())

    def groups(self) -> Dict[int, List[DataPacket]]:
        """Data packets grouped by sub-id, in order of first appearance."""
        grouped: Dict[int, List[DataPacket]] = OrderedDict()
        for packet in self.data_packets:
            grouped.setdefault(packet.sub_id, []).append(packet)
        return grouped

    def curve(self) -> List[CurvePoint]:
        """
        Build per-step curve points for plotting.

        Steps without a voltage reading are left out, since nothing can be
        placed on the voltage axis for them. When a step reports a kind
        more than once, the last reading wins.
        """
        points = []
        for sub_id, packets in self.groups().items():
            readings = {p.kind: p.value for p in packets}
            if MeasurementKind.VOLTAGE not in readings:
                continue
            points.append(CurvePoint(
                sub_id=sub_id,
                voltage=readings[MeasurementKind.VOLTAGE],
                current=readings.get(MeasurementKind.CURRENT),
                temperature=readings.get(MeasurementKind.TEMPERATURE),
                irradiance=readings.get(MeasurementKind.IRRADIANCE),
            ))
        return points

    def __len__(self) -> int:
        return len(self.data_packets)

    def __repr__(self) -> str:
        return (f"PacketSet(id={self.regime_id}, packets={len(self.data_packets)}, "
                f"groups={len(self.groups())}/{self.expected_groups})")
