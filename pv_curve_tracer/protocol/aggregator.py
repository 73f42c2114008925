"""
Packet aggregation.

Folds parsed packets, from a live stream or a log file, into regimes:
- the first TEST for an id creates the regime, later ones are discarded
- DATA is appended to the regime with the same id, or dropped if none exists
- START/END are session markers and never create or change a regime
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .constants import PacketCommand
from .exceptions import InvalidCommandParametersError, PacketError
from .packet import CommandPacket, DataPacket, Packet, parse_packet
from .regime import PacketSet

logger = logging.getLogger(__name__)


class PacketAggregator:
    """Builds the regime collection from a sequence of packets."""

    def __init__(self):
        self._regimes: Dict[int, PacketSet] = OrderedDict()
        self._started: Set[int] = set()
        self._ended: Set[int] = set()
        self._last_sub_id: Dict[int, int] = {}
        self._sub_ids: Dict[int, Set[int]] = {}
        self.warnings: List[Tuple[str, PacketError]] = []
        self.dropped = 0

    def feed(self, packet: Packet) -> Optional[PacketSet]:
        """
        Fold one parsed packet into the regime collection.

        Args:
            packet: CommandPacket or DataPacket

        Returns:
            The regime the packet was applied to, or None if it was
            discarded or does not correlate with any regime
        """
        if isinstance(packet, DataPacket):
            return self._feed_data(packet)

        if packet.command == PacketCommand.TEST:
            return self._feed_test(packet)

        regime = self._regimes.get(packet.regime_id)
        if packet.command == PacketCommand.START:
            self._started.add(packet.regime_id)
        else:
            self._ended.add(packet.regime_id)

        if regime is None:
            logger.warning(f"{packet.command.value} for unknown regime {packet.regime_id}")
        else:
            logger.debug(f"{packet.command.value} marker for regime {packet.regime_id}")
        return regime

    def feed_line(self, line: str) -> Optional[Packet]:
        """
        Parse a line and fold the resulting packet.

        Lines that fail to parse are logged and recorded in `warnings`;
        they never abort aggregation.

        Returns:
            The parsed packet, or None if the line was skipped
        """
        try:
            packet = parse_packet(line)
        except PacketError as e:
            logger.warning(f"Skipping line {line!r}: {e}")
            self.warnings.append((line, e))
            return None

        self.feed(packet)
        return packet

    def feed_lines(self, lines: Iterable[str]) -> None:
        """Parse and fold every line in order."""
        for line in lines:
            self.feed_line(line)

    def _feed_test(self, packet: CommandPacket) -> Optional[PacketSet]:
        if packet.regime_id in self._regimes:
            logger.warning(f"Duplicate TEST for regime {packet.regime_id} discarded")
            return None

        try:
            packet.validate()
        except InvalidCommandParametersError as e:
            logger.warning(f"Invalid TEST for regime {packet.regime_id} discarded: {e}")
            self.warnings.append((repr(packet), e))
            return None

        regime = PacketSet(packet)
        self._regimes[packet.regime_id] = regime
        logger.debug(f"Created regime {packet.regime_id}: {packet}")
        return regime

    def _feed_data(self, packet: DataPacket) -> Optional[PacketSet]:
        regime = self._regimes.get(packet.regime_id)
        if regime is None:
            self.dropped += 1
            logger.warning(f"Dropping {packet}: no TEST seen for regime {packet.regime_id}")
            return None

        previous = self._last_sub_id.get(packet.regime_id)
        if previous is not None and packet.sub_id < previous:
            logger.debug(
                f"Regime {packet.regime_id}: sub id went back from {previous} to {packet.sub_id}"
            )
        self._last_sub_id[packet.regime_id] = packet.sub_id
        self._sub_ids.setdefault(packet.regime_id, set()).add(packet.sub_id)

        regime.add(packet)
        return regime

    def get(self, regime_id: int) -> Optional[PacketSet]:
        """Get a regime by id."""
        return self._regimes.get(regime_id)

    def is_started(self, regime_id: int) -> bool:
        return regime_id in self._started

    def is_ended(self, regime_id: int) -> bool:
        """Check if an END marker was seen for the regime."""
        return regime_id in self._ended

    def groups_seen(self, regime_id: int) -> int:
        """Number of distinct sub-ids received for a regime."""
        return len(self._sub_ids.get(regime_id, ()))

    def progress(self, regime_id: int) -> float:
        """
        Estimate the fraction of the sweep received so far.

        Best effort: distinct sub-ids seen over the expected group count,
        capped at 1.0.
        """
        regime = self._regimes.get(regime_id)
        if regime is None:
            return 0.0
        return min(1.0, self.groups_seen(regime_id) / regime.expected_groups)

    def clear(self) -> None:
        """Discard all regimes and markers."""
        self._regimes.clear()
        self._started.clear()
        self._ended.clear()
        self._last_sub_id.clear()
        self._sub_ids.clear()
        self.warnings.clear()
        self.dropped = 0

    @property
    def regimes(self) -> List[PacketSet]:
        """Regimes in creation order."""
        return list(self._regimes.values())

    def __len__(self) -> int:
        return len(self._regimes)
