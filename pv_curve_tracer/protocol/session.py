"""
Regime session driver.

Runs one test regime on the board:
1) the caller submits a validated TEST command
2) the operator confirms the board is ready
3) TEST and START are transmitted
4) DATA is collected until END arrives for the same regime id

Single-threaded polling. Cancellation is cooperative: the cancel event is
checked between polls.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from .constants import PacketCommand
from .exceptions import AbortedError, TransportError, ValidationError
from .aggregator import PacketAggregator
from .packet import CommandPacket, DataPacket, PacketBuilder
from .reassembler import LineReassembler
from .regime import PacketSet

logger = logging.getLogger(__name__)

# Function(groups_seen, groups_expected, fraction)
ProgressCallback = Callable[[int, int, float], None]

# Function(command) -> True if the operator is ready
ConfirmCallback = Callable[[CommandPacket], bool]


class SessionState(Enum):
    """Regime session states."""
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    TRANSMITTING = "transmitting"
    COLLECTING_DATA = "collecting_data"
    COMPLETE = "complete"
    ABORTED = "aborted"


class RegimeSession:
    """State machine for a single live test regime."""

    def __init__(
        self,
        transport,
        poll_timeout: float = 0.1,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize regime session.

        Args:
            transport: Object with send(bytes) and receive(timeout) methods,
                normally a SerialTransport
            poll_timeout: Receive timeout per poll in seconds
            cancel_event: Event that aborts the session when set
            progress_callback: Called when a new sub-id group arrives
        """
        self.transport = transport
        self.poll_timeout = poll_timeout
        self.cancel_event = cancel_event or threading.Event()
        self.progress_callback = progress_callback

        self.state = SessionState.IDLE
        self.command: Optional[CommandPacket] = None
        self.result: Optional[PacketSet] = None
        self.abort_reason: Optional[str] = None

        self._reassembler = LineReassembler()
        self._aggregator = PacketAggregator()
        self._groups_seen = 0

    # === State transitions ===

    def submit(self, command: CommandPacket) -> None:
        """
        Accept a TEST command and wait for operator confirmation.

        Raises:
            ValidationError: If the command is not a valid TEST command
        """
        self._require(SessionState.IDLE)

        if not isinstance(command, CommandPacket) or command.command != PacketCommand.TEST:
            raise ValidationError(f"Session requires a TEST command, got {command!r}")
        command.validate()

        self.command = command
        self._set_state(SessionState.AWAITING_CONFIRMATION)

    def confirm(self, approved: bool) -> None:
        """
        Record the operator's answer.

        Raises:
            AbortedError: If the operator declined; nothing is transmitted
        """
        self._require(SessionState.AWAITING_CONFIRMATION)
        self._check_cancel()

        if not approved:
            raise self._abort("Operator declined to start the regime")

        self._set_state(SessionState.TRANSMITTING)

    def transmit(self) -> None:
        """
        Send TEST then START for the submitted regime.

        Raises:
            TransportError: If a write fails; the session is aborted
        """
        self._require(SessionState.TRANSMITTING)
        self._check_cancel()

        regime_id = self.command.regime_id
        try:
            self.transport.send(PacketBuilder.build(self.command))
            logger.info(f"Command packet sent: {self.command}")
            self.transport.send(PacketBuilder.build_start(regime_id))
            logger.info(f"START sent for regime {regime_id}")
        except TransportError as e:
            self._abort(f"Transmission failed: {e}")
            raise

        self._aggregator.feed(self.command)
        self._set_state(SessionState.COLLECTING_DATA)

    def collect(self) -> PacketSet:
        """
        Poll the transport until END arrives for this regime.

        Blocks indefinitely if the board never sends END; set the cancel
        event to stop.

        Returns:
            The finished regime

        Raises:
            AbortedError: If the cancel event was set
            TransportError: If a read fails; the session is aborted
        """
        self._require(SessionState.COLLECTING_DATA)
        regime_id = self.command.regime_id

        while True:
            self._check_cancel()

            try:
                data = self.transport.receive(timeout=self.poll_timeout)
            except TransportError as e:
                self._abort(f"Receive failed: {e}")
                raise

            lines = self._reassembler.feed(data)
            for index, line in enumerate(lines):
                packet = self._aggregator.feed_line(line)
                if packet is None:
                    continue

                if isinstance(packet, DataPacket):
                    if packet.regime_id == regime_id:
                        self._report_progress()
                elif packet.command == PacketCommand.END and packet.regime_id == regime_id:
                    leftover = len(lines) - index - 1
                    if leftover:
                        logger.debug(f"Ignoring {leftover} lines after END")
                    return self._complete()

    def run(self, command: CommandPacket, confirm: ConfirmCallback) -> PacketSet:
        """
        Run a full regime exchange.

        Args:
            command: TEST command to execute
            confirm: Asks the operator whether the board is ready

        Returns:
            The finished regime
        """
        self.submit(command)
        self.confirm(confirm(command))
        self.transmit()
        return self.collect()

    def abort(self, reason: str = "Aborted by operator") -> None:
        """Abort the session from any state, discarding partial data."""
        if self.state in (SessionState.COMPLETE, SessionState.ABORTED):
            return
        self._abort(reason)

    # === Queries ===

    @property
    def progress(self) -> float:
        """Fraction of the expected sweep received so far."""
        if self.command is None:
            return 0.0
        if self.state == SessionState.COMPLETE:
            return 1.0
        return self._aggregator.progress(self.command.regime_id)

    @property
    def skipped_lines(self) -> int:
        """Number of lines that failed to parse during collection."""
        return len(self._aggregator.warnings)

    # === Helpers ===

    def _complete(self) -> PacketSet:
        self.result = self._aggregator.get(self.command.regime_id)
        self._set_state(SessionState.COMPLETE)
        logger.info(
            f"Regime {self.command.regime_id} complete: {len(self.result)} packets, "
            f"{len(self.result.groups())}/{self.command.expected_groups} groups"
        )
        return self.result

    def _report_progress(self) -> None:
        regime_id = self.command.regime_id
        seen = self._aggregator.groups_seen(regime_id)
        if seen == self._groups_seen:
            return
        self._groups_seen = seen
        expected = self.command.expected_groups
        logger.debug(f"Regime {regime_id}: {seen}/{expected} groups")
        if self.progress_callback:
            self.progress_callback(seen, expected, self._aggregator.progress(regime_id))

    def _check_cancel(self) -> None:
        if self.cancel_event.is_set():
            raise self._abort("Session cancelled")

    def _abort(self, reason: str) -> AbortedError:
        logger.warning(f"Regime session aborted in state {self.state.name}: {reason}")
        self.abort_reason = reason
        self.result = None
        self._reassembler.clear()
        self._aggregator.clear()
        self._set_state(SessionState.ABORTED)
        return AbortedError(reason)

    def _require(self, state: SessionState) -> None:
        if self.state != state:
            raise RuntimeError(
                f"Operation requires state {state.name}, session is {self.state.name}"
            )

    def _set_state(self, state: SessionState) -> None:
        logger.debug(f"Session state {self.state.name} -> {state.name}")
        self.state = state

    def __repr__(self) -> str:
        regime = self.command.regime_id if self.command else None
        return f"RegimeSession(regime={regime}, state={self.state.name})"
