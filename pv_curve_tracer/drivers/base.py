"""
Base Driver Module

Abstract interface for curve tracer drivers. A driver holds the link to
the board and produces regimes, either by running a sweep live or by
replaying a log file.
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config import sweep_command
from ..protocol import CommandPacket, PacketSet
from ..protocol.session import ConfirmCallback, ProgressCallback


class BaseDriver(ABC):
    """
    Abstract curve tracer driver.

    Attributes:
        name: Driver identifier name
        config: Link settings (port, baudrate, timeouts)
    """

    def __init__(
        self,
        name: str = "BaseDriver",
        config: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.config = config or {}
        self._connected = False

    @abstractmethod
    async def connect(self) -> bool:
        """
        Open the link to the board.

        Returns:
            bool: True if connection successful
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the link, cancelling any regime in progress."""
        ...

    @abstractmethod
    async def run_regime(
        self,
        command: CommandPacket,
        confirm: ConfirmCallback,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> PacketSet:
        """Run one TEST command on the board and return its regime."""
        ...

    @abstractmethod
    async def replay_log(self, path: Union[str, Path]) -> List[PacketSet]:
        """Rebuild regimes from a log file."""
        ...

    async def run_sweep(
        self,
        regime_id: int,
        mode: str,
        confirm: ConfirmCallback,
        start: Optional[float] = None,
        end: Optional[float] = None,
        resolution: Optional[float] = None,
        **kwargs
    ) -> PacketSet:
        """
        Run a sweep within a board mode's preset range.

        Unset voltages fall back to the mode's full range. Extra keyword
        arguments go to run_regime().

        Raises:
            ValidationError: If the mode is unknown or a value is out of range
        """
        command = sweep_command(regime_id, mode, start, end, resolution)
        return await self.run_regime(command, confirm, **kwargs)

    async def is_connected(self) -> bool:
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected:
            raise RuntimeError(f"{self.name} is not connected to the curve tracer")
