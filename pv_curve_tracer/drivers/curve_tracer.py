"""
Curve Tracer Driver Module

Async driver for the PV curve tracer board.
Wraps the protocol package for event-loop hosts.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

from ..config import SERIAL_CONFIG, SESSION_CONFIG
from ..protocol import (
    CommandPacket,
    PacketSet,
    RegimeSession,
    SerialTransport,
    find_port,
    read_log,
)
from ..protocol.exceptions import PVProtocolError
from ..protocol.session import ConfirmCallback, ProgressCallback
from .base import BaseDriver

logger = logging.getLogger(__name__)


class CurveTracerDriver(BaseDriver):
    """
    Driver for the PV curve tracer board.

    Attributes:
        port: Serial port path (None picks the last enumerated port)
        baudrate: Communication speed
        timeout: Receive timeout in seconds
        poll_timeout: Receive timeout per collection poll
    """

    def __init__(
        self,
        name: str = "CurveTracerDriver",
        config: Optional[Dict[str, Any]] = None,
        transport=None
    ):
        """
        Initialize curve tracer driver.

        Args:
            name: Driver name
            config: Configuration with keys:
                - port: Serial port (default: auto-detect)
                - baudrate: Baud rate (default: 28800)
                - timeout: Receive timeout (default: 1.0)
                - poll_timeout: Collection poll timeout (default: 0.1)
            transport: Already-built transport to use instead of opening
                a serial port
        """
        super().__init__(name=name, config=config)

        self.port: Optional[str] = self.config.get("port", SERIAL_CONFIG["port"])
        self.baudrate: int = self.config.get("baudrate", SERIAL_CONFIG["baudrate"])
        self.timeout: float = self.config.get("timeout", SERIAL_CONFIG["timeout"])
        self.poll_timeout: float = self.config.get(
            "poll_timeout", SESSION_CONFIG["poll_timeout"]
        )

        self._transport = transport
        self._owns_transport = transport is None
        self._session: Optional[RegimeSession] = None

    async def connect(self) -> bool:
        """
        Open the serial link to the board.

        Returns:
            bool: True if connection successful
        """
        if self._transport is not None and not self._owns_transport:
            self._connected = True
            return True

        try:
            port = self.port or find_port()
            logger.info(f"Connecting to curve tracer on {port} at {self.baudrate} bps")

            self._transport = SerialTransport(
                port=port,
                baudrate=self.baudrate,
                timeout=self.timeout
            )
            await self._run_sync(self._transport.open)
            self.port = port

            self._connected = True
            logger.info(f"Connected to curve tracer on {port}")
            return True

        except PVProtocolError as e:
            logger.error(f"Failed to connect to curve tracer: {e}")
            await self.disconnect()
            return False

    async def disconnect(self) -> None:
        """Disconnect from the board."""
        # The session owns its state; stop it at the next poll
        if self._session is not None:
            self._session.cancel_event.set()

        if self._transport is not None and self._owns_transport:
            self._transport.close()
            self._transport = None

        self._connected = False
        logger.info("Disconnected from curve tracer")

    async def reset(self) -> None:
        """Flush buffered input from the board."""
        self._require_connection()

        await self._run_sync(self._transport.flush)
        logger.info("Curve tracer input flushed")

    async def identify(self) -> str:
        """
        Return board identification string.

        Returns:
            str: Board description with the port in use
        """
        if self._connected:
            return f"PV-Curve-Tracer,{self.port or 'injected'},{self.baudrate}"
        return "PV-Curve-Tracer,Unknown"

    # === Regime Methods ===

    async def run_regime(
        self,
        command: CommandPacket,
        confirm: ConfirmCallback,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> PacketSet:
        """
        Run one test regime and return its data.

        Args:
            command: Validated TEST command
            confirm: Operator readiness check, called before transmission
            cancel_event: Set to abort collection
            progress_callback: Function(groups_seen, groups_expected, fraction)

        Returns:
            PacketSet: Finished regime

        Raises:
            ValidationError: If the command is not a valid TEST command
            AbortedError: If the operator declined or cancel_event was set
            TransportError: If the serial link failed
        """
        self._require_connection()

        self._session = RegimeSession(
            self._transport,
            poll_timeout=self.poll_timeout,
            cancel_event=cancel_event,
            progress_callback=progress_callback,
        )
        try:
            return await self._run_sync(self._session.run, command, confirm)
        finally:
            self._session = None

    async def replay_log(self, path) -> List[PacketSet]:
        """
        Rebuild regimes from a log file.

        Does not need a connection.
        """
        return await self._run_sync(read_log, path)

    # === Helper Methods ===

    async def _run_sync(self, func, *args, **kwargs) -> Any:
        """
        Run synchronous function in executor.

        The protocol stack blocks on serial reads, so it runs in a thread
        pool to keep the event loop free.
        """
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))
