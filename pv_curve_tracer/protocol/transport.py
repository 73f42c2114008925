"""
Serial transport layer.

Provides serial communication with the curve tracer board, with a
background receive thread feeding a queue.
"""

import logging
import threading
from queue import Empty, Queue
from typing import Optional

import serial
from serial.tools import list_ports

from .exceptions import TransportError

logger = logging.getLogger(__name__)

# Board UART speed
DEFAULT_BAUDRATE = 28800


def find_port() -> str:
    """
    Pick the serial port the board is most likely attached to.

    Returns:
        Device name of the last enumerated port

    Raises:
        TransportError: If no serial ports are available
    """
    ports = list_ports.comports()
    if not ports:
        raise TransportError("No serial ports found")
    port = ports[-1].device
    logger.info(f"Using serial port {port}")
    return port


class SerialTransport:
    """Serial communication transport layer."""

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = 1.0,
        read_timeout: float = 0.1
    ):
        """
        Initialize serial transport.

        Args:
            port: Serial port name (e.g., '/dev/ttyACM0' or 'COM3')
            baudrate: Baud rate (default: 28800)
            timeout: Default receive timeout in seconds
            read_timeout: Internal read timeout for background thread
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.read_timeout = read_timeout
        self._serial: Optional[serial.Serial] = None
        self._rx_queue: Queue = Queue()
        self._rx_thread: Optional[threading.Thread] = None
        self._rx_error: Optional[Exception] = None
        self._running = False

    def open(self) -> None:
        """Open serial port and start receive thread."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.read_timeout
            )
            logger.info(f"Opened serial port {self.port} at {self.baudrate} bps")
        except serial.SerialException as e:
            raise TransportError(
                f"Failed to open {self.port}: {e} "
                f"(try 'sudo chmod a+rw {self.port}' if access is denied)"
            ) from e

        self._rx_error = None
        self._running = True
        self._rx_thread = threading.Thread(target=self._rx_loop, daemon=True)
        self._rx_thread.start()

    def close(self) -> None:
        """Close serial port and stop receive thread."""
        self._running = False

        if self._rx_thread:
            self._rx_thread.join(timeout=1.0)
            self._rx_thread = None

        if self._serial:
            try:
                self._serial.close()
            except serial.SerialException as e:
                logger.warning(f"Error closing {self.port}: {e}")
            self._serial = None
            logger.info(f"Closed serial port {self.port}")

    def send(self, data: bytes) -> int:
        """
        Send data over serial port.

        Args:
            data: Bytes to send

        Returns:
            Number of bytes sent

        Raises:
            TransportError: If port is not open or the write fails
        """
        if not self._serial or not self._serial.is_open:
            raise TransportError("Serial port not open")

        try:
            count = self._serial.write(data)
            logger.debug(f"TX ({count} bytes): {data!r}")
            return count
        except serial.SerialException as e:
            raise TransportError(f"Send failed: {e}") from e

    def receive(self, timeout: Optional[float] = None) -> bytes:
        """
        Receive data from queue.

        Args:
            timeout: Timeout in seconds (None uses default)

        Returns:
            Received bytes (empty if nothing arrived in time)

        Raises:
            TransportError: If the receive thread stopped on a serial error
        """
        try:
            return self._rx_queue.get(timeout=timeout or self.timeout)
        except Empty:
            self._check_rx_error()
            return b''

    def receive_all(self) -> bytes:
        """Receive all available data from queue."""
        data = bytearray()
        while True:
            try:
                data.extend(self._rx_queue.get_nowait())
            except Empty:
                break
        if not data:
            self._check_rx_error()
        return bytes(data)

    def flush(self) -> None:
        """Flush receive queue and serial buffers."""
        while not self._rx_queue.empty():
            try:
                self._rx_queue.get_nowait()
            except Empty:
                break

        if self._serial and self._serial.is_open:
            try:
                self._serial.reset_input_buffer()
                self._serial.reset_output_buffer()
            except serial.SerialException as e:
                raise TransportError(f"Flush failed: {e}") from e

    def _check_rx_error(self) -> None:
        if self._rx_error is not None:
            raise TransportError(f"Receive failed: {self._rx_error}") from self._rx_error

    def _rx_loop(self) -> None:
        """Background receive thread."""
        while self._running and self._serial and self._serial.is_open:
            try:
                data = self._serial.read(256)
                if data:
                    logger.debug(f"RX ({len(data)} bytes): {data!r}")
                    self._rx_queue.put(data)
            except serial.SerialException as e:
                logger.error(f"RX error: {e}")
                self._rx_error = e
                break

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        return self._serial is not None and self._serial.is_open

    def __enter__(self) -> 'SerialTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self.port}, {self.baudrate}, {status})"
