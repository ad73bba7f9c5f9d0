"""Serial port connection management using direct pyserial.

The meter link is half-duplex RS-485 behind a USB dongle, so every exchange
is a blocking write followed by a bounded wait for the answer.
"""

import logging

import serial
from serial import SerialException

from mercury_meter.protocol.constants import CHANNEL_TIMEOUT, READ_BUFFER_SIZE, SERIAL_BAUD

logger = logging.getLogger(__name__)


class SerialConnection:
    """Manages the serial port used to talk to the meter.

    Implements the transport expected by ``MeterSession``: ``write``,
    ``read_with_timeout`` and ``close``. ``close`` may be called any number
    of times; the port is released once.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = SERIAL_BAUD,
        timeout: float = CHANNEL_TIMEOUT,
    ):
        """
        Initialize serial connection manager.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0')
            baudrate: Communication speed (default: 9600)
            timeout: Default read timeout in seconds
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        self._serial: serial.Serial | None = None

    @property
    def connected(self) -> bool:
        """Check if the port is open."""
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """
        Open the serial port in raw 8N1 mode.

        Raises:
            ConnectionError: If the port cannot be opened
        """
        if self.connected:
            logger.debug("Already connected to %s", self.port)
            return

        logger.info("Connecting to serial port %s at %d baud", self.port, self.baudrate)

        try:
            self._serial = serial.Serial()
            self._serial.port = self.port
            self._serial.baudrate = self.baudrate
            self._serial.bytesize = serial.EIGHTBITS
            self._serial.parity = serial.PARITY_NONE
            self._serial.stopbits = serial.STOPBITS_ONE
            self._serial.timeout = self.timeout
            self._serial.open()
        except (OSError, SerialException) as e:
            logger.error("Failed to connect to %s: %s", self.port, e)
            self._serial = None
            raise ConnectionError(f"Cannot open {self.port}: {e}") from e

        logger.info("Successfully connected to %s", self.port)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return

        logger.info("Disconnecting from %s", self.port)

        try:
            if self._serial.is_open:
                self._serial.close()
        except (OSError, SerialException) as e:
            logger.error("Error closing serial port: %s", e)
        finally:
            self._serial = None

    def write(self, data: bytes) -> int:
        """
        Write to serial port and wait until the bytes are on the wire.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            ConnectionError: If not connected or the write fails
        """
        if not self.connected or not self._serial:
            raise ConnectionError("Not connected to serial port")

        try:
            # Discard anything left over from a previous exchange
            self._serial.reset_input_buffer()
            written = self._serial.write(data)
            self._serial.flush()
            return written if written is not None else len(data)
        except (OSError, SerialException) as e:
            logger.error("Write error: %s", e)
            raise ConnectionError(str(e)) from e

    def read_with_timeout(self, max_bytes: int = READ_BUFFER_SIZE, timeout: float | None = None) -> bytes:
        """Read whatever the meter sent, waiting up to ``timeout`` for it.

        Uses a two-stage approach:
        1. Wait for the first byte (blocks up to timeout)
        2. Read the remaining bytes already in the OS buffer

        Args:
            max_bytes: Upper bound on returned bytes
            timeout: Seconds to wait for the first byte (default: self.timeout)

        Returns:
            Received bytes, or b"" if nothing arrived in time

        Raises:
            ConnectionError: If not connected or the read fails
        """
        if not self.connected or not self._serial:
            raise ConnectionError("Not connected to serial port")

        try:
            self._serial.timeout = self.timeout if timeout is None else timeout

            # Stage 1: Wait for first byte
            first = self._serial.read(1)
            if not first:
                return b""

            # Stage 2: Read all bytes already buffered in the OS
            available = min(self._serial.in_waiting, max_bytes - 1)
            if available > 0:
                return first + self._serial.read(available)

            return first
        except (OSError, SerialException) as e:
            logger.error("Read error: %s", e)
            raise ConnectionError(str(e)) from e

    def __enter__(self):
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
