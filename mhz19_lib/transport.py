"""Serial transport layer for MH-Z19 sensor communication."""

import logging
from typing import Optional, Protocol

from mhz19_lib import protocol
from mhz19_lib.errors import TransportError

logger = logging.getLogger(__name__)


class SerialLike(Protocol):
    """Protocol for serial port interface (allows test doubles)."""

    def write(self, data: bytes) -> Optional[int]:
        """Write bytes to serial port."""
        ...

    def read(self, size: int = 1) -> bytes:
        """Read up to size bytes from serial port."""
        ...

    def flush(self) -> None:
        """Flush output buffer (force transmission)."""
        ...

    def reset_input_buffer(self) -> None:
        """Flush input buffer."""
        ...

    def close(self) -> None:
        """Close serial port."""
        ...

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        ...


class Transport:
    """Wrapper around pyserial exposing blocking byte-level primitives.

    Any failure reported by the underlying port is re-raised as
    TransportError. A short read (timeout) is not an error at this layer;
    the caller sees fewer bytes than requested.
    """

    def __init__(self, serial_port: SerialLike, name: str = "") -> None:
        """Initialize transport with a serial port instance.

        Args:
            serial_port: Object implementing SerialLike protocol
                        (e.g., serial.Serial or FakeMHZ19Serial for testing)
            name: Port name used in log messages
        """
        self._port = serial_port
        self.name = name or getattr(serial_port, "port", None) or "<serial>"

    @classmethod
    def open(
        cls,
        port: str,
        baud: int = protocol.DEFAULT_BAUD,
        timeout_s: float = protocol.DEFAULT_TIMEOUT_S,
    ) -> "Transport":
        """Open a real serial port (requires pyserial).

        The port is configured 8N1 without flow control. timeout_s bounds
        both the whole read and the gap between two bytes.

        Args:
            port: Serial port device name (e.g., "/dev/ttyUSB0")
            baud: Baud rate. Default 9600 matches the MH-Z19 UART.
            timeout_s: Read timeout in seconds.

        Returns:
            Transport instance wrapping opened serial port

        Raises:
            TransportError: If port cannot be opened
        """
        import serial

        try:
            ser = serial.Serial(
                port=port,
                baudrate=baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=timeout_s,
                inter_byte_timeout=timeout_s,
                rtscts=False,
                dsrdtr=False,
                xonxoff=False,
            )
        except (serial.SerialException, ValueError, OSError) as e:
            raise TransportError(f"Failed to open {port} at {baud} baud: {e}") from e

        logger.info(f"Opened serial port {port} at {baud} baud, timeout={timeout_s}s")
        return cls(ser, name=port)

    def close(self) -> None:
        """Close the serial port."""
        if self._port.is_open:
            self._port.close()
            logger.info(f"Closed serial port {self.name}")

    @property
    def is_open(self) -> bool:
        """Check if port is currently open."""
        return self._port.is_open

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes to port and wait until they are transmitted.

        Args:
            data: Raw bytes to send

        Raises:
            TransportError: If the port is closed or the write fails
        """
        if not self._port.is_open:
            raise TransportError(f"Serial port {self.name} is not open")

        try:
            sent = self._port.write(data)
            self._port.flush()
        except Exception as e:
            raise TransportError(f"Failed to write to {self.name}: {e}") from e

        if sent is not None and sent != len(data):
            raise TransportError(f"Short write to {self.name}: {sent} of {len(data)} bytes")
        logger.debug(f"Sent {len(data)} bytes: {data.hex(' ')}")

    def read_exact(self, size: int) -> bytes:
        """Read up to size bytes, stopping early only on timeout.

        Args:
            size: Number of bytes wanted

        Returns:
            The bytes read; shorter than size if the port timed out

        Raises:
            TransportError: If the port is closed or the read fails
        """
        if not self._port.is_open:
            raise TransportError(f"Serial port {self.name} is not open")

        buf = bytearray()
        try:
            while len(buf) < size:
                chunk = self._port.read(size - len(buf))
                if not chunk:
                    break
                buf.extend(chunk)
        except Exception as e:
            raise TransportError(f"Failed to read from {self.name}: {e}") from e

        if len(buf) < size:
            logger.debug(f"Read timed out after {len(buf)} of {size} bytes")
        logger.debug(f"Received {len(buf)} bytes: {bytes(buf).hex(' ')}")
        return bytes(buf)

    def flush_input(self) -> None:
        """Discard all pending input from device.

        Drops bytes left over from an earlier response that arrived after
        its read had already timed out.

        Raises:
            TransportError: If port is closed or the flush fails
        """
        if not self._port.is_open:
            raise TransportError(f"Serial port {self.name} is not open")

        try:
            self._port.reset_input_buffer()
        except Exception as e:
            raise TransportError(f"Failed to flush input on {self.name}: {e}") from e
