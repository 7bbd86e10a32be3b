"""Sensor client running one request/response transaction per poll."""

import logging
import threading
from typing import Optional

from mhz19_lib import protocol
from mhz19_lib.errors import ChecksumError, MalformedFrameError, TransportError
from mhz19_lib.models import ChecksumMismatch, MalformedFrame, Reading, SessionState
from mhz19_lib.transport import SerialLike, Transport

logger = logging.getLogger(__name__)


class SensorClient:
    """Owns the serial transport and serializes poll transactions on it.

    The transport is a single non-reentrant resource: a lock is held for the
    full write+read of each transaction so concurrent callers never interleave
    their bytes. Callers block on the lock until it is free.

    A TransportError during a transaction terminates the session. Every later
    poll() raises TransportError without touching the port.
    """

    def __init__(self, transport: Transport) -> None:
        """Initialize client.

        Args:
            transport: Transport this client takes exclusive ownership of.
        """
        self._transport = transport
        self._lock = threading.Lock()
        self._state = SessionState.IDLE

    @classmethod
    def open(
        cls,
        port: Optional[str] = None,
        baud: int = protocol.DEFAULT_BAUD,
        timeout_s: float = protocol.DEFAULT_TIMEOUT_S,
        serial_port: Optional[SerialLike] = None,
    ) -> "SensorClient":
        """Create a client over a serial port.

        Args:
            port: Serial port name (e.g., "/dev/ttyUSB0"). Required if serial_port not given.
            baud: Baud rate. Default 9600.
            timeout_s: Read timeout in seconds.
            serial_port: Pre-configured serial port object (for testing). If provided,
                        port, baud and timeout_s are ignored.

        Returns:
            SensorClient ready to poll

        Raises:
            TransportError: If the port cannot be opened
        """
        if serial_port is not None:
            return cls(Transport(serial_port, name=port or ""))
        if port is None:
            raise ValueError("Must provide either 'port' or 'serial_port'")
        return cls(Transport.open(port, baud=baud, timeout_s=timeout_s))

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def port_name(self) -> str:
        """Name of the serial port this client owns."""
        return self._transport.name

    def close(self) -> None:
        """Close the serial port. Waits for an in-flight transaction."""
        with self._lock:
            self._transport.close()

    def poll(self) -> Reading:
        """Run one gas concentration transaction against the sensor.

        Exactly one request write followed by one response read, with no
        retries. Decoding happens after the transport is released.

        Returns:
            Validated Reading

        Raises:
            TransportError: If the port fails or the session was terminated
                by an earlier transport failure (fatal)
            ChecksumError: If the response checksum does not match (recoverable)
            MalformedFrameError: If the response is truncated or has bad
                header bytes (recoverable)
        """
        request = protocol.encode_request()

        with self._lock:
            if self._state == SessionState.TERMINATED:
                raise TransportError(
                    f"Session on {self.port_name} terminated by an earlier transport failure"
                )

            self._state = SessionState.IN_TRANSACTION
            try:
                self._transport.flush_input()
                self._transport.write_bytes(request)
                raw = self._transport.read_exact(protocol.FRAME_LENGTH)
            except TransportError:
                self._state = SessionState.TERMINATED
                raise
            self._state = SessionState.IDLE

        result = protocol.decode_response(raw)
        if isinstance(result, ChecksumMismatch):
            raise ChecksumError(result)
        if isinstance(result, MalformedFrame):
            raise MalformedFrameError(result)

        logger.debug(f"Reading: {result.concentration} ppm, {result.temperature} C")
        return result
