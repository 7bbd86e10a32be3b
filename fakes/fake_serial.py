"""Fake serial port that simulates an MH-Z19 sensor's UART behavior.

Answers each "read gas concentration" request with a 9-byte response frame
and records every write/read so tests can check transaction ordering.
"""

import logging
import threading
import time
from typing import List, Optional, Tuple

from mhz19_lib import protocol

logger = logging.getLogger(__name__)


class FakeMHZ19Serial:
    """Deterministic simulator of an MH-Z19 sensor.

    Knobs:
    - concentration / temperature: values encoded in the next response
    - corrupt_checksum: send a response whose checksum byte is off by one
    - truncate_to: send only the first N bytes of the response
    - fail_write / fail_read: raise OSError like a disconnected adapter
    - write_delay_s: sleep inside write() to widen race windows in tests
    """

    def __init__(
        self,
        concentration: int = 415,
        temperature: int = 25,
        status: int = 0,
        port: str = "/dev/fake-mhz19",
    ) -> None:
        """Initialize fake sensor.

        Args:
            concentration: CO2 concentration in ppm to report
            temperature: Temperature in degrees Celsius to report
            status: Status byte to report
            port: Port name reported to the transport
        """
        self.concentration = concentration
        self.temperature = temperature
        self.status = status
        self.port = port

        self.corrupt_checksum = False
        self.truncate_to: Optional[int] = None
        self.fail_write = False
        self.fail_read = False
        self.write_delay_s = 0.0

        self.is_open = True

        # Pending output towards the host
        self._output = bytearray()
        self._lock = threading.Lock()

        # ("write" | "read", thread name, bytes)
        self.events: List[Tuple[str, str, bytes]] = []
        self.requests_received = 0

    def close(self) -> None:
        """Close the fake serial port."""
        self.is_open = False
        logger.debug("FakeMHZ19Serial closed")

    def write(self, data: bytes) -> int:
        """Write data to device (from host perspective).

        A complete request frame queues one response frame.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written
        """
        if not self.is_open:
            raise OSError("Port is closed")
        if self.fail_write:
            raise OSError(5, "Input/output error")

        self._record("write", data)
        if self.write_delay_s:
            time.sleep(self.write_delay_s)

        if bytes(data) == protocol.encode_request():
            with self._lock:
                self.requests_received += 1
                self._output.extend(self._build_response())
        else:
            logger.debug(f"FakeMHZ19Serial ignoring unknown command: {bytes(data).hex(' ')}")

        return len(data)

    def read(self, size: int = 1) -> bytes:
        """Read up to size bytes of pending output.

        Returns b"" when nothing is pending, like a pyserial read timeout.
        """
        if not self.is_open:
            raise OSError("Port is closed")
        if self.fail_read:
            raise OSError(5, "Input/output error")

        with self._lock:
            chunk = bytes(self._output[:size])
            del self._output[:size]
        if chunk:
            self._record("read", chunk)
        return chunk

    def flush(self) -> None:
        """Flush output buffer (no-op for fake serial)."""
        pass

    def reset_input_buffer(self) -> None:
        """Drop pending output (host input buffer)."""
        with self._lock:
            self._output.clear()

    def load_stale_bytes(self, data: bytes) -> None:
        """Put bytes in the host input buffer, as a late response would."""
        with self._lock:
            self._output.extend(data)

    def _build_response(self) -> bytes:
        frame = bytearray(
            protocol.encode_response(self.concentration, self.temperature, self.status)
        )
        if self.corrupt_checksum:
            frame[protocol.IDX_CHECKSUM] = (frame[protocol.IDX_CHECKSUM] + 1) & 0xFF
        if self.truncate_to is not None:
            del frame[self.truncate_to :]
        return bytes(frame)

    def _record(self, kind: str, data: bytes) -> None:
        with self._lock:
            self.events.append((kind, threading.current_thread().name, bytes(data)))
