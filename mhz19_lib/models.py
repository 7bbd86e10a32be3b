"""Data models for the MH-Z19 sensor library."""

from dataclasses import dataclass
from enum import Enum


class SessionState(Enum):
    """Sensor session states.

    IDLE -> IN_TRANSACTION when a poll starts, back to IDLE when it completes
    (successfully or with a bad frame). A transport failure moves the session
    to TERMINATED, which is final.
    """

    IDLE = "idle"
    IN_TRANSACTION = "in_transaction"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Reading:
    """A validated gas concentration reading.

    Attributes:
        concentration: CO2 concentration in parts per million (0-65535).
        temperature: Sensor temperature in degrees Celsius.
    """

    concentration: int
    temperature: int

    def __post_init__(self) -> None:
        """Validate reading data."""
        if not (0 <= self.concentration <= 0xFFFF):
            raise ValueError(f"concentration must be 0-65535, got {self.concentration}")


@dataclass(frozen=True)
class ChecksumMismatch:
    """Decode outcome for a frame whose checksum byte does not match.

    Attributes:
        expected: Checksum computed over the received payload bytes.
        observed: Checksum byte actually carried by the frame.
        frame: The raw frame as received.
    """

    expected: int
    observed: int
    frame: bytes

    def __str__(self) -> str:
        return (
            f"checksum mismatch: expected 0x{self.expected:02x}, "
            f"got 0x{self.observed:02x} (frame {self.frame.hex(' ')})"
        )


@dataclass(frozen=True)
class MalformedFrame:
    """Decode outcome for a frame that is structurally invalid.

    Attributes:
        reason: Human readable description of the problem.
        frame: The raw bytes as received (possibly truncated or empty).
    """

    reason: str
    frame: bytes

    def __str__(self) -> str:
        return f"malformed frame: {self.reason} (frame {self.frame.hex(' ') or '<empty>'})"
