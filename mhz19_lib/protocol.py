"""Wire protocol constants and frame codec for the MH-Z19 CO2 sensor.

Every exchange is a fixed 9-byte request followed by a fixed 9-byte response.
There is no length prefix or delimiter; frame length and the trailing
checksum byte are the only integrity checks.

Request:  FF 01 86 00 00 00 00 00 CS
Response: FF 86 HH LL TT SS U1 U2 CS
"""

from typing import Final, Union

from mhz19_lib.models import ChecksumMismatch, MalformedFrame, Reading

# ============================================================================
# Serial Line Settings
# ============================================================================

DEFAULT_BAUD: Final[int] = 9600

# Bounded wait for the next byte of a response
DEFAULT_TIMEOUT_S: Final[float] = 1.0

# ============================================================================
# Frame Layout
# ============================================================================

FRAME_LENGTH: Final[int] = 9

START_BYTE: Final[int] = 0xFF
SENSOR_NUMBER: Final[int] = 0x01

CMD_READ_GAS_CONCENTRATION: Final[int] = 0x86

# Response byte offsets
IDX_START: Final[int] = 0
IDX_COMMAND: Final[int] = 1
IDX_CONCENTRATION_HIGH: Final[int] = 2
IDX_CONCENTRATION_LOW: Final[int] = 3
IDX_TEMPERATURE: Final[int] = 4
IDX_STATUS: Final[int] = 5
IDX_CHECKSUM: Final[int] = 8

# Temperature byte is degrees Celsius plus this offset
TEMPERATURE_OFFSET: Final[int] = 40

DecodeResult = Union[Reading, ChecksumMismatch, MalformedFrame]


def checksum(frame: bytes) -> int:
    """Compute the checksum of a frame.

    The checksum covers payload bytes 1..7 (start byte and checksum slot are
    excluded) and is the two's-complement low byte of their sum.

    Args:
        frame: A full frame, or at least its first 8 bytes.

    Returns:
        Checksum value 0-255
    """
    total = sum(frame[1:IDX_CHECKSUM]) & 0xFF
    return (0xFF - total + 1) & 0xFF


def _with_checksum(payload: bytes) -> bytes:
    return payload + bytes([checksum(payload)])


_REQUEST: Final[bytes] = _with_checksum(
    bytes([START_BYTE, SENSOR_NUMBER, CMD_READ_GAS_CONCENTRATION, 0, 0, 0, 0, 0])
)


def encode_request() -> bytes:
    """Build the "read gas concentration" request frame.

    Returns:
        9-byte request frame (always FF 01 86 00 00 00 00 00 79)
    """
    return _REQUEST


def encode_response(concentration: int, temperature: int, status: int = 0) -> bytes:
    """Build a valid response frame, as the sensor would send it.

    Args:
        concentration: CO2 concentration in ppm (0-65535)
        temperature: Temperature in degrees Celsius
            (-40..215, the range the offset byte can carry)
        status: Status byte (0-255)

    Returns:
        9-byte response frame with correct checksum

    Raises:
        ValueError: If any field is out of range
    """
    if not (0 <= concentration <= 0xFFFF):
        raise ValueError(f"concentration must be 0-65535, got {concentration}")
    temperature_byte = temperature + TEMPERATURE_OFFSET
    if not (0 <= temperature_byte <= 0xFF):
        raise ValueError(
            f"temperature must be {-TEMPERATURE_OFFSET}-{0xFF - TEMPERATURE_OFFSET}, "
            f"got {temperature}"
        )
    if not (0 <= status <= 0xFF):
        raise ValueError(f"status must be 0-255, got {status}")

    payload = bytes(
        [
            START_BYTE,
            CMD_READ_GAS_CONCENTRATION,
            concentration >> 8,
            concentration & 0xFF,
            temperature_byte,
            status,
            0,
            0,
        ]
    )
    return _with_checksum(payload)


def decode_response(frame: bytes) -> DecodeResult:
    """Validate a response frame and extract its reading.

    Never raises for bad input; the caller decides what to do with a
    ChecksumMismatch or MalformedFrame.

    Args:
        frame: Raw bytes read from the sensor

    Returns:
        Reading if the frame is valid, ChecksumMismatch if the checksum byte
        does not match the payload, MalformedFrame if the frame has the wrong
        length or unexpected header bytes.
    """
    frame = bytes(frame)

    if len(frame) != FRAME_LENGTH:
        return MalformedFrame(
            reason=f"expected {FRAME_LENGTH} bytes, got {len(frame)}", frame=frame
        )

    expected = checksum(frame)
    observed = frame[IDX_CHECKSUM]
    if expected != observed:
        return ChecksumMismatch(expected=expected, observed=observed, frame=frame)

    if frame[IDX_START] != START_BYTE:
        return MalformedFrame(
            reason=f"bad start byte 0x{frame[IDX_START]:02x}", frame=frame
        )
    if frame[IDX_COMMAND] != CMD_READ_GAS_CONCENTRATION:
        return MalformedFrame(
            reason=f"unexpected command byte 0x{frame[IDX_COMMAND]:02x}", frame=frame
        )

    concentration = (frame[IDX_CONCENTRATION_HIGH] << 8) | frame[IDX_CONCENTRATION_LOW]
    temperature = frame[IDX_TEMPERATURE] - TEMPERATURE_OFFSET
    return Reading(concentration=concentration, temperature=temperature)
