"""
mhz19_lib - Python library for Winsen MH-Z19 CO2 sensors over a serial UART.

Implements the "read gas concentration" (0x86) transaction.
"""

from mhz19_lib.client import SensorClient
from mhz19_lib.errors import (
    ChecksumError,
    InvalidResponse,
    MalformedFrameError,
    MHZ19Error,
    TransportError,
)
from mhz19_lib.models import ChecksumMismatch, MalformedFrame, Reading, SessionState

__version__ = "0.1.0"

__all__ = [
    "SensorClient",
    "Reading",
    "ChecksumMismatch",
    "MalformedFrame",
    "SessionState",
    "MHZ19Error",
    "TransportError",
    "InvalidResponse",
    "ChecksumError",
    "MalformedFrameError",
]
