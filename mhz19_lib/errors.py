"""Custom exceptions for the MH-Z19 sensor library."""

from typing import Union

from mhz19_lib.models import ChecksumMismatch, MalformedFrame


class MHZ19Error(Exception):
    """Base exception for all MH-Z19 library errors."""

    pass


class TransportError(MHZ19Error):
    """Raised when serial communication fails (open, write or read).

    A transport failure means the hardware link is gone or broken. Callers
    treat it as fatal.
    """

    pass


class InvalidResponse(MHZ19Error):
    """Raised when the sensor answers with a frame that fails validation.

    Recoverable: the next transaction starts from a clean slate.

    Attributes:
        failure: The decode outcome describing what was wrong with the frame.
    """

    def __init__(self, failure: Union[ChecksumMismatch, MalformedFrame]) -> None:
        super().__init__(str(failure))
        self.failure = failure


class ChecksumError(InvalidResponse):
    """Raised when a response frame's checksum byte does not match its payload."""

    failure: ChecksumMismatch


class MalformedFrameError(InvalidResponse):
    """Raised when a response frame has the wrong length or header bytes."""

    failure: MalformedFrame
