"""Diagnose what happens during one sensor transaction."""

import sys
from typing import Optional

from mhz19_lib import protocol
from mhz19_lib.errors import TransportError
from mhz19_lib.models import Reading
from mhz19_lib.transport import SerialLike, Transport


def diagnose_connection(port="/dev/ttyAMA0", serial_port: Optional[SerialLike] = None) -> int:
    """Send one request, dump the raw response and what it decodes to.

    Returns:
        0 if the sensor answered with a valid reading, 1 otherwise
    """
    print(f"\n=== Opening {port} ===")
    try:
        if serial_port is not None:
            transport = Transport(serial_port, name=port)
        else:
            transport = Transport.open(port)
    except TransportError as e:
        print(f"Open failed: {e}")
        return 1

    try:
        request = protocol.encode_request()
        print(f"\n=== Sending request: {request.hex(' ')} ===")
        transport.flush_input()
        transport.write_bytes(request)

        raw = transport.read_exact(protocol.FRAME_LENGTH)
        print(f"RX ({len(raw)} bytes): {raw.hex(' ') or '<nothing>'}")
    except TransportError as e:
        print(f"\n*** TRANSPORT FAILURE: {e} ***")
        return 1
    finally:
        transport.close()

    result = protocol.decode_response(raw)
    if isinstance(result, Reading):
        print(f"\nCO2: {result.concentration} ppm")
        print(f"Temperature: {result.temperature} C")
        return 0

    print(f"\n*** INVALID RESPONSE: {result} ***")
    if not raw:
        print("\nPossible reasons:")
        print("1. TX/RX wires swapped")
        print("2. Wrong port or baud rate (sensor uses 9600 8N1)")
        print("3. Sensor still warming up or not powered")
    return 1


if __name__ == "__main__":
    port = sys.argv[1] if len(sys.argv) > 1 else "/dev/ttyAMA0"
    sys.exit(diagnose_connection(port))
