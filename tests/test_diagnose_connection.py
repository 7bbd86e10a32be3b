"""Tests for the one-shot connection diagnostic."""

from fakes.fake_serial import FakeMHZ19Serial
from tools.diagnose_connection import diagnose_connection


def test_valid_reading(capsys) -> None:
    fake_serial = FakeMHZ19Serial(concentration=415, temperature=25)

    assert diagnose_connection("/dev/fake", serial_port=fake_serial) == 0

    out = capsys.readouterr().out
    assert "ff 01 86 00 00 00 00 00 79" in out
    assert "CO2: 415 ppm" in out
    assert "Temperature: 25 C" in out
    assert not fake_serial.is_open


def test_checksum_error(capsys) -> None:
    fake_serial = FakeMHZ19Serial()
    fake_serial.corrupt_checksum = True

    assert diagnose_connection("/dev/fake", serial_port=fake_serial) == 1
    assert "checksum mismatch" in capsys.readouterr().out


def test_no_response(capsys) -> None:
    fake_serial = FakeMHZ19Serial()
    fake_serial.truncate_to = 0

    assert diagnose_connection("/dev/fake", serial_port=fake_serial) == 1

    out = capsys.readouterr().out
    assert "<nothing>" in out
    assert "Possible reasons" in out


def test_transport_failure(capsys) -> None:
    fake_serial = FakeMHZ19Serial()
    fake_serial.fail_write = True

    assert diagnose_connection("/dev/fake", serial_port=fake_serial) == 1
    assert "TRANSPORT FAILURE" in capsys.readouterr().out
