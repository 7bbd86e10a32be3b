"""Tests for exporter configuration and command line parsing."""

import pytest

import run_exporter
from api.config import ExporterConfig, env_defaults, parse_listen_address
from mhz19_lib.errors import TransportError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "SERIAL_PORT",
        "LISTEN_ADDRESS",
        "SERIAL_BAUD",
        "SERIAL_TIMEOUT",
        "METRIC_PREFIX",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    "address,expected",
    [
        (":8080", ("0.0.0.0", 8080)),
        ("127.0.0.1:9000", ("127.0.0.1", 9000)),
        ("[::1]:8080", ("::1", 8080)),
        ("localhost:80", ("localhost", 80)),
    ],
)
def test_parse_listen_address(address, expected) -> None:
    assert parse_listen_address(address) == expected


@pytest.mark.parametrize("address", ["8080", ":http", ":0", ":70000", ""])
def test_parse_listen_address_invalid(address) -> None:
    with pytest.raises(ValueError):
        parse_listen_address(address)


def test_defaults() -> None:
    config = ExporterConfig(portname="/dev/ttyAMA0")

    assert config.listen_address == ":8080"
    assert config.host == "0.0.0.0"
    assert config.bind_port == 8080
    assert config.baud == 9600
    assert config.timeout_s == 1.0
    assert config.metric_prefix == "mhz19"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"baud": 0},
        {"timeout_s": 0},
        {"metric_prefix": ""},
        {"listen_address": "nope"},
        {"log_level": "verbose"},
    ],
)
def test_invalid_config_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        ExporterConfig(portname="/dev/ttyAMA0", **kwargs)


def test_env_defaults_only_set_variables(monkeypatch) -> None:
    monkeypatch.setenv("SERIAL_PORT", "/dev/ttyUSB1")
    monkeypatch.setenv("SERIAL_BAUD", "fast")

    assert env_defaults() == {"portname": "/dev/ttyUSB1", "baud": "fast"}


def test_cli_reads_all_env_values(monkeypatch) -> None:
    monkeypatch.setenv("SERIAL_PORT", "/dev/ttyUSB1")
    monkeypatch.setenv("LISTEN_ADDRESS", "127.0.0.1:9101")
    monkeypatch.setenv("SERIAL_BAUD", "19200")
    monkeypatch.setenv("SERIAL_TIMEOUT", "0.5")
    monkeypatch.setenv("METRIC_PREFIX", "lab")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = run_exporter.parse_config([])

    assert config == ExporterConfig(
        portname="/dev/ttyUSB1",
        listen_address="127.0.0.1:9101",
        baud=19200,
        timeout_s=0.5,
        metric_prefix="lab",
        log_level="DEBUG",
    )


def test_with_overrides_ignores_none() -> None:
    config = ExporterConfig(portname="/dev/ttyAMA0")

    updated = config.with_overrides(portname=None, listen_address=":9000")

    assert updated.portname == "/dev/ttyAMA0"
    assert updated.bind_port == 9000


def test_cli_flags(monkeypatch) -> None:
    monkeypatch.setenv("SERIAL_PORT", "/dev/ttyUSB1")

    config = run_exporter.parse_config(["--portname", "/dev/ttyAMA0", "--port", ":9200"])

    assert config.portname == "/dev/ttyAMA0"
    assert config.bind_port == 9200


def test_cli_falls_back_to_env(monkeypatch) -> None:
    monkeypatch.setenv("SERIAL_PORT", "/dev/ttyUSB1")
    monkeypatch.setenv("LISTEN_ADDRESS", ":9300")

    config = run_exporter.parse_config([])

    assert config.portname == "/dev/ttyUSB1"
    assert config.bind_port == 9300


def test_cli_requires_portname() -> None:
    with pytest.raises(SystemExit) as exc_info:
        run_exporter.parse_config([])
    assert exc_info.value.code == 2


def test_cli_rejects_bad_listen_address() -> None:
    with pytest.raises(SystemExit):
        run_exporter.parse_config(["--portname", "/dev/ttyAMA0", "--port", "bogus"])


def test_main_exits_when_port_cannot_open(monkeypatch) -> None:
    def failing_create_app(config):
        raise TransportError(f"Failed to open {config.portname}")

    def unexpected_run(*args, **kwargs):
        raise AssertionError("server must not start")

    monkeypatch.setattr(run_exporter, "create_app", failing_create_app)
    monkeypatch.setattr(run_exporter.uvicorn, "run", unexpected_run)

    assert run_exporter.main(["--portname", "/dev/ttyAMA0"]) == 1


def test_main_starts_server(monkeypatch) -> None:
    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr(run_exporter, "create_app", lambda config: "app")
    monkeypatch.setattr(run_exporter.uvicorn, "run", fake_run)

    assert run_exporter.main(["--portname", "/dev/ttyAMA0", "--port", "127.0.0.1:9400"]) == 0
    assert calls == {"app": "app", "host": "127.0.0.1", "port": 9400, "log_level": "info"}


def test_cli_flag_overrides_bad_env_listen_address(monkeypatch) -> None:
    monkeypatch.setenv("LISTEN_ADDRESS", "bogus")

    config = run_exporter.parse_config(["--portname", "/dev/ttyAMA0", "--port", ":9000"])

    assert config.bind_port == 9000


def test_cli_flag_overrides_bad_env_baud(monkeypatch) -> None:
    monkeypatch.setenv("SERIAL_BAUD", "fast")

    config = run_exporter.parse_config(["--portname", "/dev/ttyAMA0", "--baud", "4800"])

    assert config.baud == 4800


@pytest.mark.parametrize(
    "name,value",
    [
        ("SERIAL_BAUD", "fast"),
        ("SERIAL_TIMEOUT", "soon"),
        ("LISTEN_ADDRESS", "bogus"),
        ("LOG_LEVEL", "verbose"),
    ],
)
def test_bad_env_value_is_usage_error(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(SystemExit) as exc_info:
        run_exporter.parse_config(["--portname", "/dev/ttyAMA0"])
    assert exc_info.value.code == 2


def test_cli_rejects_unknown_log_level() -> None:
    with pytest.raises(SystemExit) as exc_info:
        run_exporter.parse_config(["--portname", "/dev/ttyAMA0", "--log-level", "verbose"])
    assert exc_info.value.code == 2


def test_cli_log_level_case_insensitive() -> None:
    config = run_exporter.parse_config(["--portname", "/dev/ttyAMA0", "--log-level", "debug"])

    assert config.log_level == "debug"
