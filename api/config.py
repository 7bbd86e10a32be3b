"""Exporter configuration.

Values come from environment variables, optionally overridden by command
line flags in run_exporter.py. The resulting ExporterConfig is passed
explicitly to everything that needs it.
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, Tuple

from mhz19_lib import protocol

DEFAULT_LISTEN_ADDRESS = ":8080"
DEFAULT_METRIC_PREFIX = "mhz19"

# Levels understood by both logging and uvicorn
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# ExporterConfig field -> environment variable
ENV_VARS = {
    "portname": "SERIAL_PORT",
    "listen_address": "LISTEN_ADDRESS",
    "baud": "SERIAL_BAUD",
    "timeout_s": "SERIAL_TIMEOUT",
    "metric_prefix": "METRIC_PREFIX",
    "log_level": "LOG_LEVEL",
}


def env_defaults() -> Dict[str, str]:
    """Raw environment values keyed by ExporterConfig field name.

    Unset variables are left out. Values are not converted or validated here;
    that happens once the command line flags have been applied on top.
    """
    return {field: os.environ[name] for field, name in ENV_VARS.items() if name in os.environ}


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split a listen address into host and port.

    Accepts ":8080" (all interfaces), "127.0.0.1:9000" and "[::1]:8080".

    Args:
        address: Listen address string

    Returns:
        (host, port) tuple

    Raises:
        ValueError: If the address has no valid port
    """
    host, sep, port_str = address.strip().rpartition(":")
    if not sep:
        raise ValueError(f"listen address must be [host]:port, got {address!r}")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        host = "0.0.0.0"

    try:
        port = int(port_str)
    except ValueError as e:
        raise ValueError(f"invalid port in listen address {address!r}") from e
    if not (0 < port < 65536):
        raise ValueError(f"port out of range in listen address {address!r}")
    return host, port


@dataclass(frozen=True)
class ExporterConfig:
    """Process-wide exporter settings.

    Attributes:
        portname: Serial device path of the sensor (e.g., "/dev/ttyAMA0").
        listen_address: HTTP listen address, "[host]:port".
        baud: Serial baud rate.
        timeout_s: Serial read timeout in seconds.
        metric_prefix: Prefix for the sensor gauge names.
        log_level: Logging level name.
    """

    portname: str = ""
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    baud: int = protocol.DEFAULT_BAUD
    timeout_s: float = protocol.DEFAULT_TIMEOUT_S
    metric_prefix: str = DEFAULT_METRIC_PREFIX
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        parse_listen_address(self.listen_address)
        if self.baud <= 0:
            raise ValueError(f"baud must be positive, got {self.baud}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        if not self.metric_prefix:
            raise ValueError("metric_prefix must not be empty")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")

    def with_overrides(self, **changes) -> "ExporterConfig":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @property
    def host(self) -> str:
        return parse_listen_address(self.listen_address)[0]

    @property
    def bind_port(self) -> int:
        return parse_listen_address(self.listen_address)[1]
