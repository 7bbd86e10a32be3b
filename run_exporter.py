#!/usr/bin/env python3
"""
MH-Z19 Prometheus exporter entry point.

Reads CO2 concentration and temperature from an MH-Z19 sensor on every
scrape of /metrics.

Usage:
    python run_exporter.py --portname /dev/ttyAMA0 --port :8080
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

import uvicorn

from api.config import LOG_LEVELS, ExporterConfig, env_defaults
from api.main import SERVICE_NAME, configure_logging, create_app
from mhz19_lib.errors import TransportError

logger = logging.getLogger("run_exporter")


def build_parser(env: Dict[str, str]) -> argparse.ArgumentParser:
    """Command line flags; defaults are the raw environment values.

    argparse converts a string default with the flag's type only when the
    flag is absent, so a bad environment value is reported as a usage error
    and a flag always wins over the environment.
    """
    parser = argparse.ArgumentParser(description=SERVICE_NAME)
    parser.add_argument(
        "--portname",
        default=env.get("portname"),
        help="filename of serial port (env SERIAL_PORT)",
    )
    parser.add_argument(
        "--port",
        dest="listen_address",
        default=env.get("listen_address"),
        help="http address to listen on, [host]:port (env LISTEN_ADDRESS, default :8080)",
    )
    parser.add_argument(
        "--baud", type=int, default=env.get("baud"),
        help="serial baud rate (env SERIAL_BAUD, default 9600)",
    )
    parser.add_argument(
        "--timeout", dest="timeout_s", type=float, default=env.get("timeout_s"),
        help="serial read timeout in seconds (env SERIAL_TIMEOUT, default 1.0)",
    )
    parser.add_argument(
        "--prefix", dest="metric_prefix", default=env.get("metric_prefix"),
        help="metric name prefix (env METRIC_PREFIX, default mhz19)",
    )
    parser.add_argument(
        "--log-level", default=env.get("log_level"),
        help=f"logging level, one of {', '.join(LOG_LEVELS)} (env LOG_LEVEL, default INFO)",
    )
    return parser


def parse_config(argv: Optional[List[str]] = None) -> ExporterConfig:
    """Build the exporter configuration from environment and flags.

    Exits with a usage error if the configuration is invalid.
    """
    parser = build_parser(env_defaults())
    args = parser.parse_args(argv)

    if not args.portname:
        parser.error("--portname (or SERIAL_PORT) is required")

    try:
        return ExporterConfig().with_overrides(**vars(args))
    except ValueError as e:
        parser.error(str(e))


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_config(argv)
    configure_logging(config.log_level)

    logger.info(
        f"{SERVICE_NAME} starting on {config.listen_address} and file {config.portname}"
    )

    try:
        app = create_app(config)
    except TransportError as e:
        logger.critical(f"serial open {config.portname} failed: {e}")
        return 1

    uvicorn.run(app, host=config.host, port=config.bind_port, log_level=config.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
