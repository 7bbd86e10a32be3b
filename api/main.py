"""FastAPI HTTP interface for the MH-Z19 Prometheus exporter.

Single-process, single-sensor lifecycle:
- SensorClient owns the serial port (thread-safe poll)
- MHZ19Collector polls once per scrape of /metrics
- Process, platform and GC collectors from prometheus_client

Error mapping:
- Bad response frame → 200 without sensor gauges
- Serial transport failure → process exit (see api.collector.terminate_process)
"""

import html
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    GCCollector,
    Info,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_client.registry import CollectorRegistry
from pydantic import BaseModel

import mhz19_lib
from api.collector import MHZ19Collector, terminate_process
from api.config import ExporterConfig
from mhz19_lib import SensorClient
from mhz19_lib.errors import TransportError

SERVICE_NAME = "MH-Z19 Carbon Dioxide Sensor Prometheus Exporter"
API_VERSION = mhz19_lib.__version__

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)

INDEX_TEMPLATE = """<!doctype html>
<title>{title}</title>
<h1>{title}</h1>
<a href="/metrics">Metrics</a>
<p>
<pre>portname={portname}</pre>
"""


def configure_logging(level: str) -> None:
    """Configure root logging for the exporter process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Response for GET /health."""
    service: str
    version: str
    portname: str
    state: str


# =============================================================================
# App Factory
# =============================================================================

def build_registry(collector: MHZ19Collector) -> CollectorRegistry:
    """Create the registry served on /metrics."""
    registry = CollectorRegistry()
    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)
    GCCollector(registry=registry)
    Info(
        "mhz19_exporter_build", "Build information for the MH-Z19 exporter", registry=registry
    ).info({"version": API_VERSION})
    registry.register(collector)
    return registry


def create_app(
    config: ExporterConfig,
    client: Optional[SensorClient] = None,
    on_fatal: Callable[[TransportError], None] = terminate_process,
) -> FastAPI:
    """Build the exporter application.

    Args:
        config: Exporter configuration
        client: Pre-built SensorClient (for testing). If None, the serial
                port named in config is opened.
        on_fatal: Handler for serial transport failures during a scrape

    Returns:
        FastAPI application

    Raises:
        TransportError: If the serial port cannot be opened
    """
    if client is None:
        client = SensorClient.open(config.portname, baud=config.baud, timeout_s=config.timeout_s)

    collector = MHZ19Collector(client, prefix=config.metric_prefix, on_fatal=on_fatal)
    registry = build_registry(collector)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Prometheus metrics for a Winsen MH-Z19 CO2 sensor",
        version=API_VERSION,
    )
    app.state.config = config
    app.state.client = client
    app.state.collector = collector
    app.state.registry = registry

    @app.get("/", response_class=HTMLResponse)
    async def index():
        """Landing page linking to /metrics."""
        return INDEX_TEMPLATE.format(
            title=SERVICE_NAME, portname=html.escape(config.portname)
        )

    # Sync handler, served from the threadpool. Concurrent scrapes serialize
    # on the client lock.
    @app.get("/metrics")
    def metrics(request: Request):
        """Prometheus scrape endpoint."""
        return Response(
            content=generate_latest(request.app.state.registry),
            media_type=CONTENT_TYPE_LATEST,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint. Does not touch the sensor."""
        return HealthResponse(
            service=SERVICE_NAME,
            version=API_VERSION,
            portname=client.port_name,
            state=client.state.value,
        )

    @app.on_event("startup")
    async def startup_event():
        logger.info("=" * 60)
        logger.info(f"{SERVICE_NAME} started")
        logger.info(f"Version: {API_VERSION}")
        logger.info(f"Serial Port: {config.portname}")
        logger.info(f"Listen Address: {config.listen_address}")
        logger.info(f"Metric Prefix: {config.metric_prefix}")
        logger.info("=" * 60)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down, closing serial port...")
        client.close()
        logger.info("Shutdown complete")

    return app
