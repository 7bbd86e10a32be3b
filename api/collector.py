"""Prometheus collector turning one sensor poll into gauge samples per scrape."""

import logging
import os
from typing import Callable, Dict, Iterator

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from mhz19_lib import SensorClient
from mhz19_lib.errors import ChecksumError, InvalidResponse, TransportError

logger = logging.getLogger(__name__)

CONCENTRATION_SUFFIX = "co2_concentration_ppm"
TEMPERATURE_SUFFIX = "temperature_celsius"

CONCENTRATION_HELP = "Carbon Dioxide Concentration in parts per million"
TEMPERATURE_HELP = "Sensor Temperature in degrees Celsius"


def terminate_process(error: TransportError) -> None:
    """Default fatal handler: log and exit immediately.

    Scrapes run on server worker threads, where SystemExit would only fail
    the request, so the process is ended with os._exit().
    """
    logger.critical(f"Serial transport failed, exiting: {error}")
    logging.shutdown()
    os._exit(1)


class MHZ19Collector(Collector):
    """Custom collector polling the sensor on every scrape.

    Nothing is cached between scrapes. A bad frame yields no sensor samples
    for that scrape; a transport failure is handed to on_fatal.
    """

    def __init__(
        self,
        client: SensorClient,
        prefix: str = "mhz19",
        on_fatal: Callable[[TransportError], None] = terminate_process,
    ) -> None:
        """Initialize collector.

        Args:
            client: SensorClient owning the serial port
            prefix: Metric name prefix
            on_fatal: Called with the TransportError when the link fails.
                      Default terminates the process.
        """
        self._client = client
        self._on_fatal = on_fatal
        self.concentration_name = f"{prefix}_{CONCENTRATION_SUFFIX}"
        self.temperature_name = f"{prefix}_{TEMPERATURE_SUFFIX}"

    def sample(self) -> Dict[str, float]:
        """Poll the sensor once and map the reading to metric values.

        Returns:
            {concentration_name: ppm, temperature_name: celsius} on success,
            empty dict if the sensor answered with a bad frame or the link failed
        """
        try:
            reading = self._client.poll()
        except ChecksumError as e:
            mismatch = e.failure
            logger.warning(
                f"checksum error: expected 0x{mismatch.expected:02x}, "
                f"got 0x{mismatch.observed:02x} (frame {mismatch.frame.hex(' ')})"
            )
            return {}
        except InvalidResponse as e:
            logger.warning(f"readGasConcentration error: {e}")
            return {}
        except TransportError as e:
            self._on_fatal(e)
            return {}

        return {
            self.concentration_name: float(reading.concentration),
            self.temperature_name: float(reading.temperature),
        }

    def describe(self) -> Iterator[GaugeMetricFamily]:
        """Yield the gauge descriptions without touching the sensor."""
        yield GaugeMetricFamily(self.concentration_name, CONCENTRATION_HELP)
        yield GaugeMetricFamily(self.temperature_name, TEMPERATURE_HELP)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """Poll the sensor and yield one unlabeled gauge per sample."""
        samples = self.sample()
        if not samples:
            return
        yield GaugeMetricFamily(
            self.concentration_name,
            CONCENTRATION_HELP,
            value=samples[self.concentration_name],
        )
        yield GaugeMetricFamily(
            self.temperature_name,
            TEMPERATURE_HELP,
            value=samples[self.temperature_name],
        )
