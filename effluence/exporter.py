"""Export context: destinations, HTTP client and the per-type dispatch table.

The host calls a dispatch entry with a batch of same-typed samples.  The
entry formats the batch, posts it and returns the outcome, which the host is
free to ignore.  Nothing in here raises into the host.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from functools import partial

from effluence.clients.influxdb import InfluxDBClient
from effluence.config import ExportConfig
from effluence.errors import EncodingError
from effluence.line_protocol import format_batch
from effluence.models import DataType, DeliveryOutcome, Sample

logger = logging.getLogger(__name__)

DispatchEntry = Callable[[Sequence[Sample]], DeliveryOutcome]


class Exporter:
    """Everything needed to export history, created once at initialisation."""

    def __init__(self, config: ExportConfig, client: InfluxDBClient | None = None) -> None:
        self.config = config
        self.client = client if client is not None else InfluxDBClient()
        self._dispatch_table: dict[DataType, DispatchEntry] | None = None
        self._lock = threading.Lock()

    def dispatch_table(self) -> dict[DataType, DispatchEntry]:
        """Return the dispatch entries of every exported data type.

        Destinations are resolved on the first call only; data types without
        a URL or bucket get no entry.
        """
        with self._lock:
            if self._dispatch_table is None:
                self._dispatch_table = self._build_dispatch_table()
            return dict(self._dispatch_table)

    def _build_dispatch_table(self) -> dict[DataType, DispatchEntry]:
        table: dict[DataType, DispatchEntry] = {}
        for data_type in DataType:
            destination = self.config.configured_destination(data_type)
            if not destination.is_exported:
                logger.info('History of type "%s" will not be exported.', data_type.value)
                continue
            logger.info(
                'History of type "%s" will be exported to URL "%s" and bucket "%s".',
                data_type.value,
                destination.url,
                destination.bucket,
            )
            table[data_type] = partial(self.export, data_type)
        return table

    def export(self, data_type: DataType, samples: Sequence[Sample]) -> DeliveryOutcome:
        """Format *samples* and write them to the destination of *data_type*."""
        destination = self.config.configured_destination(data_type)
        if not destination.is_exported:
            logger.debug("Dropping %d %s sample(s): not exported", len(samples), data_type.value)
            return DeliveryOutcome.NOT_EXPORTED

        try:
            payload = format_batch(data_type, samples)
        except EncodingError as exc:
            logger.error(
                "Dropping batch of %d %s sample(s): %s", len(samples), data_type.value, exc
            )
            return DeliveryOutcome.ENCODING_FAILED

        if not payload:
            return DeliveryOutcome.SUCCESS

        outcome = self.client.write(destination, payload)
        if outcome is DeliveryOutcome.SUCCESS:
            logger.debug("Exported %d %s sample(s)", len(samples), data_type.value)
        return outcome

    def ping(self) -> None:
        """Probe every exported destination once, logging unreachable ones."""
        for data_type in DataType:
            destination = self.config.configured_destination(data_type)
            if destination.is_exported and self.client.ping(destination):
                logger.info('InfluxDB for history of type "%s" is up.', data_type.value)

    def close(self) -> None:
        self.client.close()
