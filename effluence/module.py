"""Entry points called by the monitoring host.

The host loads the module, calls :func:`api_version` and :func:`init`, asks
for the :func:`dispatch_table` once, feeds batches into its entries and
finally calls :func:`uninit`.  Configuration is located through the
``EFFLU_CONFIG`` environment variable.
"""

from __future__ import annotations

import logging
import threading
from enum import IntEnum

from pydantic import ValidationError

from effluence.config import load_configuration_file
from effluence.deps import get_settings
from effluence.errors import ConfigurationError
from effluence.exporter import DispatchEntry, Exporter
from effluence.models import DataType

logger = logging.getLogger(__name__)

API_VERSION = 2


class ModuleStatus(IntEnum):
    OK = 0
    FAIL = -1


_exporter: Exporter | None = None
_lock = threading.Lock()


def api_version() -> int:
    return API_VERSION


def init() -> ModuleStatus:
    """Load settings and destinations; ``FAIL`` means the host must not use the module."""
    global _exporter

    try:
        settings = get_settings()
    except ValidationError as exc:
        logger.error("Invalid EFFLU_* settings: %s", exc)
        return ModuleStatus.FAIL

    logging.getLogger("effluence").setLevel(settings.log_level)
    logger.info('Initializing "effluence" module...')

    if settings.config is None:
        logger.error(
            'Path to configuration file must be set using "EFFLU_CONFIG" environment variable.'
        )
        return ModuleStatus.FAIL

    try:
        config = load_configuration_file(settings.config)
    except ConfigurationError as exc:
        logger.error('Failure to read configuration from "%s": %s', settings.config, exc)
        return ModuleStatus.FAIL

    exporter = Exporter(config)
    with _lock:
        if _exporter is not None:
            _exporter.close()
        _exporter = exporter

    if settings.ping_on_init:
        exporter.ping()

    logger.info('Module "effluence" has been successfully initialized.')
    return ModuleStatus.OK


def uninit() -> ModuleStatus:
    """Close the HTTP client and drop the configuration."""
    global _exporter

    logger.info('Uninitializing "effluence" module...')
    with _lock:
        if _exporter is not None:
            _exporter.close()
            _exporter = None
    get_settings.cache_clear()
    logger.info('Module "effluence" has been successfully uninitialized.')
    return ModuleStatus.OK


def dispatch_table() -> dict[DataType, DispatchEntry]:
    """Return the per-type entries of the initialised module ({} before :func:`init`)."""
    with _lock:
        exporter = _exporter
    if exporter is None:
        logger.warning('Module "effluence" is not initialized, nothing will be exported.')
        return {}
    return exporter.dispatch_table()
