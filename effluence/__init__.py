"""Export monitoring history to InfluxDB v2 over the line protocol."""

from effluence.models import (
    DataType,
    DeliveryOutcome,
    Destination,
    FloatSample,
    IntegerSample,
    LogSample,
    StringSample,
    TextSample,
)
from effluence.module import (
    API_VERSION,
    ModuleStatus,
    api_version,
    dispatch_table,
    init,
    uninit,
)

__all__ = [
    "API_VERSION",
    "DataType",
    "DeliveryOutcome",
    "Destination",
    "FloatSample",
    "IntegerSample",
    "LogSample",
    "ModuleStatus",
    "StringSample",
    "TextSample",
    "api_version",
    "dispatch_table",
    "init",
    "uninit",
]
