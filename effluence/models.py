"""Pydantic models for history samples, destinations and delivery outcomes."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

UINT64_MAX = 2**64 - 1
NS_PER_SECOND = 1_000_000_000


# ── Data types ────────────────────────────────────────────────────────────────


class DataType(str, Enum):
    """History value types delivered by the monitoring host.

    The enum value doubles as the section name in the configuration file.
    """

    FLOAT = "float"
    INTEGER = "integer"
    STRING = "string"
    TEXT = "text"
    LOG = "log"


# ── History samples ───────────────────────────────────────────────────────────


class Sample(BaseModel):
    """Fields shared by every history sample."""

    model_config = ConfigDict(frozen=True)

    data_type: ClassVar[DataType]

    itemid: int = Field(..., ge=0, le=UINT64_MAX, description="Item the value belongs to")
    clock: int = Field(..., ge=0, description="Epoch seconds of the value")
    ns: int = Field(0, ge=0, lt=NS_PER_SECOND, description="Nanoseconds past *clock*")

    @property
    def timestamp_ns(self) -> int:
        """Nanosecond epoch timestamp written at the end of the line."""
        return self.clock * NS_PER_SECOND + self.ns


class FloatSample(Sample):
    data_type: ClassVar[DataType] = DataType.FLOAT

    value: float


class IntegerSample(Sample):
    data_type: ClassVar[DataType] = DataType.INTEGER

    value: int = Field(..., ge=0, le=UINT64_MAX)


class StringSample(Sample):
    data_type: ClassVar[DataType] = DataType.STRING

    value: str


class TextSample(Sample):
    data_type: ClassVar[DataType] = DataType.TEXT

    value: str


class LogSample(Sample):
    """Structured log line captured by a log monitoring item."""

    data_type: ClassVar[DataType] = DataType.LOG

    value: str
    source: str = ""
    timestamp: int = Field(0, description="Event time reported by the log source")
    logeventid: int = 0
    severity: int = 0


SAMPLE_TYPES: dict[DataType, type[Sample]] = {
    DataType.FLOAT: FloatSample,
    DataType.INTEGER: IntegerSample,
    DataType.STRING: StringSample,
    DataType.TEXT: TextSample,
    DataType.LOG: LogSample,
}


# ── Routing ───────────────────────────────────────────────────────────────────


class Destination(BaseModel):
    """Where (and as whom) history of one data type is written.

    A destination without ``url`` or ``bucket`` means the data type is not
    exported at all.
    """

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    org: str | None = None
    bucket: str | None = None
    token: str | None = Field(None, repr=False)

    @property
    def is_exported(self) -> bool:
        return bool(self.url) and bool(self.bucket)


class DeliveryOutcome(str, Enum):
    """Result of exporting one batch; logged, never raised to the host."""

    SUCCESS = "success"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"
    REJECTED = "rejected"
    SETUP_ERROR = "setup_error"
    ENCODING_FAILED = "encoding_failed"
    NOT_EXPORTED = "not_exported"
