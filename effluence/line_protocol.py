"""InfluxDB line-protocol serialisation of history samples.

Every sample becomes exactly one statement::

    <measurement>,itemid=<id> <fields> <timestamp_ns>\\n

Measurements are named after the host's history tables so that the five data
types stay apart: ``history``, ``history_uint``, ``history_str``,
``history_text`` and ``history_log``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from effluence.errors import EncodingError
from effluence.models import (
    SAMPLE_TYPES,
    DataType,
    FloatSample,
    IntegerSample,
    LogSample,
    Sample,
    StringSample,
    TextSample,
)

MEASUREMENTS: dict[DataType, str] = {
    DataType.FLOAT: "history",
    DataType.INTEGER: "history_uint",
    DataType.STRING: "history_str",
    DataType.TEXT: "history_text",
    DataType.LOG: "history_log",
}


def escape(value: str) -> str:
    """Escape ``"`` and ``\\`` for use inside a line-protocol string field."""
    try:
        return value.replace("\\", "\\\\").replace('"', '\\"')
    except MemoryError as exc:
        raise EncodingError(f"Out of memory escaping a {len(value)}-character string") from exc


# ── Field encoders ────────────────────────────────────────────────────────────


def _float_fields(sample: FloatSample) -> str:
    return f"value={sample.value:f}"


def _integer_fields(sample: IntegerSample) -> str:
    # Unsigned 64-bit values may not fit InfluxDB's signed integers, so the
    # value goes out without the "i" suffix and is stored as a float.
    return f"value={sample.value:d}"


def _string_fields(sample: StringSample | TextSample) -> str:
    return f'value="{escape(sample.value)}"'


def _log_fields(sample: LogSample) -> str:
    return (
        f'value="{escape(sample.value)}",source="{escape(sample.source)}",'
        f"timestamp={sample.timestamp:d},logeventid={sample.logeventid:d},"
        f"severity={sample.severity:d}"
    )


_FIELD_ENCODERS: dict[DataType, Callable[[Any], str]] = {
    DataType.FLOAT: _float_fields,
    DataType.INTEGER: _integer_fields,
    DataType.STRING: _string_fields,
    DataType.TEXT: _string_fields,
    DataType.LOG: _log_fields,
}


def encode_line(sample: Sample) -> str:
    """Return the newline-terminated line-protocol statement for *sample*."""
    data_type = sample.data_type
    fields = _FIELD_ENCODERS[data_type](sample)
    return f"{MEASUREMENTS[data_type]},itemid={sample.itemid:d} {fields} {sample.timestamp_ns:d}\n"


# ── Batch formatter ───────────────────────────────────────────────────────────


def format_batch(data_type: DataType, samples: Iterable[Sample]) -> bytes:
    """Serialise a batch of same-typed samples into one UTF-8 payload.

    Args:
        data_type: Type every sample in the batch must have.
        samples:   Samples in delivery order.

    Returns:
        The newline-delimited payload (empty for an empty batch).

    Raises:
        EncodingError: if any sample cannot be encoded.  The batch is
            abandoned as a whole; no partial payload is returned.
    """
    expected = SAMPLE_TYPES[data_type]
    payload = bytearray()
    for index, sample in enumerate(samples):
        if not isinstance(sample, expected):
            raise EncodingError(
                f"Sample #{index} is {type(sample).__name__}, "
                f"expected {expected.__name__} in a {data_type.value} batch"
            )
        try:
            payload += encode_line(sample).encode("utf-8")
        except MemoryError as exc:
            raise EncodingError(
                f"Out of memory after encoding {index} {data_type.value} sample(s)"
            ) from exc
        except UnicodeEncodeError as exc:
            raise EncodingError(
                f"Sample #{index} (itemid {sample.itemid}) is not valid UTF-8: {exc}"
            ) from exc
    return bytes(payload)
