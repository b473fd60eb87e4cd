"""Settings from the environment and destinations from the configuration file.

The configuration file is YAML.  Top-level keys are the defaults for every
data type; a section named after a data type overrides any of them::

    url: https://influxdb.example.com:8086
    org: monitoring
    bucket: history
    token: s3cr3t

    log:
      bucket: history-logs   # logs go to their own bucket
    text:
      url: null              # long text values are not exported
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from effluence.errors import ConfigurationError
from effluence.models import DataType, Destination

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Process settings, read from ``EFFLU_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="EFFLU_", env_file=".env", extra="ignore")

    # Path of the YAML file describing the destinations (EFFLU_CONFIG)
    config: Path | None = None

    log_level: str = "INFO"

    # Probe every destination's /ping endpoint while initialising; a failed
    # probe is only logged.
    ping_on_init: bool = False

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level


# ── Configuration file ────────────────────────────────────────────────────────


class _DestinationSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str | None = None
    org: str | None = None
    bucket: str | None = None
    token: str | None = None


class ExportConfig:
    """Resolved destination for each data type, fixed once loaded."""

    def __init__(self, destinations: dict[DataType, Destination]) -> None:
        self._destinations = dict(destinations)

    def configured_destination(self, data_type: DataType) -> Destination:
        """Return the destination for *data_type* (empty if none is configured)."""
        return self._destinations.get(data_type, Destination())


def load_configuration(stream: IO[str]) -> ExportConfig:
    """Parse an open configuration file into an :class:`ExportConfig`.

    Raises:
        ConfigurationError: on YAML syntax errors, unknown keys or values of
            the wrong type.
    """
    try:
        raw = yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(raw).__name__}"
        )

    sections: dict[DataType, Any] = {
        data_type: raw.pop(data_type.value) for data_type in DataType if data_type.value in raw
    }

    try:
        defaults = _DestinationSection.model_validate(raw)
        destinations: dict[DataType, Destination] = {}
        for data_type in DataType:
            section = _DestinationSection.model_validate(sections.get(data_type) or {})
            # Keys present in a section win, an explicit null included.
            merged = defaults.model_dump() | section.model_dump(exclude_unset=True)
            destinations[data_type] = Destination(**merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    return ExportConfig(destinations)


def load_configuration_file(path: Path) -> ExportConfig:
    """Open *path* and load it with :func:`load_configuration`."""
    logger.info("Reading configuration from \"%s\"...", path)
    try:
        with path.open(encoding="utf-8") as fh:
            return load_configuration(fh)
    except OSError as exc:
        raise ConfigurationError(f"Failure to open \"{path}\": {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"\"{path}\" is not UTF-8 text: {exc}") from exc
