"""Exception hierarchy for the effluence exporter."""


class EffluenceError(Exception):
    """Base class for all errors raised inside effluence."""


class ConfigurationError(EffluenceError):
    """Raised when the configuration file is missing, unreadable or invalid."""


class EncodingError(EffluenceError):
    """Raised when a batch cannot be serialised to line protocol."""


class InfluxDBError(EffluenceError):
    """Raised when a write request cannot be prepared for a destination."""
