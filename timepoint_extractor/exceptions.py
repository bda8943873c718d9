"""Exceptions for the timepoint extractor."""


class TimepointError(Exception):
    """Base exception for timepoint-extractor."""
    pass


class ConfigError(TimepointError):
    """Configuration error."""
    pass


class MetadataFormatError(TimepointError):
    """Timepoint metadata file could not be parsed."""
    pass


class LaunchError(TimepointError):
    """External tool process could not be started."""
    pass
