"""Exceptions for the SST analysis pipeline."""

from typing import Optional


class CoralSSTError(Exception):
    """Base error for the package."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class SourceUnavailable(CoralSSTError):
    """Raised when a raster source has no data for the requested range or band.

    Recovered by callers as an empty series.
    """
    pass


class EmptyAggregationInput(CoralSSTError):
    """Raised when a monthly or climatological bucket has no contributors.

    Recovered by the aggregator as an all-no-data raster for that key.
    """
    pass


class MissingClimatologyReference(CoralSSTError):
    """Raised when no usable climatology raster exists for a month-of-year."""
    pass


class DegenerateRaster(CoralSSTError):
    """Raised when a raster has zero bands and cannot take band arithmetic."""
    pass


class SourceFetchFailure(CoralSSTError):
    """Raised when a raster source fails with a transient I/O error."""
    pass


class ConfigurationError(CoralSSTError, ValueError):
    """Raised when pipeline configuration is malformed."""
    pass


class PipelineCancelled(CoralSSTError):
    """Raised when a pipeline run is abandoned between units of work."""
    pass
