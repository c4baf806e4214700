"""Core definitions shared by every layer."""

from .exceptions import (
    CoralSSTError, SourceUnavailable, EmptyAggregationInput,
    MissingClimatologyReference, DegenerateRaster, SourceFetchFailure,
    ConfigurationError, PipelineCancelled
)

__all__ = [
    'CoralSSTError', 'SourceUnavailable', 'EmptyAggregationInput',
    'MissingClimatologyReference', 'DegenerateRaster', 'SourceFetchFailure',
    'ConfigurationError', 'PipelineCancelled'
]
