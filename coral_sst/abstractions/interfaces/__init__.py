"""Boundary interfaces - pure abstractions with no implementations."""

from .raster_source import IRasterSource
from .output_sink import IOutputSink

__all__ = ['IRasterSource', 'IOutputSink']
