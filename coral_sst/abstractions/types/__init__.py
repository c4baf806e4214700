# coral_sst/abstractions/types/__init__.py
"""Type definitions for the abstractions layer."""

from .raster_types import (
    ScaleTransform, MonthKey, DateRange, GridPoint, GridRegion,
    BandedRaster, TimestampedRaster, RasterSeries, ClimatologySet,
    to_timestamp, X_DIM, Y_DIM, TIME_DIM, SPATIAL_DIMS
)
from .layer_types import LayerSpec

__all__ = [
    # Rasters
    'BandedRaster', 'TimestampedRaster', 'RasterSeries', 'ClimatologySet',

    # Keys and parameters
    'ScaleTransform', 'MonthKey', 'DateRange', 'GridPoint', 'GridRegion',
    'to_timestamp',

    # Layers
    'LayerSpec',

    # Dimension names
    'X_DIM', 'Y_DIM', 'TIME_DIM', 'SPATIAL_DIMS'
]
