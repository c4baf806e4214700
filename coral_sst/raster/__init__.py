"""Raster sources, output sinks and presentation layers."""

from .sources import InMemoryRasterSource, XarrayRasterSource
from .sinks import InMemoryOutputSink, NetCDFOutputSink
from .layers import SST_LAYER, SST_ANOMALY_LAYER, HEAT_STRESS_LAYER, for_band

__all__ = [
    'InMemoryRasterSource', 'XarrayRasterSource',
    'InMemoryOutputSink', 'NetCDFOutputSink',
    'SST_LAYER', 'SST_ANOMALY_LAYER', 'HEAT_STRESS_LAYER', 'for_band'
]
