"""
Sea-surface-temperature analysis package for coral reef heat stress.

This package builds monthly SST climatologies from one or more raster
sources, derives monthly anomalies against them and classifies SST rasters
against a coral-bleaching threshold.
"""

__version__ = "1.0.0"
__description__ = "SST climatology, anomaly and coral bleaching heat stress"
