# coral_sst/processors/series_merger.py
"""Merge raster series from several sources into one ordered series."""

from typing import Dict

import pandas as pd

from coral_sst.abstractions.types import RasterSeries, TimestampedRaster
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SeriesMerger:
    """Union of raster series with explicit source precedence.

    On identical timestamps the series listed later wins, so listing
    sensor generations oldest first lets the newer one supersede the older.
    The result is sorted ascending with one raster per timestamp. Because
    precedence only depends on argument order, merging pairwise or all at
    once gives the same series.
    """

    def merge(self, *series: RasterSeries) -> RasterSeries:
        if not series:
            raise ValueError("merge() needs at least one series")

        by_timestamp: Dict[pd.Timestamp, TimestampedRaster] = {}
        replaced = 0
        for current in series:
            for raster in current:
                if raster.timestamp in by_timestamp:
                    replaced += 1
                by_timestamp[raster.timestamp] = raster

        merged = RasterSeries(by_timestamp.values())
        logger.info(
            f"Merged {len(series)} series into {len(merged)} rasters",
            extra={'context': {
                'inputs': [len(s) for s in series],
                'superseded': replaced
            }}
        )
        return merged
