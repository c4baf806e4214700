# coral_sst/processors/series_sampler.py
"""Scalar time series extracted from raster series for charting."""

from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
import xarray as xr

from coral_sst.abstractions.types import (
    TIME_DIM, X_DIM, Y_DIM, GridPoint, GridRegion, RasterSeries, TimestampedRaster
)
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)

DAY_OF_YEAR = 'day_of_year'

# Reducers over pixels of a region (NaN-skipping)
REGION_REDUCERS: Dict[str, Callable[[GridRegion, xr.DataArray], float]] = {
    'mean': lambda region, array: region.reduce_mean(array),
}

# Reducers over samples falling on the same day of year
SAME_DAY_REDUCERS = ('mean',)


class SeriesSampler:
    """Point and region samples of a raster series, plus day-of-year reshaping.

    Every sample is a row of a DataFrame indexed by ``time`` with one column
    per band. Rasters lacking a band (or with no bands at all) sample as NaN
    for it, so rows line up one-to-one with the input series.
    """

    @staticmethod
    def _bands(series: RasterSeries, bands: Optional[Iterable[str]]) -> List[str]:
        return list(bands) if bands is not None else series.band_names

    @staticmethod
    def _frame(series: RasterSeries, bands: List[str],
               sample: Callable[[TimestampedRaster, str], float]) -> pd.DataFrame:
        rows = [
            {band: sample(raster, band) if raster.has_band(band) else np.nan for band in bands}
            for raster in series
        ]
        index = pd.DatetimeIndex(series.timestamps, name=TIME_DIM)
        return pd.DataFrame(rows, index=index, columns=bands, dtype=float)

    def sample_at_point(self, series: RasterSeries, point: GridPoint,
                        bands: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """
        Value of the pixel nearest ``point`` in every raster.

        Args:
            series: Series to sample
            point: Location in grid coordinates
            bands: Bands to sample (default: every band in the series)

        Returns:
            DataFrame indexed by time, one column per band
        """
        def sample(raster: TimestampedRaster, band: str) -> float:
            value = raster.band(band).sel({X_DIM: point.x, Y_DIM: point.y}, method='nearest')
            return float(value)

        return self._frame(series, self._bands(series, bands), sample)

    def sample_over_region(self, series: RasterSeries, region: GridRegion,
                           reducer: str = 'mean',
                           bands: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """
        Region-reduced value of every raster.

        Args:
            series: Series to sample
            region: Region in grid coordinates
            reducer: Pixel reducer; only ``mean`` is supported
            bands: Bands to sample (default: every band in the series)

        Returns:
            DataFrame indexed by time, one column per band
        """
        if reducer not in REGION_REDUCERS:
            raise ValueError(f"Unsupported reducer '{reducer}'; expected one of {sorted(REGION_REDUCERS)}")
        reduce = REGION_REDUCERS[reducer]

        def sample(raster: TimestampedRaster, band: str) -> float:
            return reduce(region, raster.band(band))

        return self._frame(series, self._bands(series, bands), sample)

    def bucket_by_day_of_year(self, samples: pd.DataFrame, band: str,
                              start_day: int = 1, end_day: int = 366,
                              reducer: str = 'mean') -> pd.DataFrame:
        """
        Reshape a sampled series into one column per year over day-of-year.

        Args:
            samples: Output of ``sample_at_point`` / ``sample_over_region``
            band: Column to reshape
            start_day: First day of year kept (1-366)
            end_day: Last day of year kept (1-366)
            reducer: Reduction for samples sharing a day of the same year

        Returns:
            DataFrame indexed by ``day_of_year`` with one column per year
        """
        if reducer not in SAME_DAY_REDUCERS:
            raise ValueError(f"Unsupported reducer '{reducer}'; expected one of {list(SAME_DAY_REDUCERS)}")
        if not 1 <= start_day <= end_day <= 366:
            raise ValueError(f"Invalid day-of-year window {start_day}-{end_day}")

        index = pd.DatetimeIndex(samples.index)
        frame = pd.DataFrame({
            'year': index.year,
            DAY_OF_YEAR: index.dayofyear,
            'value': samples[band].to_numpy(dtype=float)
        })
        frame = frame[(frame[DAY_OF_YEAR] >= start_day) & (frame[DAY_OF_YEAR] <= end_day)]
        if frame.empty:
            return pd.DataFrame(index=pd.Index([], name=DAY_OF_YEAR, dtype=int),
                                columns=pd.Index([], name='year', dtype=int), dtype=float)

        table = frame.pivot_table(index=DAY_OF_YEAR, columns='year', values='value',
                                  aggfunc=reducer, dropna=False)
        table.columns.name = 'year'
        logger.debug(
            f"Bucketed {len(frame)} samples of '{band}' by day of year",
            extra={'context': {'years': [int(y) for y in table.columns]}}
        )
        return table
