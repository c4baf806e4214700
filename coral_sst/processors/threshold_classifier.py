# coral_sst/processors/threshold_classifier.py
"""Bleaching threshold band and two-class heat-stress classification."""

from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import xarray as xr

from coral_sst.abstractions.types import BandedRaster, RasterSeries
from coral_sst.core.exceptions import DegenerateRaster
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)

THRESHOLD_BAND = 'Bleaching_Threshold'

BELOW_THRESHOLD = 0
ABOVE_THRESHOLD = 1

CLASS_LABELS: Dict[int, str] = {
    BELOW_THRESHOLD: 'below threshold',
    ABOVE_THRESHOLD: 'above threshold',
}

CLASS_COLORS: Dict[int, str] = {
    BELOW_THRESHOLD: '#ffffff',
    ABOVE_THRESHOLD: '#a34646',
}


class ThresholdClassifier:
    """Compare SST rasters with a fixed bleaching threshold.

    The threshold is supplied by the caller, normally the maximum monthly
    mean of the climatology (``ClimatologySet.maximum_monthly_mean``).
    """

    def __init__(self, band_name: str = THRESHOLD_BAND):
        self.band_name = band_name

    def add_threshold(self, raster: BandedRaster, threshold_value: float,
                      reference_band: str = 'SST'):
        """
        Add a constant threshold band sharing the reference band's no-data mask.

        Args:
            raster: Raster carrying ``reference_band``
            threshold_value: Threshold in the reference band's units
            reference_band: Band whose validity the threshold mirrors

        Returns:
            Copy of ``raster`` with the threshold band added
        """
        reference = raster.band(reference_band)
        threshold = xr.full_like(reference, threshold_value, dtype=float).where(reference.notnull())
        return raster.with_band(self.band_name, threshold)

    def add_threshold_series(self, series: RasterSeries, threshold_value: float,
                             reference_band: str = 'SST') -> RasterSeries:
        """``add_threshold`` on every raster carrying the reference band."""
        return series.map(
            lambda r: self.add_threshold(r, threshold_value, reference_band)
            if r.has_band(reference_band) else r
        )

    def classify_band(self, values: xr.DataArray, threshold_value: float,
                      valid_range: Optional[Tuple[float, float]] = None) -> xr.DataArray:
        """Class 0 at or below the threshold, 1 above, NaN where unclassified."""
        classes = xr.where(values > threshold_value, ABOVE_THRESHOLD, BELOW_THRESHOLD).astype(float)
        keep = values.notnull()
        if valid_range is not None:
            low, high = valid_range
            keep = keep & (values >= low) & (values <= high)
        return classes.where(keep)

    def classify(self, raster: BandedRaster, threshold_value: float,
                 bands: Optional[Iterable[str]] = None,
                 valid_range: Optional[Tuple[float, float]] = None):
        """
        Discretize bands into the two heat-stress classes.

        Args:
            raster: Raster to classify
            threshold_value: Threshold; a value equal to it is class 0
            bands: Bands to classify (default: all except the threshold band)
            valid_range: Values outside ``[low, high]`` stay unclassified

        Returns:
            Raster with the same band names holding 0/1 classes, NaN for no-data

        Raises:
            DegenerateRaster: The raster has no bands to classify
        """
        if not raster.has_bands:
            raise DegenerateRaster("Cannot classify a raster with no bands")
        if bands is None:
            bands = [b for b in raster.band_names if b != self.band_name]
        bands = list(bands)

        classified = raster.select(bands)
        for name in bands:
            classified = classified.with_band(
                name, self.classify_band(raster.band(name), threshold_value, valid_range)
            )

        above = sum(int((classified.band(b) == ABOVE_THRESHOLD).sum()) for b in bands)
        logger.info(
            f"Classified {len(bands)} band(s) against threshold {threshold_value}",
            extra={'context': {'bands': bands, 'pixels_above_threshold': above}}
        )
        return classified

    @staticmethod
    def class_fractions(classified: BandedRaster, band: str) -> Dict[str, float]:
        """Share of classified pixels in each class, keyed by class label."""
        values = classified.band(band).values
        valid = values[~np.isnan(values)]
        if valid.size == 0:
            return {label: float('nan') for label in CLASS_LABELS.values()}
        return {
            label: float(np.mean(valid == code))
            for code, label in CLASS_LABELS.items()
        }
