# coral_sst/processors/anomaly_engine.py
"""Monthly anomalies against a monthly climatology."""

import concurrent.futures
import contextvars
import threading
from collections.abc import Mapping
from typing import Dict, Optional

import pandas as pd
import xarray as xr

from coral_sst.abstractions.types import BandedRaster, RasterSeries, TimestampedRaster
from coral_sst.core.exceptions import (
    DegenerateRaster, MissingClimatologyReference, PipelineCancelled
)
from coral_sst.infrastructure.logging import get_logger, log_operation

logger = get_logger(__name__)

ANOMALY_SUFFIX = '_Anomaly'


def anomaly_band_name(band: str, suffix: str = ANOMALY_SUFFIX) -> str:
    return f"{band}{suffix}"


class AnomalyEngine:
    """
    Per-pixel ``monthly - climatology[month]`` for every monthly raster.

    The climatology is always passed in explicitly. ``anomaly`` is pure, so
    rasters of a series are processed independently and in any order.

    Fallbacks (never fatal):
    - zero-band monthly raster: returned unchanged, so months aggregated
      from nothing stay no-data instead of becoming a spurious zero anomaly
    - no usable reference for the month: returned unchanged
    """

    def __init__(self, max_workers: int = 1, suffix: str = ANOMALY_SUFFIX,
                 cancel_event: Optional[threading.Event] = None):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self.suffix = suffix
        self.cancel_event = cancel_event

    @staticmethod
    def _require_band(raster: BandedRaster, band: str, what: str):
        if not raster.has_bands:
            raise DegenerateRaster(f"{what} has no bands")
        if not raster.has_band(band):
            raise DegenerateRaster(f"{what} has no '{band}' band")

    @staticmethod
    def _reference(climatology: Mapping, month: int, band: str) -> xr.DataArray:
        reference = climatology.get(month)
        if reference is None:
            raise MissingClimatologyReference(f"No climatology raster for month {month}")
        if not reference.has_band(band):
            raise MissingClimatologyReference(
                f"Climatology for month {month} has no '{band}' band"
            )
        return reference.band(band)

    def anomaly(self, monthly_raster: TimestampedRaster, climatology: Mapping,
                band: str) -> TimestampedRaster:
        """
        Anomaly raster for one monthly raster.

        Args:
            monthly_raster: Monthly mean raster
            climatology: Month-of-year (1-12) to reference raster
            band: Band to difference

        Returns:
            Raster with the single band ``<band>_Anomaly`` and the input
            timestamp, or the input unchanged on a fallback
        """
        try:
            self._require_band(monthly_raster, band, f"Monthly raster {monthly_raster.month_key}")
            reference = self._reference(climatology, monthly_raster.month, band)
        except DegenerateRaster as e:
            logger.debug(f"{e}; passing through", extra={'context': {'month': str(monthly_raster.month_key)}})
            return monthly_raster
        except MissingClimatologyReference as e:
            logger.warning(f"{e}; passing monthly raster through",
                           extra={'context': {'month': str(monthly_raster.month_key)}})
            return monthly_raster

        observed, reference = xr.align(monthly_raster.band(band), reference, join='exact')
        difference = observed - reference

        name = anomaly_band_name(band, self.suffix)
        return TimestampedRaster(
            data=difference.to_dataset(name=name),
            timestamp=monthly_raster.timestamp
        )

    @log_operation("anomalies")
    def anomalies(self, monthly_series: RasterSeries, climatology: Mapping,
                  band: str) -> RasterSeries:
        """Apply ``anomaly`` to every raster of a series, preserving order."""
        def compute(raster: TimestampedRaster) -> TimestampedRaster:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise PipelineCancelled(f"Anomalies abandoned at {raster.month_key}")
            return self.anomaly(raster, climatology, band)

        rasters = list(monthly_series)
        if self.max_workers == 1 or len(rasters) <= 1:
            results = [compute(r) for r in rasters]
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [executor.submit(contextvars.copy_context().run, compute, r) for r in rasters]
                results = [f.result() for f in futures]
        return RasterSeries(results)

    @staticmethod
    def combine(primary: RasterSeries, secondary: RasterSeries) -> RasterSeries:
        """
        Pair two series by timestamp into rasters holding both sets of bands.

        Timestamps present in only one series keep that raster alone.
        Bands of ``secondary`` are added to the matching ``primary`` raster
        without touching its existing bands, unless both carry a band of
        the same name, in which case ``primary`` keeps its own.
        """
        extra: Dict[pd.Timestamp, TimestampedRaster] = {r.timestamp: r for r in secondary}
        combined = []
        for raster in primary:
            partner = extra.pop(raster.timestamp, None)
            if partner is not None:
                for name in partner.band_names:
                    if not raster.has_band(name):
                        raster = raster.with_band(name, partner.band(name))
            combined.append(raster)
        combined.extend(extra.values())
        return RasterSeries(combined)
