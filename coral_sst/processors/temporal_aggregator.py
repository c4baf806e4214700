# coral_sst/processors/temporal_aggregator.py
"""Monthly means and monthly climatology of a raster series."""

import concurrent.futures
import contextvars
import threading
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

import numpy as np
import xarray as xr

from coral_sst.abstractions.types import (
    TIME_DIM, BandedRaster, ClimatologySet, DateRange, MonthKey,
    RasterSeries, TimestampedRaster
)
from coral_sst.core.exceptions import EmptyAggregationInput, PipelineCancelled
from coral_sst.infrastructure.logging import get_logger, log_operation

logger = get_logger(__name__)

K = TypeVar('K')
R = TypeVar('R')


class TemporalAggregator:
    """
    Reduce a raster series to monthly means and a 12-month climatology.

    Means are pixel-wise and skip no-data: a pixel contributes only from the
    rasters where it is valid, and is no-data when it is invalid in every
    contributor. Buckets with no contributing raster are never dropped; they
    come out as all-no-data rasters so that monthly series and climatology
    stay aligned key for key.
    """

    def __init__(self, max_workers: int = 1, cancel_event: Optional[threading.Event] = None):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self.cancel_event = cancel_event

    def _check_cancelled(self, key):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PipelineCancelled(f"Aggregation abandoned at {key}")

    def _map(self, func: Callable[[K], R], keys: Iterable[K]) -> List[R]:
        """Apply ``func`` to independent keys, results in key order.

        Workers run in a copy of the caller's context so records keep run_id and stage.
        """
        keys = list(keys)
        if self.max_workers == 1 or len(keys) <= 1:
            return [func(k) for k in keys]
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(contextvars.copy_context().run, func, k) for k in keys]
            return [f.result() for f in futures]

    @staticmethod
    def _bucket_mean(arrays: List[xr.DataArray], key) -> xr.DataArray:
        if not arrays:
            raise EmptyAggregationInput(f"No contributing rasters for {key}")
        if len(arrays) == 1:
            return arrays[0]
        stacked = xr.concat(arrays, dim=TIME_DIM, join='exact')
        return stacked.mean(dim=TIME_DIM, skipna=True)

    @staticmethod
    def _blank(template: Optional[BandedRaster], band: str) -> xr.Dataset:
        """All-no-data band on the template grid, or a zero-band dataset."""
        if template is None:
            return xr.Dataset()
        blank = xr.full_like(template.band(band), np.nan, dtype=float)
        return blank.to_dataset(name=band)

    def _reduce(self, arrays: List[xr.DataArray], key, band: str,
                template: Optional[BandedRaster]) -> xr.Dataset:
        self._check_cancelled(key)
        try:
            return self._bucket_mean(arrays, key).to_dataset(name=band)
        except EmptyAggregationInput as e:
            logger.warning(
                f"{e}; emitting all-no-data raster",
                extra={'context': {'month': str(key), 'band': band}}
            )
            return self._blank(template, band)

    @log_operation("monthly_mean")
    def monthly_mean(self, series: RasterSeries, band: str,
                     period: Optional[DateRange] = None) -> RasterSeries:
        """
        One mean raster per calendar month of the study period.

        Args:
            series: Input series (any temporal resolution)
            band: Band to aggregate; other bands are dropped
            period: Study period; defaults to the months spanned by ``series``

        Returns:
            RasterSeries with exactly one raster per (year, month), stamped at
            the first day of the month
        """
        if period is None:
            if series.is_empty:
                return RasterSeries()
            first, last = series[0], series[-1]
            keys = MonthKey.months_between(first.month_key.start, last.month_key.end)
            in_period = series
        else:
            keys = period.month_keys()
            in_period = series.filter_date(period)

        buckets: Dict[MonthKey, List[xr.DataArray]] = {key: [] for key in keys}
        for raster in in_period:
            if raster.has_band(band) and raster.month_key in buckets:
                buckets[raster.month_key].append(raster.band(band))

        template = series.grid_template(band)

        def reduce_month(key: MonthKey) -> TimestampedRaster:
            return TimestampedRaster(
                data=self._reduce(buckets[key], key, band, template),
                timestamp=key.start
            )

        monthly = RasterSeries(self._map(reduce_month, keys))
        empty = sum(1 for key in keys if not buckets[key])
        logger.info(
            f"Aggregated {len(in_period)} rasters into {len(monthly)} monthly means",
            extra={'context': {'band': band, 'empty_months': empty}}
        )
        return monthly

    @log_operation("climatology")
    def climatology(self, monthly_series: RasterSeries, band: str,
                    period: Optional[DateRange] = None) -> ClimatologySet:
        """
        Pixel-wise mean of the monthly means sharing each month-of-year.

        Args:
            monthly_series: Output of ``monthly_mean``
            band: Band to average
            period: Restrict the contributing years; months outside it are ignored

        Returns:
            ClimatologySet with all 12 months; months without contributors are
            all-no-data
        """
        if period is not None:
            monthly_series = monthly_series.filter_date(period)

        buckets: Dict[int, List[xr.DataArray]] = {m: [] for m in ClimatologySet.MONTHS}
        for raster in monthly_series:
            if raster.has_band(band):
                buckets[raster.month].append(raster.band(band))

        template = monthly_series.grid_template(band)

        def reduce_month(month: int) -> BandedRaster:
            return BandedRaster(data=self._reduce(buckets[month], f"month {month}", band, template))

        rasters = self._map(reduce_month, ClimatologySet.MONTHS)
        logger.info(
            "Computed monthly climatology",
            extra={'context': {
                'band': band,
                'years_per_month': {m: len(v) for m, v in buckets.items()}
            }}
        )
        return ClimatologySet(dict(zip(ClimatologySet.MONTHS, rasters)))

    def period_mean(self, series: RasterSeries, band: str, period: DateRange) -> TimestampedRaster:
        """Pixel-wise mean over an arbitrary period, stamped at its start.

        Used for single-map composites such as one month of daily SST.
        """
        in_period = series.filter_date(period)
        arrays = [r.band(band) for r in in_period if r.has_band(band)]
        label = f"{period.start.date()} - {period.end.date()}"
        return TimestampedRaster(
            data=self._reduce(arrays, label, band, series.grid_template(band)),
            timestamp=period.start
        )
