# coral_sst/abstractions/types/raster_types.py
"""Raster value types shared by sources, processors and sinks.

A raster is an ``xarray.Dataset`` over the dims ``("y", "x")`` where every
data variable is a band. No-data pixels are ``NaN``; the validity mask of a
band is ``band.notnull()``. All types here are immutable: operations return
new values and never modify their inputs.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import xarray as xr

from coral_sst.core.exceptions import ConfigurationError

X_DIM = 'x'
Y_DIM = 'y'
TIME_DIM = 'time'
SPATIAL_DIMS = (Y_DIM, X_DIM)


def to_timestamp(value: Any) -> pd.Timestamp:
    """Coerce a date-like value to a timezone-naive ``pandas.Timestamp``."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts


@dataclass(frozen=True)
class ScaleTransform:
    """Linear per-source transform: ``output = input * multiplier + offset``."""
    multiplier: float = 1.0
    offset: float = 0.0

    def __post_init__(self):
        if not math.isfinite(self.multiplier) or self.multiplier == 0:
            raise ConfigurationError(
                f"Scale multiplier must be finite and non-zero, got {self.multiplier}"
            )
        if not math.isfinite(self.offset):
            raise ConfigurationError(f"Scale offset must be finite, got {self.offset}")

    @property
    def is_identity(self) -> bool:
        return self.multiplier == 1 and self.offset == 0

    def apply(self, values):
        """Apply the transform. NaN stays NaN."""
        return values * self.multiplier + self.offset


@dataclass(frozen=True, order=True)
class MonthKey:
    """Calendar (year, month) pair joining monthly rasters to climatology."""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be in [1, 12], got {self.month}")

    @classmethod
    def from_timestamp(cls, value: Any) -> 'MonthKey':
        ts = to_timestamp(value)
        return cls(ts.year, ts.month)

    @property
    def start(self) -> pd.Timestamp:
        """First instant of the month."""
        return pd.Timestamp(year=self.year, month=self.month, day=1)

    @property
    def end(self) -> pd.Timestamp:
        """First instant of the following month."""
        return self.start + pd.offsets.MonthBegin(1)

    @staticmethod
    def months_between(start: Any, end: Any) -> List['MonthKey']:
        """All months overlapping the half-open interval ``[start, end)``."""
        start_ts, end_ts = to_timestamp(start), to_timestamp(end)
        if end_ts <= start_ts:
            return []
        periods = pd.period_range(start_ts, end_ts - pd.Timedelta(1, 'ns'), freq='M')
        return [MonthKey(p.year, p.month) for p in periods]

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class DateRange:
    """Half-open date interval ``[start, end)``."""
    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self):
        try:
            start, end = to_timestamp(self.start), to_timestamp(self.end)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid date range {self.start!r} - {self.end!r}", e)
        if pd.isna(start) or pd.isna(end):
            raise ConfigurationError(f"Date range needs both start and end, got {self.start!r} - {self.end!r}")
        object.__setattr__(self, 'start', start)
        object.__setattr__(self, 'end', end)
        if self.end <= self.start:
            raise ConfigurationError(
                f"Date range end {self.end.date()} must be after start {self.start.date()}"
            )

    @classmethod
    def for_years(cls, start_year: int, end_year: int) -> 'DateRange':
        """Whole calendar years, ``start_year`` through ``end_year`` inclusive."""
        return cls(pd.Timestamp(year=start_year, month=1, day=1),
                   pd.Timestamp(year=end_year + 1, month=1, day=1))

    def contains(self, value: Any) -> bool:
        ts = to_timestamp(value)
        return self.start <= ts < self.end

    def intersection(self, other: 'DateRange') -> Optional['DateRange']:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return None
        return DateRange(start, end)

    def month_keys(self) -> List[MonthKey]:
        return MonthKey.months_between(self.start, self.end)


@dataclass(frozen=True)
class GridPoint:
    """Sample location in grid coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class GridRegion:
    """Axis-aligned sample region in grid coordinates (bounds inclusive)."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ConfigurationError(
                f"Invalid region bounds: {(self.min_x, self.min_y, self.max_x, self.max_y)}"
            )

    @classmethod
    def from_bounds(cls, bounds: Iterable[float]) -> 'GridRegion':
        """Region from two opposite corners ``[x1, y1, x2, y2]`` in any order."""
        try:
            x1, y1, x2, y2 = (float(b) for b in bounds)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Region bounds need [x1, y1, x2, y2], got {bounds!r}", e)
        return cls(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))

    def mask(self, array: xr.DataArray) -> xr.DataArray:
        """Boolean mask of the pixels of ``array`` inside the region."""
        x, y = array[X_DIM], array[Y_DIM]
        return (x >= self.min_x) & (x <= self.max_x) & (y >= self.min_y) & (y <= self.max_y)

    def reduce_mean(self, array: xr.DataArray) -> float:
        """NaN-skipping mean of ``array`` over the region; NaN if nothing is valid."""
        inside = array.where(self.mask(array))
        if not bool(inside.notnull().any()):
            return float('nan')
        return float(inside.mean(skipna=True))


@dataclass(frozen=True, eq=False)
class BandedRaster:
    """A 2-D grid with named, independently addressable bands."""
    data: xr.Dataset

    def __post_init__(self):
        if not isinstance(self.data, xr.Dataset):
            raise TypeError(f"Raster data must be an xarray.Dataset, got {type(self.data).__name__}")
        for name, var in self.data.data_vars.items():
            if set(var.dims) != set(SPATIAL_DIMS):
                raise ValueError(f"Band '{name}' has dims {var.dims}, expected {SPATIAL_DIMS}")

    @classmethod
    def from_arrays(cls,
                    bands: Mapping,
                    x: Optional[Sequence] = None,
                    y: Optional[Sequence] = None,
                    **kwargs):
        """Build a raster from 2-D arrays keyed by band name.

        Args:
            bands: Mapping of band name to 2-D array (rows = y, cols = x)
            x: Column coordinates (defaults to pixel indices)
            y: Row coordinates (defaults to pixel indices)
            **kwargs: Extra fields for subclasses (e.g. ``timestamp``)
        """
        arrays = {name: np.asarray(values, dtype=float) for name, values in bands.items()}
        shapes = {arr.shape for arr in arrays.values()}
        if len(shapes) > 1:
            raise ValueError(f"All bands must share one grid, got shapes {sorted(shapes)}")
        if arrays:
            shape = shapes.pop()
            if len(shape) != 2:
                raise ValueError(f"Bands must be 2-D, got shape {shape}")
            ny, nx = shape
        else:
            ny = len(y) if y is not None else 0
            nx = len(x) if x is not None else 0

        coords = {
            Y_DIM: np.asarray(y) if y is not None else np.arange(ny),
            X_DIM: np.asarray(x) if x is not None else np.arange(nx),
        }
        dataset = xr.Dataset(
            {name: (SPATIAL_DIMS, arr) for name, arr in arrays.items()},
            coords=coords
        )
        return cls(data=dataset, **kwargs)

    @property
    def band_names(self) -> List[str]:
        return [str(name) for name in self.data.data_vars]

    @property
    def has_bands(self) -> bool:
        return len(self.data.data_vars) > 0

    @property
    def shape(self) -> Tuple[int, int]:
        return (int(self.data.sizes.get(Y_DIM, 0)), int(self.data.sizes.get(X_DIM, 0)))

    def has_band(self, name: str) -> bool:
        return name in self.data.data_vars

    def band(self, name: str) -> xr.DataArray:
        if name not in self.data.data_vars:
            raise KeyError(f"Band '{name}' not present; available bands: {self.band_names}")
        return self.data[name]

    def valid_mask(self, name: str) -> xr.DataArray:
        return self.band(name).notnull()

    def with_band(self, name: str, values: Union[xr.DataArray, np.ndarray]):
        """Return a copy with ``name`` added (or replaced); other bands untouched."""
        if isinstance(values, xr.DataArray):
            new_band = values.drop_vars(
                [c for c in values.coords if c not in SPATIAL_DIMS]
            ).rename(name)
        else:
            new_band = (SPATIAL_DIMS, np.asarray(values, dtype=float))
        return replace(self, data=self.data.assign({name: new_band}))

    def select(self, names: Iterable[str]):
        """Return a copy holding only ``names``."""
        names = list(names)
        for name in names:
            self.band(name)
        return replace(self, data=self.data[names])

    def without_bands(self):
        """Zero-band raster on the same grid."""
        return replace(self, data=self.data.drop_vars(list(self.data.data_vars)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bands={self.band_names}, shape={self.shape})"


@dataclass(frozen=True, eq=False)
class TimestampedRaster(BandedRaster):
    """A banded raster paired with one representative timestamp."""
    timestamp: pd.Timestamp

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'timestamp', to_timestamp(self.timestamp))

    @classmethod
    def from_raster(cls, raster: BandedRaster, timestamp: Any) -> 'TimestampedRaster':
        return cls(data=raster.data, timestamp=timestamp)

    @property
    def month_key(self) -> MonthKey:
        return MonthKey.from_timestamp(self.timestamp)

    @property
    def year(self) -> int:
        return self.timestamp.year

    @property
    def month(self) -> int:
        return self.timestamp.month

    @property
    def day_of_year(self) -> int:
        return self.timestamp.dayofyear

    def at(self, timestamp: Any) -> 'TimestampedRaster':
        return replace(self, timestamp=timestamp)

    def __repr__(self) -> str:
        return (f"TimestampedRaster(timestamp={self.timestamp.isoformat()}, "
                f"bands={self.band_names}, shape={self.shape})")


class RasterSeries(Sequence):
    """Immutable sequence of timestamped rasters ordered by timestamp.

    Construction sorts stably, so rasters sharing a timestamp keep their
    input order.
    """

    def __init__(self, rasters: Iterable[TimestampedRaster] = ()):
        items = list(rasters)
        for item in items:
            if not isinstance(item, TimestampedRaster):
                raise TypeError(f"RasterSeries holds TimestampedRaster, got {type(item).__name__}")
        self._rasters: Tuple[TimestampedRaster, ...] = tuple(
            sorted(items, key=lambda r: r.timestamp)
        )

    def __len__(self) -> int:
        return len(self._rasters)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return RasterSeries(self._rasters[index])
        return self._rasters[index]

    def __iter__(self) -> Iterator[TimestampedRaster]:
        return iter(self._rasters)

    def __repr__(self) -> str:
        if not self._rasters:
            return "RasterSeries(empty)"
        return (f"RasterSeries(n={len(self)}, start={self._rasters[0].timestamp.date()}, "
                f"end={self._rasters[-1].timestamp.date()})")

    @property
    def is_empty(self) -> bool:
        return not self._rasters

    @property
    def timestamps(self) -> List[pd.Timestamp]:
        return [r.timestamp for r in self._rasters]

    @property
    def band_names(self) -> List[str]:
        names: Dict[str, None] = {}
        for raster in self._rasters:
            names.update(dict.fromkeys(raster.band_names))
        return list(names)

    def filter(self, predicate: Callable[[TimestampedRaster], bool]) -> 'RasterSeries':
        return RasterSeries(r for r in self._rasters if predicate(r))

    def filter_date(self, date_range: DateRange) -> 'RasterSeries':
        return self.filter(lambda r: date_range.contains(r.timestamp))

    def map(self, func: Callable[[TimestampedRaster], TimestampedRaster]) -> 'RasterSeries':
        return RasterSeries(func(r) for r in self._rasters)

    def grid_template(self, band: Optional[str] = None) -> Optional[TimestampedRaster]:
        """First raster carrying ``band`` (or any band), used as a grid template."""
        for raster in self._rasters:
            if raster.has_bands and (band is None or raster.has_band(band)):
                return raster
        return None

    def to_dataset(self, band: str) -> xr.Dataset:
        """Stack ``band`` along a ``time`` dimension. Grids must match exactly."""
        carrying = [r for r in self._rasters if r.has_band(band)]
        if not carrying:
            return xr.Dataset()
        time_index = pd.Index([r.timestamp for r in carrying], name=TIME_DIM)
        stacked = xr.concat([r.band(band) for r in carrying], dim=time_index, join='exact')
        return stacked.to_dataset(name=band)

    @classmethod
    def from_dataset(cls, dataset: xr.Dataset, time_dim: str = TIME_DIM) -> 'RasterSeries':
        """Split a dataset with a time dimension into timestamped rasters."""
        band_vars = [
            name for name, var in dataset.data_vars.items()
            if set(var.dims) == {time_dim, *SPATIAL_DIMS}
        ]
        bands = dataset[band_vars]
        rasters = []
        for i, value in enumerate(dataset[time_dim].values):
            rasters.append(TimestampedRaster(
                data=bands.isel({time_dim: i}, drop=True),
                timestamp=value
            ))
        return cls(rasters)


class ClimatologySet(Mapping):
    """Month-of-year (1-12) to climatological raster; always 12 entries."""

    MONTHS = tuple(range(1, 13))

    def __init__(self, rasters: Mapping):
        months = sorted(int(m) for m in rasters)
        if months != list(self.MONTHS):
            raise ValueError(
                f"Climatology needs exactly one raster per month 1-12, got months {months}"
            )
        self._rasters: Dict[int, BandedRaster] = {int(m): r for m, r in rasters.items()}

    def __getitem__(self, month: int) -> BandedRaster:
        return self._rasters[month]

    def __iter__(self) -> Iterator[int]:
        return iter(self.MONTHS)

    def __len__(self) -> int:
        return len(self._rasters)

    def __repr__(self) -> str:
        return f"ClimatologySet(months=12, bands={self._rasters[1].band_names})"

    def monthly_region_means(self, band: str, region: Optional[GridRegion] = None) -> pd.Series:
        """Spatial mean of each month's climatology, NaN where nothing is valid."""
        values = {}
        for month in self.MONTHS:
            raster = self._rasters[month]
            if not raster.has_band(band):
                values[month] = float('nan')
                continue
            array = raster.band(band)
            if region is not None:
                values[month] = region.reduce_mean(array)
            elif bool(array.notnull().any()):
                values[month] = float(array.mean(skipna=True))
            else:
                values[month] = float('nan')
        return pd.Series(values, name=band).rename_axis('month')

    def maximum_monthly_mean(self, band: str,
                             region: Optional[GridRegion] = None) -> Tuple[int, float]:
        """Warmest climatological month and its spatial mean (the MMM).

        This is the usual derivation of a coral bleaching threshold.
        """
        means = self.monthly_region_means(band, region).dropna()
        if means.empty:
            raise ValueError(f"No valid climatological values for band '{band}'")
        month = int(means.idxmax())
        return month, float(means.loc[month])
