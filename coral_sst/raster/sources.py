# coral_sst/raster/sources.py
"""Concrete raster sources."""

from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import xarray as xr

from coral_sst.abstractions.interfaces import IRasterSource
from coral_sst.abstractions.types import (
    TIME_DIM, X_DIM, Y_DIM, DateRange, RasterSeries, TimestampedRaster
)
from coral_sst.core.exceptions import SourceFetchFailure
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)


class InMemoryRasterSource(IRasterSource):
    """Serves collections held in memory; handy for tests and small studies."""

    def __init__(self, collections: Optional[Mapping[str, Iterable[TimestampedRaster]]] = None):
        self._collections: Dict[str, RasterSeries] = {}
        for collection_id, rasters in (collections or {}).items():
            self.add_collection(collection_id, rasters)

    def add_collection(self, collection_id: str, rasters: Iterable[TimestampedRaster]):
        self._collections[collection_id] = RasterSeries(rasters)

    @property
    def collection_ids(self):
        return list(self._collections)

    def fetch(self, collection_id: str, date_range: DateRange) -> RasterSeries:
        if collection_id not in self._collections:
            logger.warning(f"Unknown collection '{collection_id}' - returning empty series")
            return RasterSeries()
        return self._collections[collection_id].filter_date(date_range)


class XarrayRasterSource(IRasterSource):
    """
    Serves collections stored as xarray datasets with a time dimension.

    Each collection is either an open ``xarray.Dataset`` or a path opened
    lazily with ``xarray.open_dataset`` on first fetch. Dimension names are
    mapped onto ``time``/``y``/``x`` (e.g. ``lat``/``lon``).
    """

    def __init__(self,
                 collections: Mapping[str, Union[xr.Dataset, str, Path]],
                 time_dim: str = TIME_DIM,
                 y_dim: str = Y_DIM,
                 x_dim: str = X_DIM,
                 open_kwargs: Optional[dict] = None):
        self._collections = dict(collections)
        self._renames = {
            old: new for old, new in ((time_dim, TIME_DIM), (y_dim, Y_DIM), (x_dim, X_DIM))
            if old != new
        }
        self.open_kwargs = open_kwargs or {}

    def _dataset(self, collection_id: str) -> Optional[xr.Dataset]:
        entry = self._collections.get(collection_id)
        if entry is None:
            return None
        if not isinstance(entry, xr.Dataset):
            try:
                entry = xr.open_dataset(entry, **self.open_kwargs)
            except (OSError, ValueError) as e:
                raise SourceFetchFailure(f"Failed to open {entry} for '{collection_id}'", e)
            self._collections[collection_id] = entry
        return entry.rename(self._renames) if self._renames else entry

    def fetch(self, collection_id: str, date_range: DateRange) -> RasterSeries:
        dataset = self._dataset(collection_id)
        if dataset is None:
            logger.warning(f"Unknown collection '{collection_id}' - returning empty series")
            return RasterSeries()

        times = dataset.indexes[TIME_DIM]
        selected = dataset.isel({TIME_DIM: (times >= date_range.start) & (times < date_range.end)})
        try:
            selected = selected.load()
        except (OSError, RuntimeError) as e:
            raise SourceFetchFailure(f"Failed to read '{collection_id}'", e)

        series = RasterSeries.from_dataset(selected)
        logger.debug(
            f"Fetched {len(series)} rasters from '{collection_id}'",
            extra={'context': {'collection_id': collection_id}}
        )
        return series
