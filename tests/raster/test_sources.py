"""Tests for raster sources."""
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import xarray as xr

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.abstractions.types import DateRange
from coral_sst.core.exceptions import SourceFetchFailure
from coral_sst.raster import InMemoryRasterSource, XarrayRasterSource


@pytest.fixture
def lat_lon_dataset():
    """Daily SST for 10 days in January 2020 on a lat/lon grid."""
    times = pd.date_range('2020-01-01', periods=10, freq='D')
    values = np.arange(10, dtype=float)[:, None, None] * np.ones((10, 2, 3))
    return xr.Dataset(
        {
            'SST_AVE': (('time', 'lat', 'lon'), values),
            'flag': (('time',), np.zeros(10)),
        },
        coords={'time': times, 'lat': [25.0, 24.5], 'lon': [-82.0, -81.5, -81.0]}
    )


class TestInMemoryRasterSource:
    """Test the in-memory source."""

    def test_fetch_filters_dates(self, raw_source):
        series = raw_source.fetch('old', DateRange('2020-01-01', '2020-01-15'))
        assert len(series) == 2

    def test_unknown_collection_is_empty(self, raw_source):
        assert raw_source.fetch('missing', DateRange('2020-01-01', '2021-01-01')).is_empty

    def test_add_collection_replaces_existing(self, raster_factory):
        source = InMemoryRasterSource({'sst': [raster_factory(1.0, '2020-01-01')]})
        source.add_collection('sst', [raster_factory(2.0, '2020-01-02'), raster_factory(3.0, '2020-01-03')])

        series = source.fetch('sst', DateRange('2020-01-01', '2020-02-01'))
        assert len(series) == 2
        assert series[0].timestamp == pd.Timestamp('2020-01-02')

    def test_collection_ids(self, raw_source):
        assert raw_source.collection_ids == ['old', 'new']


class TestXarrayRasterSource:
    """Test the xarray-backed source."""

    def test_fetch_with_renamed_dims(self, lat_lon_dataset):
        source = XarrayRasterSource({'sst': lat_lon_dataset}, y_dim='lat', x_dim='lon')
        series = source.fetch('sst', DateRange('2020-01-03', '2020-01-06'))

        assert len(series) == 3
        assert series.band_names == ['SST_AVE']
        assert series[0].timestamp == pd.Timestamp('2020-01-03')
        np.testing.assert_array_equal(series[0].band('SST_AVE').values, np.full((2, 3), 2.0))
        np.testing.assert_array_equal(series[0].band('SST_AVE')['x'].values, [-82.0, -81.5, -81.0])

    def test_unknown_collection_is_empty(self, lat_lon_dataset):
        source = XarrayRasterSource({'sst': lat_lon_dataset}, y_dim='lat', x_dim='lon')
        assert source.fetch('other', DateRange('2020-01-01', '2020-02-01')).is_empty

    def test_open_from_path(self, lat_lon_dataset, tmp_path):
        path = tmp_path / 'sst.nc'
        lat_lon_dataset.to_netcdf(path)
        source = XarrayRasterSource({'sst': path}, y_dim='lat', x_dim='lon')
        assert len(source.fetch('sst', DateRange('2020-01-01', '2020-02-01'))) == 10

    def test_unreadable_path_raises(self, tmp_path):
        source = XarrayRasterSource({'sst': tmp_path / 'missing.nc'})
        with pytest.raises(SourceFetchFailure) as exc_info:
            source.fetch('sst', DateRange('2020-01-01', '2020-02-01'))
        assert exc_info.value.original_exception is not None
