"""Shared test fixtures for coral_sst tests."""

import logging
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.abstractions.types import (
    DateRange, RasterSeries, ScaleTransform, TimestampedRaster
)
from coral_sst.config.pipeline_config import PipelineConfig, SourceConfig
from coral_sst.raster import InMemoryRasterSource

# 2 rows x 3 columns
X_COORDS = [0.0, 1.0, 2.0]
Y_COORDS = [1.0, 0.0]


def make_raster(value, timestamp, band='SST', x=None, y=None):
    """Raster with one band filled with ``value`` (scalar or 2x3 array)."""
    x = X_COORDS if x is None else x
    y = Y_COORDS if y is None else y
    values = np.broadcast_to(np.asarray(value, dtype=float), (len(y), len(x))).copy()
    return TimestampedRaster.from_arrays({band: values}, x=x, y=y, timestamp=timestamp)


def make_series(values_by_date, band='SST'):
    """Series from a ``{date: value}`` mapping."""
    return RasterSeries(make_raster(v, t, band) for t, v in values_by_date.items())


@pytest.fixture
def raster_factory():
    """Factory for single-band test rasters on a 2x3 grid."""
    return make_raster


@pytest.fixture
def series_factory():
    """Factory for single-band test series on a 2x3 grid."""
    return make_series


@pytest.fixture
def daily_2020_series():
    """Daily SST for 2020 with value ``month + day / 100``."""
    dates = pd.date_range('2020-01-01', '2020-12-31', freq='D')
    return RasterSeries(make_raster(d.month + d.day / 100, d) for d in dates)


@pytest.fixture
def raw_source():
    """In-memory source with two raw collections on band ``SST_AVE``.

    ``old`` covers January-June 2020, ``new`` covers June-December 2020,
    raw value 25000 scaling to 20.0 under (x0.0012, -10) for ``old`` and
    26000 scaling to 21.2 for ``new``.
    """
    old_dates = pd.date_range('2020-01-01', '2020-06-30', freq='7D')
    new_dates = pd.date_range('2020-06-01', '2020-12-31', freq='7D')
    return InMemoryRasterSource({
        'old': [make_raster(25000, d, band='SST_AVE') for d in old_dates],
        'new': [make_raster(26000, d, band='SST_AVE') for d in new_dates],
    })


@pytest.fixture
def gcom_transform():
    return ScaleTransform(0.0012, -10.0)


@pytest.fixture
def pipeline_config_factory(gcom_transform):
    """Factory for a two-source PipelineConfig over 2020."""
    def factory(**overrides):
        params = dict(
            period=DateRange('2020-01-01', '2021-01-01'),
            sources=(
                SourceConfig('old', 'old', 'SST_AVE', gcom_transform,
                             DateRange('2020-01-01', '2020-07-01')),
                SourceConfig('new', 'new', 'SST_AVE', gcom_transform,
                             DateRange('2020-06-01', '2021-01-01')),
            ),
            max_workers=2,
            retry_delay=0.0,
        )
        params.update(overrides)
        return PipelineConfig(**params)
    return factory


@pytest.fixture(autouse=True)
def debug_root_logger():
    """Let every level reach the (patched) logger internals."""
    root = logging.getLogger()
    level = root.level
    root.setLevel(logging.DEBUG)
    yield
    root.setLevel(level)
