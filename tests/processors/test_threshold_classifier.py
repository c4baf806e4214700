"""Tests for the bleaching threshold and heat stress classes."""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.abstractions.types import RasterSeries
from coral_sst.core.exceptions import DegenerateRaster
from coral_sst.processors import (
    ABOVE_THRESHOLD, BELOW_THRESHOLD, CLASS_LABELS, THRESHOLD_BAND, ThresholdClassifier
)


class TestThresholdBand:
    """Test adding the constant threshold band."""

    def test_add_threshold(self, raster_factory):
        raster = raster_factory([[30.0, np.nan, 31.0], [29.0, 30.0, np.nan]], '2023-07-01')
        result = ThresholdClassifier().add_threshold(raster, 30.148)

        assert result.band_names == ['SST', THRESHOLD_BAND]
        np.testing.assert_array_equal(
            result.band(THRESHOLD_BAND).values,
            [[30.148, np.nan, 30.148], [30.148, 30.148, np.nan]]
        )
        np.testing.assert_array_equal(result.band('SST').values, raster.band('SST').values)

    def test_series(self, raster_factory):
        series = RasterSeries([
            raster_factory(30.0, '2023-07-01'),
            raster_factory(30.0, '2023-07-02', band='Other'),
        ])
        result = ThresholdClassifier(band_name='BT').add_threshold_series(series, 30.148)
        assert result[0].has_band('BT')
        assert not result[1].has_band('BT')


class TestClassify:
    """Test two-class discretization."""

    def test_boundary(self, raster_factory):
        raster = raster_factory([[30.148, 30.5, 29.0], [30.149, np.nan, 35.0]], '2023-07-01')
        classified = ThresholdClassifier().classify(raster, 30.148)

        assert classified.band_names == ['SST']
        np.testing.assert_array_equal(
            classified.band('SST').values,
            [[BELOW_THRESHOLD, ABOVE_THRESHOLD, BELOW_THRESHOLD],
             [ABOVE_THRESHOLD, np.nan, ABOVE_THRESHOLD]]
        )

    def test_valid_range(self, raster_factory):
        raster = raster_factory([[-1.0, 0.0, 30.5], [40.0, 41.0, 29.0]], '2023-07-01')
        classified = ThresholdClassifier().classify(raster, 30.148, valid_range=(0.0, 40.0))
        np.testing.assert_array_equal(
            classified.band('SST').values,
            [[np.nan, 0.0, 1.0], [1.0, np.nan, 0.0]]
        )

    def test_threshold_band_not_classified(self, raster_factory):
        classifier = ThresholdClassifier()
        raster = classifier.add_threshold(raster_factory(31.0, '2023-07-01'), 30.148)
        classified = classifier.classify(raster, 30.148)
        assert classified.band_names == ['SST']

    def test_zero_band_raises(self, raster_factory):
        with pytest.raises(DegenerateRaster):
            ThresholdClassifier().classify(raster_factory(31.0, '2023-07-01').without_bands(), 30.148)

    def test_class_fractions(self, raster_factory):
        raster = raster_factory([[31.0, 31.0, 29.0], [29.0, np.nan, 29.0]], '2023-07-01')
        classified = ThresholdClassifier().classify(raster, 30.148)
        fractions = ThresholdClassifier.class_fractions(classified, 'SST')
        assert fractions[CLASS_LABELS[ABOVE_THRESHOLD]] == pytest.approx(0.4)
        assert fractions[CLASS_LABELS[BELOW_THRESHOLD]] == pytest.approx(0.6)
