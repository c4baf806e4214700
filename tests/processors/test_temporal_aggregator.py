"""Tests for monthly means and climatology."""
import logging
import sys
import threading
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.abstractions.types import DateRange, RasterSeries
from coral_sst.core.exceptions import PipelineCancelled
from coral_sst.infrastructure.logging import run_context, stage_context
from coral_sst.processors import TemporalAggregator


YEAR_2020 = DateRange('2020-01-01', '2021-01-01')


class TestMonthlyMean:
    """Test per-month aggregation."""

    def test_one_raster_per_month(self, daily_2020_series):
        monthly = TemporalAggregator().monthly_mean(daily_2020_series, 'SST', YEAR_2020)
        assert len(monthly) == 12
        assert monthly.timestamps == list(pd.date_range('2020-01-01', periods=12, freq='MS'))

    def test_mean_values(self, daily_2020_series):
        monthly = TemporalAggregator().monthly_mean(daily_2020_series, 'SST', YEAR_2020)
        # January: 1 + mean(1..31) / 100
        np.testing.assert_allclose(monthly[0].band('SST').values, 1.16)
        # February 2020 has 29 days
        np.testing.assert_allclose(monthly[1].band('SST').values, 2.15)

    def test_parallel_matches_serial(self, daily_2020_series):
        serial = TemporalAggregator(max_workers=1).monthly_mean(daily_2020_series, 'SST', YEAR_2020)
        parallel = TemporalAggregator(max_workers=4).monthly_mean(daily_2020_series, 'SST', YEAR_2020)
        for a, b in zip(serial, parallel):
            assert a.timestamp == b.timestamp
            np.testing.assert_array_equal(a.band('SST').values, b.band('SST').values)

    def test_idempotent(self, daily_2020_series):
        aggregator = TemporalAggregator()
        monthly = aggregator.monthly_mean(daily_2020_series, 'SST', YEAR_2020)
        again = aggregator.monthly_mean(monthly, 'SST', YEAR_2020)
        assert again.timestamps == monthly.timestamps
        for a, b in zip(monthly, again):
            np.testing.assert_array_equal(a.band('SST').values, b.band('SST').values)

    def test_out_of_period_ignored(self, series_factory):
        series = series_factory({
            '2019-12-31': 100.0,
            '2020-01-10': 1.0,
            '2020-01-20': 3.0,
            '2020-02-01': 100.0,
        })
        january = DateRange('2020-01-01', '2020-02-01')
        monthly = TemporalAggregator().monthly_mean(series, 'SST', january)
        assert len(monthly) == 1
        np.testing.assert_allclose(monthly[0].band('SST').values, 2.0)

    def test_empty_month_is_no_data(self, series_factory):
        series = series_factory({'2020-01-15': 1.0, '2020-03-15': 3.0})
        monthly = TemporalAggregator().monthly_mean(
            series, 'SST', DateRange('2020-01-01', '2020-04-01')
        )
        assert len(monthly) == 3
        february = monthly[1]
        assert february.timestamp == pd.Timestamp('2020-02-01')
        assert february.shape == (2, 3)
        assert bool(february.band('SST').isnull().all())

    def test_no_grid_gives_zero_band_months(self):
        monthly = TemporalAggregator().monthly_mean(RasterSeries(), 'SST', YEAR_2020)
        assert len(monthly) == 12
        assert not any(r.has_bands for r in monthly)

    def test_no_data_skipped(self, raster_factory):
        series = RasterSeries([
            raster_factory([[1.0, np.nan, 1.0], [np.nan, 1.0, 1.0]], '2020-01-01'),
            raster_factory([[3.0, 3.0, np.nan], [np.nan, 3.0, 3.0]], '2020-01-02'),
        ])
        monthly = TemporalAggregator().monthly_mean(series, 'SST')
        np.testing.assert_array_equal(
            monthly[0].band('SST').values,
            [[2.0, 3.0, 1.0], [np.nan, 2.0, 2.0]]
        )

    def test_other_bands_dropped(self, raster_factory):
        raster = raster_factory(1.0, '2020-01-01').with_band('QA', np.zeros((2, 3)))
        monthly = TemporalAggregator().monthly_mean(RasterSeries([raster]), 'SST')
        assert monthly[0].band_names == ['SST']


class TestClimatology:
    """Test month-of-year climatology."""

    def _monthly(self, series_factory, august_values, years=(2018, 2019, 2020)):
        values = {}
        for year, august in zip(years, august_values):
            for month in range(1, 13):
                values[pd.Timestamp(year=year, month=month, day=1)] = (
                    august if month == 8 else 20.0 + month / 2
                )
        return series_factory(values)

    def test_august_mean(self, series_factory):
        monthly = self._monthly(series_factory, [28.0, 31.0, 31.444])
        climatology = TemporalAggregator().climatology(monthly, 'SST')
        assert len(climatology) == 12
        np.testing.assert_allclose(climatology[8].band('SST').values, 30.148)
        month, value = climatology.maximum_monthly_mean('SST')
        assert month == 8
        assert value == pytest.approx(30.148)

    def test_restricted_to_period(self, series_factory):
        monthly = self._monthly(series_factory, [28.0, 31.0, 31.444, 40.0],
                                years=(2018, 2019, 2020, 2021))
        climatology = TemporalAggregator().climatology(
            monthly, 'SST', DateRange.for_years(2018, 2020)
        )
        np.testing.assert_allclose(climatology[8].band('SST').values, 30.148)

    def test_month_without_contributors(self, series_factory):
        monthly = series_factory({'2020-01-01': 1.0, '2020-02-01': 2.0})
        climatology = TemporalAggregator(max_workers=3).climatology(monthly, 'SST')
        np.testing.assert_allclose(climatology[2].band('SST').values, 2.0)
        assert bool(climatology[7].band('SST').isnull().all())

    def test_pixel_no_data_every_year(self, raster_factory):
        monthly = RasterSeries([
            raster_factory([[np.nan, 1.0, 1.0], [1.0, 1.0, 1.0]], f'{year}-01-01')
            for year in (2018, 2019)
        ])
        climatology = TemporalAggregator().climatology(monthly, 'SST')
        assert np.isnan(climatology[1].band('SST').values[0, 0])


class TestPeriodMean:
    """Test single-map composites."""

    def test_july_composite(self, daily_2020_series):
        july = DateRange('2020-07-01', '2020-07-31')
        composite = TemporalAggregator().period_mean(daily_2020_series, 'SST', july)
        assert composite.timestamp == pd.Timestamp('2020-07-01')
        # days 1..30 only, end is exclusive
        np.testing.assert_allclose(composite.band('SST').values, 7.155)


class TestCancellation:
    """Test abandoning an aggregation between months."""

    def test_cancelled_event_stops_aggregation(self, daily_2020_series):
        event = threading.Event()
        event.set()
        aggregator = TemporalAggregator(max_workers=2, cancel_event=event)
        with pytest.raises(PipelineCancelled):
            aggregator.monthly_mean(daily_2020_series, 'SST', YEAR_2020)

    def test_unset_event_runs(self, daily_2020_series):
        aggregator = TemporalAggregator(cancel_event=threading.Event())
        assert len(aggregator.monthly_mean(daily_2020_series, 'SST', YEAR_2020)) == 12


class TestWorkerContext:
    """Test that records logged by pool workers keep the caller's context."""

    def test_empty_month_warnings_carry_run_and_stage(self, series_factory):
        series = series_factory({'2020-01-15': 1.0})
        run_token = run_context.set('run-workers')
        stage_token = stage_context.set('monthly_mean')
        try:
            with patch.object(logging.Logger, '_log') as mock_log:
                TemporalAggregator(max_workers=3).monthly_mean(
                    series, 'SST', DateRange('2020-01-01', '2020-05-01')
                )
        finally:
            stage_context.reset(stage_token)
            run_context.reset(run_token)

        warnings = [c for c in mock_log.call_args_list if c.args[0] == logging.WARNING]
        assert len(warnings) == 3
        for call in warnings:
            context = call.kwargs['extra']['context']
            assert context['run_id'] == 'run-workers'
            assert context['stage'] == 'monthly_mean'
