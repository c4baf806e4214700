# coral_sst/pipelines/sst_pipeline.py
"""End-to-end SST, SST anomaly and bleaching threshold pipeline."""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from coral_sst.abstractions.interfaces import IOutputSink, IRasterSource
from coral_sst.abstractions.types import ClimatologySet, RasterSeries, TimestampedRaster
from coral_sst.config.pipeline_config import PipelineConfig, SourceConfig
from coral_sst.core.exceptions import DegenerateRaster, PipelineCancelled, SourceFetchFailure
from coral_sst.infrastructure.logging import LoggingContext, get_logger, retry_with_logging
from coral_sst.processors import (
    AnomalyEngine, ScaledRasterSeries, SeriesMerger, SeriesSampler,
    TemporalAggregator, ThresholdClassifier, anomaly_band_name
)
from coral_sst.raster.layers import (
    HEAT_STRESS_LAYER, MONTHLY_CHART, SST_ANOMALY_LAYER, SST_CHART, SST_LAYER,
    THRESHOLD_CHART, for_band
)

logger = get_logger(__name__)


class PipelineStatus(Enum):
    """Pipeline execution status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PipelineResult:
    """Everything one run produced."""
    run_id: str
    merged: RasterSeries
    monthly: RasterSeries
    climatology: ClimatologySet
    anomalies: RasterSeries
    combined: RasterSeries
    threshold: Optional[float] = None
    threshold_month: Optional[int] = None
    threshold_series: Optional[RasterSeries] = None
    sst_map: Optional[TimestampedRaster] = None
    anomaly_map: Optional[TimestampedRaster] = None
    heat_stress: Optional[TimestampedRaster] = None
    samples: Dict[str, pd.DataFrame] = field(default_factory=dict)
    timings: Dict[str, float] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for logging."""
        return {
            'run_id': self.run_id,
            'merged_rasters': len(self.merged),
            'monthly_rasters': len(self.monthly),
            'anomaly_rasters': len(self.anomalies),
            'threshold': self.threshold,
            'threshold_month': self.threshold_month,
            'heat_stress': self.heat_stress is not None,
            'samples': sorted(self.samples),
            'warnings': list(self.warnings),
        }


class SSTAnomalyPipeline:
    """
    Fetch, scale and merge SST sources, then derive monthly means, the
    monthly climatology, anomalies, the bleaching threshold and a heat-stress
    map, plus the sampled series behind the charts.

    Outputs go to the sink only after every stage succeeded; a failed or
    cancelled run writes nothing.
    """

    def __init__(self,
                 pipeline_config: PipelineConfig,
                 source: IRasterSource,
                 sink: Optional[IOutputSink] = None,
                 run_id: Optional[str] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = pipeline_config
        self.source = source
        self.sink = sink
        self.context = LoggingContext(run_id)
        self.status = PipelineStatus.PENDING
        self._cancel_event = threading.Event()
        self._sleep = sleep

        workers = pipeline_config.max_workers
        self.merger = SeriesMerger()
        self.aggregator = TemporalAggregator(max_workers=workers, cancel_event=self._cancel_event)
        self.anomaly_engine = AnomalyEngine(max_workers=workers,
                                            suffix=pipeline_config.anomaly_suffix,
                                            cancel_event=self._cancel_event)
        self.classifier = ThresholdClassifier(band_name=pipeline_config.threshold_band)
        self.sampler = SeriesSampler()

    @property
    def run_id(self) -> str:
        return self.context.run_id

    @property
    def anomaly_band(self) -> str:
        return anomaly_band_name(self.config.band, self.config.anomaly_suffix)

    def cancel(self):
        """Request cancellation; honoured at the next stage or fetch boundary."""
        self._cancel_event.set()
        logger.info("Cancellation requested", extra={'context': {'run_id': self.run_id}})

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _check_cancelled(self, where: str):
        if self._cancel_event.is_set():
            raise PipelineCancelled(f"Pipeline {self.run_id} cancelled before {where}")

    # Stages

    def _fetch_source(self, source_config: SourceConfig) -> RasterSeries:
        date_range = source_config.date_range.intersection(self.config.period)
        if date_range is None:
            logger.info(f"Skipping '{source_config.name}': outside study period")
            return RasterSeries()

        scaled = ScaledRasterSeries(
            source=self.source,
            collection_id=source_config.collection_id,
            date_range=date_range,
            band=source_config.band,
            transform=source_config.transform,
            output_band=self.config.band
        )
        fetch = retry_with_logging(
            max_attempts=self.config.retry_attempts,
            delay=self.config.retry_delay,
            backoff=self.config.retry_backoff,
            exceptions=(SourceFetchFailure,),
            sleep=self._sleep
        )(scaled.series_or_empty)
        return fetch()

    def _fetch_all(self) -> List[RasterSeries]:
        fetched = []
        for source_config in self.config.sources:
            self._check_cancelled(f"fetching '{source_config.name}'")
            series = self._fetch_source(source_config)
            logger.info(
                f"Source '{source_config.name}' contributed {len(series)} rasters",
                extra={'context': {'source': source_config.name}}
            )
            fetched.append(series)
        return fetched

    def _resolve_threshold(self, climatology: ClimatologySet, warnings: List[str]):
        if self.config.threshold is not None:
            return self.config.threshold, None
        try:
            month, value = climatology.maximum_monthly_mean(self.config.band,
                                                            self.config.sample_region)
        except ValueError as e:
            warnings.append(f"Bleaching threshold not derivable: {e}")
            logger.warning(f"{e}; skipping threshold and heat stress")
            return None, None
        logger.info(f"Derived bleaching threshold {value:.3f} from month {month} climatology")
        return value, month

    def _classify(self, sst_map: TimestampedRaster, threshold: float,
                  warnings: List[str]) -> Optional[TimestampedRaster]:
        try:
            return self.classifier.classify(
                sst_map, threshold,
                bands=[self.config.band] if sst_map.has_band(self.config.band) else None,
                valid_range=self.config.valid_range
            )
        except DegenerateRaster as e:
            warnings.append(f"Heat stress map skipped: {e}")
            logger.warning(f"{e}; heat stress map skipped")
            return None

    def _sample(self, result: PipelineResult):
        cfg = self.config
        band = cfg.band

        if cfg.sample_point is not None:
            daily = self.sampler.sample_at_point(result.merged, cfg.sample_point, bands=[band])
            result.samples['sst_point'] = daily
            result.samples['sst_point_doy'] = self.sampler.bucket_by_day_of_year(
                daily, band, cfg.doy_start, cfg.doy_end
            )

        if cfg.sample_region is not None:
            monthly = self.sampler.sample_over_region(
                result.combined, cfg.sample_region, bands=[band, self.anomaly_band]
            )
            result.samples['monthly_sst_region'] = monthly
            result.samples['monthly_sst_doy'] = self.sampler.bucket_by_day_of_year(
                monthly, band, cfg.doy_start, cfg.doy_end
            )
            result.samples['monthly_anomaly_doy'] = self.sampler.bucket_by_day_of_year(
                monthly, self.anomaly_band, cfg.doy_start, cfg.doy_end
            )

            if result.threshold_series is not None and cfg.classification_period is not None:
                window = result.threshold_series.filter_date(cfg.classification_period)
                result.samples['sst_threshold_region'] = self.sampler.sample_over_region(
                    window, cfg.sample_region, bands=[cfg.threshold_band, band]
                )

    def _emit(self, result: PipelineResult):
        sink = self.sink
        band = self.config.band

        sink.write_series('monthly_sst_anomaly', result.combined, for_band(SST_LAYER, band))
        if result.threshold_series is not None:
            sink.write_series('sst_bleaching_threshold', result.threshold_series)
        if result.sst_map is not None:
            sink.write_raster('sst_map', result.sst_map, for_band(SST_LAYER, band))
        if result.anomaly_map is not None:
            sink.write_raster('sst_anomaly_map', result.anomaly_map,
                              for_band(SST_ANOMALY_LAYER, self.anomaly_band))
        if result.heat_stress is not None:
            sink.write_raster('coral_heat_stress', result.heat_stress,
                              for_band(HEAT_STRESS_LAYER, band))

        charts = {
            'sst_point_doy': SST_CHART,
            'monthly_sst_doy': MONTHLY_CHART,
            'monthly_anomaly_doy': MONTHLY_CHART,
            'sst_threshold_region': THRESHOLD_CHART,
        }
        for name, samples in result.samples.items():
            sink.write_scalar_series(name, samples, charts.get(name))

    def run(self) -> PipelineResult:
        """
        Execute every stage in order.

        Returns:
            PipelineResult with intermediate and final products

        Raises:
            SourceFetchFailure: A source kept failing after all retries
            PipelineCancelled: ``cancel()`` was called during the run
        """
        cfg = self.config
        band = cfg.band
        warnings: List[str] = []
        self.status = PipelineStatus.RUNNING

        try:
            with self.context.pipeline('sst_anomaly', sources=list(cfg.source_names)):
                with self.context.stage('fetch'):
                    fetched = self._fetch_all()

                self._check_cancelled('merge')
                with self.context.stage('merge'):
                    merged = self.merger.merge(*fetched)
                if merged.is_empty:
                    warnings.append("No rasters in the study period")
                    logger.warning("Merged series is empty; outputs will be all no-data")

                self._check_cancelled('monthly aggregation')
                with self.context.stage('monthly_mean'):
                    monthly = self.aggregator.monthly_mean(merged, band, cfg.period)

                self._check_cancelled('climatology')
                with self.context.stage('climatology'):
                    climatology = self.aggregator.climatology(monthly, band, cfg.period)

                self._check_cancelled('anomalies')
                with self.context.stage('anomalies'):
                    anomalies = self.anomaly_engine.anomalies(monthly, climatology, band)
                    combined = self.anomaly_engine.combine(monthly, anomalies)

                result = PipelineResult(
                    run_id=self.run_id,
                    merged=merged,
                    monthly=monthly,
                    climatology=climatology,
                    anomalies=anomalies,
                    combined=combined,
                    warnings=warnings
                )

                self._check_cancelled('threshold')
                with self.context.stage('threshold'):
                    threshold, month = self._resolve_threshold(climatology, warnings)
                    result.threshold, result.threshold_month = threshold, month
                    if threshold is not None:
                        result.threshold_series = self.classifier.add_threshold_series(
                            merged, threshold, reference_band=band
                        )

                if cfg.classification_period is not None:
                    self._check_cancelled('classification')
                    with self.context.stage('classification'):
                        period = cfg.classification_period
                        result.sst_map = self.aggregator.period_mean(merged, band, period)
                        result.anomaly_map = self.aggregator.period_mean(
                            anomalies, self.anomaly_band, period
                        )
                        if threshold is not None:
                            result.heat_stress = self._classify(result.sst_map, threshold, warnings)

                self._check_cancelled('sampling')
                with self.context.stage('sampling'):
                    self._sample(result)

                self._check_cancelled('output')
                if self.sink is not None:
                    with self.context.stage('output'):
                        self._emit(result)

        except PipelineCancelled:
            self.status = PipelineStatus.CANCELLED
            logger.warning(f"Pipeline {self.run_id} cancelled; nothing was written")
            raise
        except Exception:
            self.status = PipelineStatus.FAILED
            raise

        result.timings = dict(self.context.timings)
        self.status = PipelineStatus.COMPLETED
        logger.info("Pipeline completed", extra={'context': result.to_dict()})
        return result
