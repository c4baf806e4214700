"""Processing components, leaf first: scaling, merging, aggregation,
anomalies, threshold classification and sampling."""

from .scaling import ScaledRasterSeries
from .series_merger import SeriesMerger
from .temporal_aggregator import TemporalAggregator
from .anomaly_engine import AnomalyEngine, anomaly_band_name
from .threshold_classifier import (
    ThresholdClassifier, THRESHOLD_BAND, CLASS_LABELS, CLASS_COLORS,
    BELOW_THRESHOLD, ABOVE_THRESHOLD
)
from .series_sampler import SeriesSampler

__all__ = [
    'ScaledRasterSeries',
    'SeriesMerger',
    'TemporalAggregator',
    'AnomalyEngine',
    'anomaly_band_name',
    'ThresholdClassifier',
    'THRESHOLD_BAND',
    'CLASS_LABELS',
    'CLASS_COLORS',
    'BELOW_THRESHOLD',
    'ABOVE_THRESHOLD',
    'SeriesSampler'
]
