# coral_sst/config/pipeline_config.py
"""Validated configuration for one SST anomaly pipeline run."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from coral_sst.abstractions.types import DateRange, GridPoint, GridRegion, ScaleTransform
from coral_sst.core.exceptions import ConfigurationError
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceConfig:
    """One raw raster source and how to bring it onto the common scale."""
    name: str
    collection_id: str
    band: str
    transform: ScaleTransform
    date_range: DateRange

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SourceConfig':
        try:
            return cls(
                name=str(data.get('name', data['collection_id'])),
                collection_id=str(data['collection_id']),
                band=str(data['band']),
                transform=ScaleTransform(
                    float(data.get('multiplier', 1.0)),
                    float(data.get('offset', 0.0))
                ),
                date_range=DateRange(data['start_date'], data['end_date'])
            )
        except KeyError as e:
            raise ConfigurationError(f"Source config missing required key {e}: {data}", e)
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid source config {data}: {e}", e)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything a pipeline run needs, checked at construction.

    Malformed values (reversed dates, zero multipliers, empty source lists,
    bad ranges) raise ConfigurationError here rather than mid-run.
    """
    period: DateRange
    sources: Tuple[SourceConfig, ...]
    band: str = 'SST'
    anomaly_suffix: str = '_Anomaly'
    study_area: Any = None  # opaque handle, passed through untouched
    sample_point: Optional[GridPoint] = None
    sample_region: Optional[GridRegion] = None
    threshold: Optional[float] = None  # None derives the MMM from the climatology
    threshold_band: str = 'Bleaching_Threshold'
    classification_period: Optional[DateRange] = None
    valid_range: Optional[Tuple[float, float]] = None
    max_workers: int = 4
    retry_attempts: int = 3
    retry_delay: float = 1.0
    retry_backoff: float = 2.0
    doy_start: int = 1
    doy_end: int = 365
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'sources', tuple(self.sources))

        if not self.sources:
            raise ConfigurationError("At least one raster source is required")
        names = [s.name for s in self.sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate source names: {duplicates}")
        if not self.band:
            raise ConfigurationError("Analysis band name must not be empty")
        if self.threshold is not None and not math.isfinite(self.threshold):
            raise ConfigurationError(f"Threshold must be finite, got {self.threshold}")
        if self.valid_range is not None:
            try:
                low, high = (float(v) for v in self.valid_range)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"valid_range needs [low, high], got {self.valid_range}", e)
            if not low < high:
                raise ConfigurationError(f"Invalid valid_range {self.valid_range}")
            object.__setattr__(self, 'valid_range', (low, high))
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.retry_attempts < 1:
            raise ConfigurationError(f"retry_attempts must be >= 1, got {self.retry_attempts}")
        if self.retry_delay < 0 or self.retry_backoff < 1:
            raise ConfigurationError(
                f"Invalid retry policy: delay={self.retry_delay}, backoff={self.retry_backoff}"
            )
        if not 1 <= self.doy_start <= self.doy_end <= 366:
            raise ConfigurationError(
                f"Invalid day-of-year window {self.doy_start}-{self.doy_end}"
            )

        for source in self.sources:
            if source.date_range.intersection(self.period) is None:
                logger.warning(
                    f"Source '{source.name}' does not overlap the study period and will contribute nothing",
                    extra={'context': {'source': source.name}}
                )

    @property
    def source_names(self) -> Tuple[str, ...]:
        return tuple(s.name for s in self.sources)

    @staticmethod
    def _parse(key: str, value: Any, convert, default: Any = None):
        """Convert one config value, reporting bad shapes as ConfigurationError."""
        if value is None:
            return default
        try:
            return convert(value)
        except ConfigurationError:
            raise
        except (TypeError, ValueError, IndexError) as e:
            raise ConfigurationError(f"Invalid '{key}' in config: {value!r}", e)

    @staticmethod
    def _is_bounds(value: Any) -> bool:
        return (isinstance(value, (list, tuple)) and len(value) == 4
                and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value))

    @classmethod
    def from_config(cls, config) -> 'PipelineConfig':
        """Build from a Config instance (defaults overlaid by config.yml)."""
        study = config.get('study', {}) or {}

        point = cls._parse('study.sample_point', study.get('sample_point') or None,
                           lambda p: GridPoint(float(p[0]), float(p[1])))

        # Explicit region must be bounds; the study area is used only when it is
        region = cls._parse('study.sample_region', study.get('sample_region') or None,
                            GridRegion.from_bounds)
        if region is None and cls._is_bounds(study.get('area')):
            region = GridRegion.from_bounds(study['area'])

        classification = config.get('classification', {}) or {}
        classification_period = None
        if classification.get('start_date') and classification.get('end_date'):
            classification_period = DateRange(classification['start_date'],
                                              classification['end_date'])
        valid_range = cls._parse('classification.valid_range',
                                 classification.get('valid_range') or None, tuple)

        sources = config.get('sources', []) or []
        if not isinstance(sources, (list, tuple)):
            raise ConfigurationError(f"'sources' must be a list, got {type(sources).__name__}")

        return cls(
            period=DateRange(study.get('start_date'), study.get('end_date')),
            sources=tuple(SourceConfig.from_dict(s) for s in sources),
            band=config.get('analysis.band', 'SST'),
            anomaly_suffix=config.get('analysis.anomaly_suffix', '_Anomaly'),
            study_area=study.get('area'),
            sample_point=point,
            sample_region=region,
            threshold=cls._parse('threshold.value', config.get('threshold.value'), float),
            threshold_band=config.get('threshold.band_name', 'Bleaching_Threshold'),
            classification_period=classification_period,
            valid_range=valid_range,
            max_workers=cls._parse('processing.max_workers', config.get('processing.max_workers'), int, 4),
            retry_attempts=cls._parse('retry.max_attempts', config.get('retry.max_attempts'), int, 3),
            retry_delay=cls._parse('retry.delay', config.get('retry.delay'), float, 1.0),
            retry_backoff=cls._parse('retry.backoff', config.get('retry.backoff'), float, 2.0),
            doy_start=cls._parse('charts.doy_start', config.get('charts.doy_start'), int, 1),
            doy_end=cls._parse('charts.doy_end', config.get('charts.doy_end'), int, 365),
            metadata={'study_name': study.get('name')}
        )
