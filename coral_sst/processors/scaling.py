# coral_sst/processors/scaling.py
"""Scale raw source rasters onto the common physical scale."""

from typing import Optional

from coral_sst.abstractions.interfaces import IRasterSource
from coral_sst.abstractions.types import DateRange, RasterSeries, ScaleTransform, TimestampedRaster
from coral_sst.core.exceptions import SourceUnavailable
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ScaledRasterSeries:
    """A raw raster collection seen through its per-source linear transform.

    Each raster's target band becomes ``raw * multiplier + offset``; other
    bands and the no-data mask are left as they are. NaN pixels stay NaN.
    """

    def __init__(self,
                 source: IRasterSource,
                 collection_id: str,
                 date_range: DateRange,
                 band: str,
                 transform: ScaleTransform,
                 output_band: Optional[str] = None):
        """
        Args:
            source: Raster source to fetch from
            collection_id: Collection identifier within the source
            date_range: Half-open interval to fetch
            band: Raw band to scale
            transform: Per-source scale and offset
            output_band: Rename the scaled band (e.g. onto a logical ``SST``
                band shared by several sources); defaults to ``band``
        """
        self.source = source
        self.collection_id = collection_id
        self.date_range = date_range
        self.band = band
        self.transform = transform
        self.output_band = output_band or band

    def scale_raster(self, raster: TimestampedRaster) -> TimestampedRaster:
        """Scale one raster's target band."""
        scaled = self.transform.apply(raster.band(self.band))
        if self.output_band != self.band:
            raster = raster.select(b for b in raster.band_names if b != self.band)
        return raster.with_band(self.output_band, scaled)

    def series(self) -> RasterSeries:
        """Fetch and scale.

        Raises:
            SourceUnavailable: No raster in range carries the target band
            SourceFetchFailure: Propagated from the source
        """
        raw = self.source.fetch(self.collection_id, self.date_range)
        carrying = raw.filter(lambda r: r.has_band(self.band))

        if carrying.is_empty:
            raise SourceUnavailable(
                f"No '{self.band}' rasters in {self.collection_id} for "
                f"{self.date_range.start.date()} - {self.date_range.end.date()}"
            )
        if len(carrying) < len(raw):
            logger.debug(
                f"Dropped {len(raw) - len(carrying)} rasters without band '{self.band}'",
                extra={'context': {'collection_id': self.collection_id}}
            )

        scaled = carrying.map(self.scale_raster)
        logger.info(
            f"Scaled {len(scaled)} rasters from {self.collection_id}",
            extra={'context': {
                'collection_id': self.collection_id,
                'multiplier': self.transform.multiplier,
                'offset': self.transform.offset
            }}
        )
        return scaled

    def series_or_empty(self) -> RasterSeries:
        """Like ``series`` but an unavailable source yields an empty series."""
        try:
            return self.series()
        except SourceUnavailable as e:
            logger.warning(f"{e} - treating as empty series",
                           extra={'context': {'collection_id': self.collection_id}})
            return RasterSeries()
