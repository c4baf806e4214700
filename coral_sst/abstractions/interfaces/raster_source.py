# coral_sst/abstractions/interfaces/raster_source.py
"""Pure raster source interface - NO IMPLEMENTATIONS!"""

from abc import ABC, abstractmethod

from ..types.raster_types import DateRange, RasterSeries


class IRasterSource(ABC):
    """
    Contract for anything that can hand the core a raster time series.

    Storage, tiling and transport live behind this interface; the core only
    sees RasterSeries values.
    """

    @abstractmethod
    def fetch(self, collection_id: str, date_range: DateRange) -> RasterSeries:
        """
        Fetch the rasters of one collection.

        Args:
            collection_id: Identifier of the raster collection
            date_range: Half-open interval ``[start, end)`` to filter on

        Returns:
            RasterSeries, empty when no raster falls in range

        Raises:
            SourceFetchFailure: On transient I/O failure
        """
        pass
