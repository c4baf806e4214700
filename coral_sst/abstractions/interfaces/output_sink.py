# coral_sst/abstractions/interfaces/output_sink.py
"""Pure output sink interface - NO IMPLEMENTATIONS!"""

from abc import ABC, abstractmethod
from typing import Optional

import pandas as pd

from ..types.layer_types import LayerSpec
from ..types.raster_types import BandedRaster, RasterSeries


class IOutputSink(ABC):
    """
    Receiver of pipeline outputs for rendering or persistence.

    The core places no constraint on rendering beyond band names and the
    value ranges documented by each LayerSpec.
    """

    @abstractmethod
    def write_series(self, name: str, series: RasterSeries,
                     layer: Optional[LayerSpec] = None) -> None:
        """
        Accept a raster series.

        Args:
            name: Output name
            series: Series to emit
            layer: Optional presentation hints
        """
        pass

    @abstractmethod
    def write_raster(self, name: str, raster: BandedRaster,
                     layer: Optional[LayerSpec] = None) -> None:
        """
        Accept a single raster.

        Args:
            name: Output name
            raster: Raster to emit
            layer: Optional presentation hints
        """
        pass

    @abstractmethod
    def write_scalar_series(self, name: str, samples: pd.DataFrame,
                            chart: Optional[dict] = None) -> None:
        """
        Accept a scalar series for charting.

        Args:
            name: Output name
            samples: Frame indexed by time (or day of year), one column per series
            chart: Optional chart hints (title, axis labels)
        """
        pass
