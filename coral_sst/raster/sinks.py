# coral_sst/raster/sinks.py
"""Concrete output sinks."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import xarray as xr

from coral_sst.abstractions.interfaces import IOutputSink
from coral_sst.abstractions.types import TIME_DIM, BandedRaster, LayerSpec, RasterSeries
from coral_sst.infrastructure.logging import get_logger

logger = get_logger(__name__)


class InMemoryOutputSink(IOutputSink):
    """Keeps everything it receives, keyed by output name."""

    def __init__(self):
        self.series: Dict[str, RasterSeries] = {}
        self.rasters: Dict[str, BandedRaster] = {}
        self.scalar_series: Dict[str, pd.DataFrame] = {}
        self.layers: Dict[str, LayerSpec] = {}
        self.charts: Dict[str, dict] = {}

    def write_series(self, name: str, series: RasterSeries,
                     layer: Optional[LayerSpec] = None) -> None:
        self.series[name] = series
        if layer is not None:
            self.layers[name] = layer

    def write_raster(self, name: str, raster: BandedRaster,
                     layer: Optional[LayerSpec] = None) -> None:
        self.rasters[name] = raster
        if layer is not None:
            self.layers[name] = layer

    def write_scalar_series(self, name: str, samples: pd.DataFrame,
                            chart: Optional[dict] = None) -> None:
        self.scalar_series[name] = samples
        if chart is not None:
            self.charts[name] = chart

    @property
    def names(self) -> List[str]:
        return [*self.series, *self.rasters, *self.scalar_series]


class NetCDFOutputSink(IOutputSink):
    """
    Writes rasters and series as NetCDF and scalar series as CSV.

    Layer and chart hints go to a ``<name>.json`` sidecar next to each output.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.written: List[Path] = []

    def _sidecar(self, name: str, hints: Dict[str, Any]):
        path = self.output_dir / f"{name}.json"
        path.write_text(json.dumps(hints, indent=2, default=str))
        self.written.append(path)

    def write_series(self, name: str, series: RasterSeries,
                     layer: Optional[LayerSpec] = None) -> None:
        datasets = []
        for band in series.band_names:
            stacked = series.to_dataset(band)
            if stacked.data_vars:
                datasets.append(stacked)
        # Bands missing at some timestamps become NaN there
        dataset = xr.merge(datasets, join='outer') if datasets else xr.Dataset(
            coords={TIME_DIM: pd.DatetimeIndex(series.timestamps, name=TIME_DIM)}
        )

        path = self.output_dir / f"{name}.nc"
        dataset.to_netcdf(path)
        self.written.append(path)
        if layer is not None:
            self._sidecar(name, layer.to_dict())
        logger.info(f"Wrote series '{name}' ({len(series)} rasters) to {path}")

    def write_raster(self, name: str, raster: BandedRaster,
                     layer: Optional[LayerSpec] = None) -> None:
        path = self.output_dir / f"{name}.nc"
        raster.data.to_netcdf(path)
        self.written.append(path)
        if layer is not None:
            self._sidecar(name, layer.to_dict())
        logger.info(f"Wrote raster '{name}' to {path}")

    def write_scalar_series(self, name: str, samples: pd.DataFrame,
                            chart: Optional[dict] = None) -> None:
        path = self.output_dir / f"{name}.csv"
        samples.to_csv(path)
        self.written.append(path)
        if chart is not None:
            self._sidecar(name, chart)
        logger.info(f"Wrote scalar series '{name}' ({len(samples)} rows) to {path}")
