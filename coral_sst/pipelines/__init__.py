"""Pipeline orchestration."""

from .sst_pipeline import PipelineResult, PipelineStatus, SSTAnomalyPipeline

__all__ = ['SSTAnomalyPipeline', 'PipelineResult', 'PipelineStatus']
