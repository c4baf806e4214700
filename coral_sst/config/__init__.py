from .config import Config, config
from .pipeline_config import PipelineConfig, SourceConfig

__all__ = ['Config', 'config', 'PipelineConfig', 'SourceConfig']
