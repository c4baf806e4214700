"""Structured logging infrastructure for pipeline monitoring."""

from .structured_logger import (
    StructuredLogger, get_logger, run_context, node_context, stage_context
)
from .context import LoggingContext
from .decorators import log_operation, retry_with_logging
from .setup import setup_logging, setup_simple_logging, get_log_stats, get_run_records

__all__ = [
    'StructuredLogger',
    'get_logger',
    'run_context',
    'node_context',
    'stage_context',
    'LoggingContext',
    'log_operation',
    'retry_with_logging',
    'setup_logging',
    'setup_simple_logging',
    'get_log_stats',
    'get_run_records'
]
