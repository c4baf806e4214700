"""Logging handlers for different output targets."""

from .run_log_handler import RunLogHandler
from .console_handler import ConsoleHandler

__all__ = ['RunLogHandler', 'ConsoleHandler']
