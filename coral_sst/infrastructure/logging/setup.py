"""Setup and configuration for the structured logging system."""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .handlers import ConsoleHandler, RunLogHandler
from .structured_logger import get_logger, run_context


def _reset_root(level: int) -> logging.Logger:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    return root_logger


def setup_logging(config,
                  run_id: Optional[str] = None,
                  log_file: Optional[str] = None,
                  console: bool = True,
                  log_level: Optional[str] = None):
    """Configure console logging and the rotating JSON run log.

    Args:
        config: Config instance (anything with dot-notation ``get``)
        run_id: Run ID to attach to every record
        log_file: Log file path (defaults to ``<paths.logs_dir>/coral_sst.log``)
        console: Whether to log to stderr
        log_level: Minimum level, defaults to ``logging.level``
    """
    log_level = log_level or config.get('logging.level', 'INFO')
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root_logger = _reset_root(level)

    if console:
        console_handler = ConsoleHandler(
            use_colors=sys.stderr.isatty(),
            show_context=True
        )
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    if log_file is None and config.get('logging.file_enabled', True):
        log_file = Path(config.get('paths.logs_dir', 'logs')) / config.get(
            'logging.file_name', 'coral_sst.log'
        )

    if log_file is not None:
        file_handler = RunLogHandler(
            filename=str(log_file),
            max_bytes=config.get('logging.max_file_size', 50 * 1024 * 1024),
            backup_count=config.get('logging.backup_count', 5)
        )
        root_logger.addHandler(file_handler)

    if run_id:
        run_context.set(run_id)

    get_logger(__name__).info(
        "Structured logging system initialized",
        extra={
            'context': {
                'log_level': logging.getLevelName(level),
                'handlers': {
                    'console': console,
                    'file': str(log_file) if log_file else None
                }
            }
        }
    )


def setup_simple_logging(log_level: str = 'INFO'):
    """Console-only logging for scripts and debugging."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = _reset_root(level)

    console_handler = ConsoleHandler(show_context=True)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)


def get_log_stats() -> Dict[str, Any]:
    """Describe the handlers attached to the root logger."""
    stats: Dict[str, Any] = {}
    for handler in logging.getLogger().handlers:
        if isinstance(handler, RunLogHandler):
            stats['file'] = {
                'filename': handler.baseFilename,
                'max_bytes': handler.maxBytes,
                'backup_count': handler.backupCount
            }
        elif isinstance(handler, ConsoleHandler):
            stats['console'] = {'level': logging.getLevelName(handler.level)}
    return stats


def get_run_records(run_id: str) -> List[Dict[str, Any]]:
    """Records one run wrote to the run log, empty when file logging is off."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, RunLogHandler):
            return handler.run_records(run_id)
    return []
