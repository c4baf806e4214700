"""Decorators for automatic logging and retry."""

import functools
import inspect
import time
from typing import Any, Callable, Optional, TypeVar

from .structured_logger import get_logger

F = TypeVar('F', bound=Callable[..., Any])


def log_operation(operation_name: Optional[str] = None,
                  log_args: bool = False,
                  log_performance: bool = True):
    """Decorator to log an operation's start, duration and failure.

    Args:
        operation_name: Custom operation name (defaults to function name)
        log_args: Whether to log scalar arguments
        log_performance: Whether to log duration on success

    Example:
        @log_operation("monthly_mean")
        def monthly_mean(self, series, band):
            ...
    """
    def decorator(func: F) -> F:
        name = operation_name or func.__name__
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start_time = time.time()
            context = {'operation': name}

            if log_args:
                bound_args = inspect.signature(func).bind(*args, **kwargs)
                bound_args.apply_defaults()
                context['arguments'] = {
                    arg_name: (value if isinstance(value, (str, int, float, bool))
                               else f"<{type(value).__name__}>")
                    for arg_name, value in bound_args.arguments.items()
                    if arg_name != 'self'
                }

            logger.debug(f"Starting {name}", extra={'context': context})
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.time() - start_time
                logger.error(
                    f"Failed {name}: {e}",
                    exc_info=True,
                    extra={
                        'context': context,
                        'performance': {
                            'duration_seconds': round(duration, 3),
                            'status': 'failed',
                            'error_type': type(e).__name__
                        }
                    }
                )
                raise

            if log_performance:
                logger.log_performance(name, time.time() - start_time, status='success')
            return result

        return wrapper  # type: ignore
    return decorator


def retry_with_logging(max_attempts: int = 3,
                       delay: float = 1.0,
                       backoff: float = 2.0,
                       exceptions: tuple = (Exception,),
                       sleep: Callable[[float], None] = time.sleep):
    """Decorator to retry an operation with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between attempts in seconds
        backoff: Multiplier applied to the delay after each failure
        exceptions: Exceptions that trigger a retry; others propagate at once
        sleep: Sleep function (replaceable in tests)

    Example:
        @retry_with_logging(max_attempts=3, exceptions=(SourceFetchFailure,))
        def fetch():
            ...
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    def decorator(func: F) -> F:
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            current_delay = delay

            for attempt in range(1, max_attempts + 1):
                try:
                    if attempt > 1:
                        logger.warning(
                            f"Retrying {func.__name__} (attempt {attempt}/{max_attempts})"
                        )
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"{func.__name__} failed after {max_attempts} attempts",
                            exc_info=True
                        )
                        raise

                    logger.warning(
                        f"{func.__name__} failed: {e}. Retrying in {current_delay}s...",
                        extra={
                            'context': {
                                'attempt': attempt,
                                'max_attempts': max_attempts,
                                'delay': current_delay,
                                'error_type': type(e).__name__
                            }
                        }
                    )
                    sleep(current_delay)
                    current_delay *= backoff

        return wrapper  # type: ignore
    return decorator
