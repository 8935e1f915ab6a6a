"""Decorators for automatic logging and error capture."""

import functools
import time
from typing import Any, Callable, Dict, Optional

from .structured_logger import get_logger


def log_operation(operation_name: Optional[str] = None,
                  summarize: Optional[Callable[[Any], Dict[str, Any]]] = None):
    """Log when a call starts, how long it took and how it ended.

    ``summarize`` maps the return value to extra performance fields, e.g. the
    number of primes a pipeline run found. Exceptions are logged with their
    context and re-raised unchanged.

    Example:
        @log_operation('prime_sieve', summarize=lambda r: {'primes_found': len(r.primes)})
        def run(self, max_candidate=None):
            ...
    """
    def decorator(func):
        name = operation_name or func.__name__
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger.info(f"Starting {name}", extra={'context': {'operation': name}})
            start = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.log_error_with_context(
                    e, operation=name,
                    duration_seconds=round(time.monotonic() - start, 3)
                )
                raise

            metrics = summarize(result) if summarize else {}
            logger.log_performance(name, time.monotonic() - start, **metrics)
            return result

        return wrapper
    return decorator
