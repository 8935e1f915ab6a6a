"""Structured logging with context propagation across pipeline units."""

import logging
import sys
import threading
import traceback
from typing import Dict, Optional
from contextvars import ContextVar
from datetime import datetime, timezone

# Context variables for correlation across concurrent units
run_context: ContextVar[Optional[str]] = ContextVar('run_id', default=None)
stage_context: ContextVar[Optional[str]] = ContextVar('stage', default=None)
prime_context: ContextVar[Optional[int]] = ContextVar('prime', default=None)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class StructuredLogger(logging.Logger):
    """Logger that stamps every record with the run, stage and prime it came from.

    The three ContextVars above are read at log time, so a record emitted from a
    stage thread carries that stage's name and designated prime without the
    caller passing them.
    """

    def _log(self, level, msg, args, exc_info=None, extra=None, stack_info=False, **kwargs):
        context = {
            'run_id': run_context.get(),
            'stage': stage_context.get(),
            'prime': prime_context.get(),
            'logger_name': self.name,
            'timestamp': _utc_timestamp(),
        }
        context = {k: v for k, v in context.items() if v is not None}

        performance = None
        traceback_str = None
        if extra and isinstance(extra, dict):
            extra = dict(extra)
            performance = extra.pop('performance', None)
            traceback_str = extra.pop('traceback', None)
            context.update(extra.pop('context', {}))

        if not traceback_str and exc_info:
            if isinstance(exc_info, BaseException):
                exc_info = (type(exc_info), exc_info, exc_info.__traceback__)
            elif not isinstance(exc_info, tuple):
                exc_info = sys.exc_info()
            if exc_info[0] is not None:
                traceback_str = ''.join(traceback.format_exception(*exc_info))

        extra = extra or {}
        extra.update({
            'context': context,
            'performance': performance,
            'traceback': traceback_str
        })

        # The traceback travels as a string; formatters must not render it twice
        super()._log(level, msg, args, exc_info=False, extra=extra,
                     stack_info=stack_info, **kwargs)

    def log_performance(self, operation: str, duration: float, **metrics):
        """Log timing and counters for a finished operation.

        Example:
            logger.log_performance('prime_sieve', 0.12, primes_found=11, stages_spawned=12)
        """
        performance_data = {
            'operation': operation,
            'duration_seconds': round(duration, 3),
            **metrics
        }

        if 'items_processed' in metrics and duration > 0:
            performance_data['items_per_second'] = round(
                metrics['items_processed'] / duration, 2
            )

        self.info(
            f"Performance: {operation} completed in {duration:.3f}s",
            extra={'performance': performance_data}
        )

    def log_error_with_context(self, error: BaseException, operation: str = None, **context):
        """Log an error with its type, the failing operation and a traceback."""
        error_context = {
            'error_type': type(error).__name__,
            'error_module': type(error).__module__,
            **context
        }

        if operation:
            error_context['operation'] = operation

        self.error(
            f"{type(error).__name__}: {error}",
            exc_info=error,
            extra={'context': error_context}
        )


_logger_cache: Dict[str, StructuredLogger] = {}
_cache_lock = threading.Lock()


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger instance.

    Example:
        from sieve_pipeline.infrastructure.logging import get_logger
        logger = get_logger(__name__)
    """
    with _cache_lock:
        if name in _logger_cache:
            return _logger_cache[name]

        original_class = logging.getLoggerClass()
        logging.setLoggerClass(StructuredLogger)
        try:
            logger = logging.getLogger(name)
            if not isinstance(logger, StructuredLogger):
                # Created earlier through plain logging.getLogger
                logger.__class__ = StructuredLogger
            _logger_cache[name] = logger
            return logger
        finally:
            logging.setLoggerClass(original_class)
