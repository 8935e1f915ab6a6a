"""Logging context management for pipeline run correlation."""

from contextlib import contextmanager
from typing import Optional, Dict, Any
import threading
import uuid
import time

from .structured_logger import run_context, stage_context, prime_context, get_logger, _utc_timestamp


class LoggingContext:
    """Manages logging context throughout a pipeline run.

    Every unit thread enters ``stage()`` with its own name; the run id set by
    ``pipeline()`` reaches those threads because units are started inside a
    copy of the driver's context.
    """

    def __init__(self, run_id: Optional[str] = None):
        """Initialize logging context.

        Args:
            run_id: Run UUID (generated if not provided)
        """
        self.run_id = run_id or str(uuid.uuid4())
        self.timings: Dict[str, Dict[str, Any]] = {}
        self._timings_lock = threading.Lock()
        self.logger = get_logger(self.__class__.__name__)

    @contextmanager
    def pipeline(self, name: str, **metadata):
        """Context for a whole pipeline run.

        Example:
            with ctx.pipeline('prime_sieve', max_candidate=35):
                ...
        """
        token = run_context.set(self.run_id)
        start_time = time.time()

        self.logger.info(
            f"Pipeline started: {name}",
            extra={'context': {'pipeline_name': name, **metadata}}
        )

        status = 'completed'
        try:
            yield self
        except Exception:
            status = 'failed'
            raise
        finally:
            duration = time.time() - start_time
            self._record(f"pipeline_{name}", duration, status)
            self.logger.log_performance(f"pipeline_{name}", duration, status=status)
            run_context.reset(token)

    @contextmanager
    def stage(self, name: str, **metadata):
        """Context for one unit's execution.

        Example:
            with ctx.stage('sieve-3'):
                ...
        """
        stage_token = stage_context.set(name)
        prime_token = prime_context.set(None)
        start_time = time.time()

        self.logger.debug(
            f"Stage started: {name}",
            extra={'context': {'stage_name': name, **metadata}}
        )

        status = 'completed'
        try:
            yield self
        except Exception as e:
            status = 'failed'
            self.logger.log_error_with_context(e, operation=f"stage_{name}")
            raise
        finally:
            duration = time.time() - start_time
            self._record(name, duration, status)
            self.logger.debug(
                f"Stage {status}: {name} in {duration:.3f}s",
                extra={'performance': {'operation': f"stage_{name}",
                                       'duration_seconds': round(duration, 3),
                                       'status': status}}
            )
            prime_context.reset(prime_token)
            stage_context.reset(stage_token)

    def _record(self, key: str, duration: float, status: str):
        with self._timings_lock:
            self.timings[key] = {
                'duration': duration,
                'status': status,
                'timestamp': _utc_timestamp()
            }

    def get_timings(self) -> Dict[str, Dict[str, Any]]:
        """Get timing information for the run and every unit."""
        with self._timings_lock:
            return self.timings.copy()
