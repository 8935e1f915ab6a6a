# sieve_pipeline/pipelines/orchestrator/unit_manager.py
"""Unit spawning, bookkeeping and joining for one pipeline run."""

import contextvars
import threading
import time
from typing import Callable, List, Optional, Tuple

from sieve_pipeline.channels import Channel, SpawnFailure
from sieve_pipeline.config.sieve_config import SieveConfig
from sieve_pipeline.infrastructure.logging import LoggingContext, get_logger
from ..stages.base_stage import PipelineUnit

logger = get_logger(__name__)


class UnitManager:
    """Owns every unit and channel created during one run.

    Units are started as daemon threads inside a copy of the spawner's
    context, so the run id follows them into their log records. Stage
    spawns beyond ``max_stages`` are refused with SpawnFailure.
    """

    def __init__(self,
                 sieve_config: Optional[SieveConfig] = None,
                 logging_context: Optional[LoggingContext] = None,
                 reporter: Optional[Callable[[int], None]] = None):
        self.sieve_config = sieve_config or SieveConfig()
        self.logging_context = logging_context or LoggingContext()
        self.reporter = reporter

        self.units: List[PipelineUnit] = []
        self.channels: List[Channel] = []
        self.primes: List[int] = []
        self.errors: List[Tuple[str, BaseException]] = []
        self._lock = threading.Lock()
        self._report_lock = threading.Lock()  # one prime line at a time
        self._stage_count = 0

    @property
    def stage_count(self) -> int:
        with self._lock:
            return self._stage_count

    def create_channel(self, name: str) -> Channel:
        channel = Channel(capacity=self.sieve_config.channel_capacity, name=name)
        with self._lock:
            self.channels.append(channel)
        return channel

    def spawn(self, unit: PipelineUnit):
        """Start ``unit`` on its own thread.

        Raises:
            SpawnFailure: the stage ceiling is reached or the thread could not start
        """
        with self._lock:
            limit = self.sieve_config.max_stages
            if unit.kind == 'stage' and limit is not None and self._stage_count >= limit:
                raise SpawnFailure(
                    f"Stage ceiling of {limit} reached, refusing to spawn {unit.name}"
                )

            context = contextvars.copy_context()
            thread = threading.Thread(
                target=context.run,
                args=(unit.run,),
                name=unit.name,
                daemon=True
            )
            unit.thread = thread
            try:
                thread.start()
            except RuntimeError as e:
                unit.thread = None
                raise SpawnFailure(f"Could not start {unit.name}: {e}", e) from e

            self.units.append(unit)
            if unit.kind == 'stage':
                self._stage_count += 1

        logger.debug(f"Spawned {unit.name}")

    def report_prime(self, unit: PipelineUnit, prime: int):
        """Record and emit a prime reported by ``unit``."""
        with self._report_lock:
            self.primes.append(prime)
            if self.reporter is not None:
                self.reporter(prime)
        logger.info(f"{unit.name} found prime {prime}")

    def record_error(self, unit: Optional[PipelineUnit], error: BaseException):
        name = unit.name if unit is not None else 'driver'
        with self._lock:
            self.errors.append((name, error))
        logger.debug(f"Recorded {type(error).__name__} from {name}")

    def unit_finished(self, unit: PipelineUnit):
        logger.debug(f"{unit.name} finished with status {unit.status.value}")

    def live_units(self) -> List[PipelineUnit]:
        with self._lock:
            return [unit for unit in self.units if unit.alive]

    def open_handles(self) -> int:
        """Channel ends created by this manager that are still open."""
        with self._lock:
            channels = list(self.channels)
        return sum((not channel.write_closed) + (not channel.read_closed) for channel in channels)

    def join_all(self, timeout: Optional[float] = None) -> List[PipelineUnit]:
        """Join every unit, including ones spawned while joining.

        Returns:
            Units still alive when the timeout expired (empty on success)
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        joined = 0

        while True:
            with self._lock:
                pending = self.units[joined:]
            if not pending:
                break

            for unit in pending:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                unit.join(remaining)
            joined += len(pending)

            if deadline is not None and time.monotonic() >= deadline:
                break

        return self.live_units()
