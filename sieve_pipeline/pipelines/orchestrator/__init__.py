# sieve_pipeline/pipelines/orchestrator/__init__.py
"""Pipeline driver for the self-extending prime sieve."""

import time
from typing import Dict, Any, List, Optional, Callable, Tuple
from enum import Enum
from dataclasses import dataclass, field

from sieve_pipeline.channels import PipelineHang, SpawnFailure, UnexpectedChannelError
from sieve_pipeline.config.config import Config, config as global_config
from sieve_pipeline.config.sieve_config import SieveConfig
from sieve_pipeline.infrastructure.logging import LoggingContext, get_logger, log_operation
from ..monitors.resource_monitor import ResourceMonitor
from ..stages.base_stage import StageResult
from ..stages.feeder_stage import FeederStage
from ..stages.sieve_stage import SieveStage
from .unit_manager import UnitManager

logger = get_logger(__name__)


class PipelineStatus(Enum):
    """Pipeline execution status."""
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of one pipeline run. Primes found before a failure are kept."""
    max_candidate: int
    status: PipelineStatus
    primes: List[int] = field(default_factory=list)
    errors: List[Tuple[str, BaseException]] = field(default_factory=list)
    stages_spawned: int = 0
    execution_time: float = 0.0
    unit_results: Dict[str, StageResult] = field(default_factory=dict)
    resources: Dict[str, Any] = field(default_factory=dict)
    timings: Dict[str, Dict[str, Any]] = field(default_factory=dict)  # per unit, from the logging context
    run_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == PipelineStatus.COMPLETED

    @property
    def exit_status(self) -> int:
        return 0 if self.success else 1


def _summarize(result: PipelineResult) -> Dict[str, Any]:
    return {
        'primes_found': len(result.primes),
        'stages_spawned': result.stages_spawned,
        'status': result.status.value,
    }


class SievePipeline:
    """
    Driver that owns the lifecycle of the whole chain.

    ``run`` creates the first channel, spawns the feeder and the head
    stage, then blocks until every transitively spawned unit is joined.
    Any recorded error turns into a FAILED status (exit status 1) once
    everything has unwound.
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 sieve_config: Optional[SieveConfig] = None,
                 reporter: Optional[Callable[[int], None]] = None):
        self.config = config or global_config
        self.sieve_config = sieve_config or SieveConfig.from_config(self.config)
        self.reporter = reporter
        self.status = PipelineStatus.INITIALIZING
        self.monitor = ResourceMonitor() if self.config.get('monitoring.track_resources', True) else None
        self.fail_on_leak = self.config.get('monitoring.fail_on_leak', True)
        self.manager: Optional[UnitManager] = None

    @log_operation('prime_sieve', summarize=_summarize)
    def run(self, max_candidate: Optional[int] = None) -> PipelineResult:
        """Sieve [low, max_candidate] and return the primes found.

        Raises:
            ValueError: the run configuration is invalid
        """
        cfg = self.sieve_config
        if max_candidate is None:
            max_candidate = cfg.max_candidate

        config_errors = cfg.validate()
        if config_errors:
            raise ValueError(f"Invalid sieve configuration: {config_errors}")

        if self.monitor:
            self.monitor.capture_baseline()

        start_time = time.time()
        logging_context = LoggingContext()
        manager = UnitManager(cfg, logging_context, self.reporter)
        self.manager = manager
        self.status = PipelineStatus.RUNNING

        with logging_context.pipeline('prime_sieve', max_candidate=max_candidate):
            channel = manager.create_channel('feeder->sieve-0')
            feeder = FeederStage(manager, channel.writer, cfg.low, max_candidate, cfg)
            head = SieveStage(manager, channel.reader, 0, cfg)

            try:
                manager.spawn(feeder)
            except SpawnFailure as e:
                manager.record_error(None, e)
                channel.writer.close()

            try:
                manager.spawn(head)
            except SpawnFailure as e:
                manager.record_error(None, e)
                channel.reader.close()

            still_running = manager.join_all(cfg.join_timeout)
            if still_running:
                names = [unit.name for unit in still_running]
                manager.record_error(None, PipelineHang(
                    f"{len(names)} units still running after {cfg.join_timeout}s: {names}"
                ))

        resources = {}
        if self.monitor:
            self.monitor.capture_final()
            resources = self.monitor.report(manager)
            leaks = resources['leaks']
            if leaks:
                logger.warning(f"Resources not released after run: {leaks}")
                if self.fail_on_leak and not manager.errors:
                    manager.record_error(None, UnexpectedChannelError(
                        f"Leaked resources after run: {leaks}"
                    ))

        for unit_name, error in manager.errors:
            logger.error(f"{unit_name}: {type(error).__name__}: {error}")

        self.status = PipelineStatus.FAILED if manager.errors else PipelineStatus.COMPLETED
        result = PipelineResult(
            max_candidate=max_candidate,
            status=self.status,
            primes=list(manager.primes),
            errors=list(manager.errors),
            stages_spawned=manager.stage_count,
            execution_time=time.time() - start_time,
            unit_results={unit.name: unit.result for unit in manager.units if unit.result},
            resources=resources,
            timings=logging_context.get_timings(),
            run_id=logging_context.run_id
        )
        return result


def run(max_candidate: Optional[int] = None,
        reporter: Optional[Callable[[int], None]] = None,
        **overrides) -> PipelineResult:
    """Run the sieve with the global configuration plus keyword overrides."""
    sieve_config = SieveConfig.from_config(global_config, **overrides)
    return SievePipeline(global_config, sieve_config, reporter).run(max_candidate)


__all__ = ['SievePipeline', 'PipelineResult', 'PipelineStatus', 'UnitManager', 'run']
