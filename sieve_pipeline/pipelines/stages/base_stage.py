# sieve_pipeline/pipelines/stages/base_stage.py
"""Base class for concurrent pipeline units."""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
from enum import Enum
from dataclasses import dataclass, field
import threading
import time

from sieve_pipeline.channels import ChannelClosed
from sieve_pipeline.config.sieve_config import SieveConfig
from sieve_pipeline.infrastructure.logging import get_logger

logger = get_logger(__name__)


class StageStatus(Enum):
    """Unit execution status.

    A sieve stage walks AWAIT_FIRST -> REPORTED -> FILTERING -> DRAINED -> DONE,
    or AWAIT_FIRST -> DONE when its input is empty. FAILED is terminal.
    """
    PENDING = "pending"
    RUNNING = "running"
    AWAIT_FIRST = "await_first"
    REPORTED = "reported"
    FILTERING = "filtering"
    DRAINED = "drained"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StageResult:
    """Result from unit execution."""
    success: bool
    data: Dict[str, Any]
    metrics: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)
    execution_time: float = 0.0
    error: Optional[BaseException] = None


class PipelineUnit(ABC):
    """
    Abstract base class for an independently scheduled pipeline unit.

    Subclasses implement ``execute``; ``run`` is the thread entry point and
    wraps it with status tracking, timing and error capture. Every unit
    releases its channel ends inside ``execute`` before ``run`` reports an
    error to the unit manager.
    """

    kind = 'unit'

    def __init__(self, manager, sieve_config: Optional[SieveConfig] = None):
        self.manager = manager
        self.sieve_config = sieve_config or SieveConfig()
        self.status = StageStatus.PENDING
        self.error: Optional[BaseException] = None
        self.result: Optional[StageResult] = None
        self.thread: Optional[threading.Thread] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this unit."""
        pass

    @abstractmethod
    def execute(self) -> StageResult:
        """
        Execute the unit.

        Returns:
            StageResult with outputs and metrics
        """
        pass

    def run(self):
        """Thread entry point."""
        start_time = time.time()
        self.status = StageStatus.RUNNING

        with self.manager.logging_context.stage(self.name, kind=self.kind):
            try:
                result = self.execute()
            except ChannelClosed as e:
                # Peer went away: a shutdown signal, not a failure
                logger.debug(f"{self.name} stopped: {e}")
                result = StageResult(success=True, data={}, metrics={},
                                     warnings=[str(e)])
                self.status = StageStatus.DONE
            except Exception as e:
                self.error = e
                self.status = StageStatus.FAILED
                self.on_failure(e)
                result = StageResult(success=False, data={}, metrics={}, error=e)
                self.manager.record_error(self, e)

        result.execution_time = time.time() - start_time
        self.result = result
        self.manager.unit_finished(self)

    def on_failure(self, error: Exception):
        """Hook called after a failed execution, once channel ends are released."""
        logger.log_error_with_context(error, operation=self.name, kind=self.kind)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the unit's thread. Returns True once the unit has finished."""
        if self.thread is None:
            return True
        self.thread.join(timeout)
        return not self.thread.is_alive()

    @property
    def alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, status={self.status.value})"
