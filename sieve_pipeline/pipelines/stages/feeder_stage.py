# sieve_pipeline/pipelines/stages/feeder_stage.py
"""Feeder unit: writes the candidate range into the head of the chain."""

from typing import Optional

from sieve_pipeline.channels import ChannelClosed, WriteEnd
from sieve_pipeline.config.sieve_config import SieveConfig
from sieve_pipeline.infrastructure.logging import get_logger
from .base_stage import PipelineUnit, StageResult, StageStatus

logger = get_logger(__name__)


class FeederStage(PipelineUnit):
    """Sends every integer of [low, high] in ascending order, then closes its sink.

    The sink is closed on every exit path. An empty range (high < low) sends
    nothing, so the head stage sees end-of-stream immediately.
    """

    kind = 'feeder'

    def __init__(self,
                 manager,
                 sink: WriteEnd,
                 low: int,
                 high: int,
                 sieve_config: Optional[SieveConfig] = None):
        super().__init__(manager, sieve_config)
        self.sink = sink
        self.low = low
        self.high = high
        self.sent = 0

    @property
    def name(self) -> str:
        return 'feeder'

    def execute(self) -> StageResult:
        timeout = self.sieve_config.send_timeout
        warnings = []

        with self.sink:
            try:
                for value in range(self.low, self.high + 1):
                    self.sink.send(value, timeout=timeout)
                    self.sent += 1
            except ChannelClosed as e:
                # Downstream gave up early; report it but let the driver carry on
                message = f"Feeder stopped after {self.sent} values: {e}"
                logger.warning(message)
                warnings.append(message)

        self.status = StageStatus.DONE
        total = max(0, self.high - self.low + 1)
        logger.debug(f"Feeder sent {self.sent}/{total} candidates")

        return StageResult(
            success=True,
            data={'low': self.low, 'high': self.high},
            metrics={'sent': self.sent, 'expected': total},
            warnings=warnings
        )
