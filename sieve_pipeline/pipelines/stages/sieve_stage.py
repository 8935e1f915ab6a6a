# sieve_pipeline/pipelines/stages/sieve_stage.py
"""Sieve stage: one concurrent filter bound to one prime."""

from typing import Optional, Dict, Any

from sieve_pipeline.channels import (
    ChannelClosed, END_OF_STREAM, PipelineHang, ReadEnd, SpawnFailure, WriteEnd
)
from sieve_pipeline.config.sieve_config import SieveConfig
from sieve_pipeline.infrastructure.logging import get_logger, prime_context
from .base_stage import PipelineUnit, StageResult, StageStatus

logger = get_logger(__name__)


class SieveStage(PipelineUnit):
    """
    Recursive filtering unit of the prime sieve.

    The first value read from ``source`` is the stage's designated prime and
    is reported at once. Every later value that is not a multiple of that
    prime is forwarded to a successor stage, which is created together with
    its channel the first time such a value shows up. On end-of-stream the
    stage closes its output and waits for the successor before finishing, so
    a stage is never done while anything downstream of it is still running.
    """

    kind = 'stage'

    def __init__(self,
                 manager,
                 source: ReadEnd,
                 index: int = 0,
                 sieve_config: Optional[SieveConfig] = None):
        super().__init__(manager, sieve_config)
        self.source = source
        self.index = index
        self.prime: Optional[int] = None
        self.sink: Optional[WriteEnd] = None
        self.successor: Optional['SieveStage'] = None
        self.aborted = False

        self.received = 0
        self.discarded = 0
        self.forwarded = 0

    @property
    def name(self) -> str:
        return f"sieve-{self.index}"

    def execute(self) -> StageResult:
        try:
            with self.source:
                self.status = StageStatus.AWAIT_FIRST
                first = self.source.receive(self.sieve_config.receive_timeout)
                if first is END_OF_STREAM:
                    logger.debug(f"{self.name} saw end-of-stream before any value")
                    self.status = StageStatus.DONE
                    return self._result()

                self.prime = first
                prime_context.set(first)
                self.received += 1
                self.status = StageStatus.REPORTED
                self.manager.report_prime(self, first)

                self.status = StageStatus.FILTERING
                self._filter()
                self.status = StageStatus.DRAINED
        finally:
            self._shutdown()

        self.status = StageStatus.DONE
        return self._result()

    def _filter(self):
        p = self.prime
        timeout = self.sieve_config.receive_timeout

        while True:
            x = self.source.receive(timeout)
            if x is END_OF_STREAM:
                return
            self.received += 1

            if x % p == 0:
                self.discarded += 1
                continue

            if self.successor is None:
                self._grow()

            try:
                self.sink.send(x, timeout=self.sieve_config.send_timeout)
            except ChannelClosed as e:
                logger.debug(f"{self.name} stopped forwarding at {x}: {e}")
                self.aborted = True
                return
            self.forwarded += 1

    def _grow(self):
        """Create the output channel and spawn the successor stage (once)."""
        channel = self.manager.create_channel(f"{self.name}->sieve-{self.index + 1}")
        successor = SieveStage(self.manager, channel.reader, self.index + 1, self.sieve_config)
        self.sink = channel.writer

        try:
            self.manager.spawn(successor)
        except SpawnFailure:
            # The successor never took ownership of its read end
            channel.reader.close()
            raise

        self.successor = successor
        logger.debug(f"{self.name} spawned {successor.name}")

    def _shutdown(self):
        """Close the output end and wait for the successor to finish."""
        if self.sink is not None:
            self.sink.close()

        if self.successor is not None:
            timeout = self.sieve_config.join_timeout
            if not self.successor.join(timeout):
                self.manager.record_error(self, PipelineHang(
                    f"{self.successor.name} still running {timeout}s after {self.name} drained"
                ))

    def _result(self) -> StageResult:
        return StageResult(
            success=True,
            data={'prime': self.prime, 'index': self.index, 'aborted': self.aborted},
            metrics=self._metrics()
        )

    def _metrics(self) -> Dict[str, Any]:
        return {
            'received': self.received,
            'discarded': self.discarded,
            'forwarded': self.forwarded,
        }
