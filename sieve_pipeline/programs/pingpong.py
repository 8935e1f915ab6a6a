# sieve_pipeline/programs/pingpong.py
"""Two-unit handshake over a pair of rendezvous channels."""

import threading
from typing import Callable, Optional

from sieve_pipeline.channels import (
    ByteCodec, Channel, ChannelError, END_OF_STREAM, ReadEnd, SpawnFailure,
    UnexpectedChannelError, WriteEnd
)
from sieve_pipeline.config.sieve_config import SieveConfig
from sieve_pipeline.infrastructure.logging import LoggingContext, get_logger
from sieve_pipeline.pipelines.orchestrator.unit_manager import UnitManager
from sieve_pipeline.pipelines.stages.base_stage import PipelineUnit, StageResult, StageStatus

logger = get_logger(__name__)


class Responder(PipelineUnit):
    """Waits for one byte, announces it and echoes it back."""

    kind = 'responder'

    def __init__(self, manager, inbox: ReadEnd, outbox: WriteEnd,
                 echo: Callable[[str], None] = print):
        super().__init__(manager)
        self.inbox = inbox
        self.outbox = outbox
        self.echo = echo

    @property
    def name(self) -> str:
        return 'responder'

    def execute(self) -> StageResult:
        with self.inbox, self.outbox:
            byte = self.inbox.receive()
            if byte is END_OF_STREAM:
                raise UnexpectedChannelError("responder: ping channel closed before any byte")
            self.echo(f"{threading.get_native_id()}: received ping")
            self.outbox.send(byte)

        self.status = StageStatus.DONE
        return StageResult(success=True, data={'byte': byte}, metrics={})


def run(payload: bytes = b'x',
        timeout: Optional[float] = None,
        echo: Callable[[str], None] = print) -> int:
    """Send ``payload`` to a responder unit and wait for the echo.

    Returns:
        0 on a completed round trip, 1 on any channel or spawn failure
    """
    manager = UnitManager(SieveConfig(), LoggingContext())
    ping = Channel(codec=ByteCodec(), name='ping', timeout=timeout)
    pong = Channel(codec=ByteCodec(), name='pong', timeout=timeout)
    responder = Responder(manager, ping.reader, pong.writer, echo)

    with manager.logging_context.pipeline('pingpong'):
        try:
            manager.spawn(responder)
        except SpawnFailure as e:
            logger.error(f"pingpong: {e}")
            for end in (ping.reader, ping.writer, pong.reader, pong.writer):
                end.close()
            return 1

        status = 0
        with ping.writer, pong.reader:
            try:
                ping.writer.send(payload)
                reply = pong.reader.receive()
                if reply is END_OF_STREAM:
                    raise UnexpectedChannelError("initiator: pong channel closed before reply")
                echo(f"{threading.get_native_id()}: received pong")
            except ChannelError as e:
                logger.error(f"pingpong: {type(e).__name__}: {e}")
                status = 1

        still_running = manager.join_all(timeout)

    if still_running or manager.errors:
        return 1
    return status
