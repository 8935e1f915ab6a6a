"""Tests for the ping-pong handshake."""
import threading

from sieve_pipeline.channels import live_handles
from sieve_pipeline.pipelines.orchestrator.unit_manager import UnitManager
from sieve_pipeline.programs import pingpong
from sieve_pipeline.programs.pingpong import Responder


class TestPingPong:
    """Round trip ordering, exit status and cleanup."""

    def test_round_trip(self):
        lines = []
        handles_before = live_handles()
        threads_before = threading.active_count()

        status = pingpong.run(timeout=5.0, echo=lines.append)

        assert status == 0
        assert len(lines) == 2
        assert lines[0].endswith(": received ping")
        assert lines[1].endswith(": received pong")
        # Each side reports with its own thread id
        assert lines[0].split(':')[0] != lines[1].split(':')[0]
        assert live_handles() == handles_before
        assert threading.active_count() == threads_before

    def test_responder_failure_gives_non_zero_status(self, monkeypatch):
        def broken_execute(self):
            self.inbox.close()
            self.outbox.close()
            raise RuntimeError("responder crashed")

        monkeypatch.setattr(Responder, 'execute', broken_execute)
        lines = []

        status = pingpong.run(timeout=5.0, echo=lines.append)

        assert status == 1
        assert lines == []

    def test_spawn_failure_gives_non_zero_status(self, monkeypatch):
        def refuse(self, unit):
            from sieve_pipeline.channels import SpawnFailure
            raise SpawnFailure("no threads left")

        monkeypatch.setattr(UnitManager, 'spawn', refuse)
        handles_before = live_handles()

        assert pingpong.run(timeout=5.0, echo=lambda line: None) == 1
        assert live_handles() == handles_before
