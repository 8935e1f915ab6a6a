"""Tests for the pipeline driver."""
import threading
import time

import pytest

from sieve_pipeline.channels import (
    Channel, IntCodec, PipelineHang, SpawnFailure, UnexpectedChannelError, live_handles
)
from sieve_pipeline.config import Config, SieveConfig
from sieve_pipeline.pipelines import SievePipeline, PipelineStatus
from sieve_pipeline.pipelines.orchestrator import UnitManager, run as run_pipeline
from sieve_pipeline.pipelines.stages import SieveStage


def _primes_upto(n):
    return [k for k in range(2, n + 1) if all(k % d for d in range(2, int(k ** 0.5) + 1))]


class TestSievePipeline:
    """End-to-end behaviour of SievePipeline.run."""

    def test_ten(self, sieve_config):
        lines = []
        pipeline = SievePipeline(sieve_config=sieve_config, reporter=lambda p: lines.append(f"prime {p}"))

        result = pipeline.run(10)

        assert lines == ['prime 2', 'prime 3', 'prime 5', 'prime 7']
        assert result.primes == [2, 3, 5, 7]
        assert result.exit_status == 0
        assert result.status == PipelineStatus.COMPLETED
        assert result.stages_spawned == 4
        assert set(result.timings) == {'pipeline_prime_sieve', 'feeder', 'sieve-0', 'sieve-1', 'sieve-2', 'sieve-3'}

    def test_one_reports_nothing(self, sieve_config):
        lines = []
        pipeline = SievePipeline(sieve_config=sieve_config, reporter=lines.append)

        result = pipeline.run(1)

        assert lines == []
        assert result.primes == []
        assert result.exit_status == 0
        assert result.stages_spawned == 1
        assert result.unit_results['feeder'].metrics['sent'] == 0

    @pytest.mark.parametrize("n", [2, 3, 4, 35, 97, 200])
    def test_matches_trial_division(self, sieve_config, n):
        result = SievePipeline(sieve_config=sieve_config).run(n)

        assert result.primes == _primes_upto(n)
        assert result.primes == sorted(set(result.primes))
        assert result.success

    def test_default_range_is_two_to_thirty_five(self, sieve_config):
        result = SievePipeline(sieve_config=sieve_config).run()

        assert result.max_candidate == 35
        assert result.primes == [2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31]

    def test_repeated_runs_are_identical(self, sieve_config):
        pipeline = SievePipeline(sieve_config=sieve_config)

        first = pipeline.run(120).primes
        second = pipeline.run(120).primes

        assert first == second == _primes_upto(120)

    def test_buffered_channels(self):
        cfg = SieveConfig(channel_capacity=8, join_timeout=10.0)

        result = SievePipeline(sieve_config=cfg).run(150)

        assert result.primes == _primes_upto(150)
        assert result.success

    def test_run_helper_uses_overrides(self):
        result = run_pipeline(30, channel_capacity=2, join_timeout=10.0)

        assert result.primes == _primes_upto(30)

    def test_invalid_config_raises(self):
        pipeline = SievePipeline(sieve_config=SieveConfig(channel_capacity=-1))

        with pytest.raises(ValueError, match="channel_capacity"):
            pipeline.run(10)


class TestResourceDiscipline:
    """The driver returns only after every unit is joined and every end is closed."""

    def test_returns_to_baseline(self, sieve_config):
        threads_before = threading.active_count()
        handles_before = live_handles()

        result = SievePipeline(sieve_config=sieve_config).run(300)

        assert result.success
        assert threading.active_count() == threads_before
        assert live_handles() == handles_before
        assert result.resources['leaks'] == {}
        assert result.resources['final']['handles'] == result.resources['baseline']['handles']

    def test_completes_in_bounded_time(self, sieve_config):
        pipeline = SievePipeline(sieve_config=sieve_config)
        start = time.monotonic()
        result = pipeline.run(500)

        assert result.success
        assert time.monotonic() - start < 30
        assert pipeline.manager.live_units() == []
        assert len(pipeline.manager.units) == result.stages_spawned + 1

    def test_unrelated_activity_does_not_fail_run(self, sieve_config):
        release = threading.Event()
        stray = {}

        def reporter(prime):
            # Resources owned by someone else appear mid-run and outlive it
            if prime == 2:
                stray['thread'] = threading.Thread(target=release.wait, args=(10,), daemon=True)
                stray['thread'].start()
                stray['channel'] = Channel(name='unrelated')

        try:
            result = SievePipeline(sieve_config=sieve_config, reporter=reporter).run(30)
        finally:
            release.set()
            stray['thread'].join(10)
            stray['channel'].writer.close()
            stray['channel'].reader.close()

        assert result.exit_status == 0
        assert result.primes == _primes_upto(30)
        assert result.resources['leaks'] == {}
        assert result.resources['process_delta'] == {'threads': 1, 'handles': 2}

    def test_concurrent_runs_are_both_clean(self, sieve_config):
        background = {}

        def long_run():
            cfg = SieveConfig(join_timeout=60.0)
            background['result'] = SievePipeline(sieve_config=cfg).run(1000)

        thread = threading.Thread(target=long_run)
        thread.start()
        try:
            short = SievePipeline(sieve_config=sieve_config).run(30)
        finally:
            thread.join(60)

        assert short.exit_status == 0
        assert short.primes == _primes_upto(30)
        assert background['result'].exit_status == 0
        assert background['result'].primes == _primes_upto(1000)

    def test_unreleased_channel_end_fails_run(self, sieve_config):
        pipeline = SievePipeline(sieve_config=sieve_config)
        leaked = []

        def reporter(prime):
            if prime == 2:
                leaked.append(pipeline.manager.create_channel('never-closed'))

        pipeline.reporter = reporter
        try:
            result = pipeline.run(10)
        finally:
            for channel in leaked:
                channel.writer.close()
                channel.reader.close()

        assert result.primes == [2, 3, 5, 7]
        assert result.exit_status == 1
        assert result.resources['leaks'] == {'handles': 2}
        assert [(name, type(e)) for name, e in result.errors] == [('driver', UnexpectedChannelError)]

    def test_leak_tolerated_when_configured(self, sieve_config):
        config = Config()
        config.set('monitoring.fail_on_leak', False)
        pipeline = SievePipeline(config, sieve_config)
        leaked = []

        def reporter(prime):
            if prime == 2:
                leaked.append(pipeline.manager.create_channel('extra'))

        pipeline.reporter = reporter

        try:
            result = pipeline.run(10)
        finally:
            for channel in leaked:
                channel.writer.close()
                channel.reader.close()

        assert result.exit_status == 0
        assert result.resources['leaks'] == {'handles': 2}

    def test_monitoring_can_be_disabled(self, sieve_config):
        config = Config()
        config.set('monitoring.track_resources', False)

        result = SievePipeline(config, sieve_config).run(10)

        assert result.resources == {}
        assert result.success


class TestPipelineFailures:
    """Failures keep earlier output, unwind cleanly and set a non-zero exit status."""

    def test_spawn_failure_on_fourth_stage(self):
        cfg = SieveConfig(max_stages=3, join_timeout=10.0)
        lines = []
        threads_before = threading.active_count()
        handles_before = live_handles()

        result = SievePipeline(sieve_config=cfg, reporter=lambda p: lines.append(f"prime {p}")).run(10)

        assert lines == ['prime 2', 'prime 3', 'prime 5']
        assert result.exit_status != 0
        assert result.status == PipelineStatus.FAILED
        assert [type(e) for _, e in result.errors] == [SpawnFailure]
        assert threading.active_count() == threads_before
        assert live_handles() == handles_before

    def test_spawn_failure_with_long_tail_unwinds(self):
        cfg = SieveConfig(max_stages=3, join_timeout=10.0)

        result = SievePipeline(sieve_config=cfg).run(1000)

        assert result.primes == [2, 3, 5]
        assert result.exit_status == 1
        assert result.unit_results['feeder'].success
        assert result.resources['leaks'] == {}

    def test_corrupted_transfer_fails_observing_stage(self, sieve_config, monkeypatch):
        class CorruptAt25(IntCodec):
            def decode(self, frame):
                value = super().decode(frame)
                if value == 25:
                    raise UnexpectedChannelError("corrupted frame")
                return value

        original_create = UnitManager.create_channel

        def create_channel(self, name):
            channel = original_create(self, name)
            if name == 'sieve-1->sieve-2':
                channel.codec = CorruptAt25()
            return channel

        monkeypatch.setattr(UnitManager, 'create_channel', create_channel)
        handles_before = live_handles()

        result = SievePipeline(sieve_config=sieve_config).run(40)

        # 25 first reaches the stage owning 5; everything it forwarded earlier survives
        assert result.primes == [2, 3, 5, 7, 11, 13, 17, 19, 23]
        assert result.exit_status == 1
        assert [(name, type(e)) for name, e in result.errors] == [('sieve-2', UnexpectedChannelError)]
        assert live_handles() == handles_before

    def test_hung_stage_is_reported(self, monkeypatch):
        release = threading.Event()
        original_filter = SieveStage._filter

        def stuck_filter(self):
            if self.index == 1:
                release.wait(10)
            return original_filter(self)

        monkeypatch.setattr(SieveStage, '_filter', stuck_filter)
        cfg = SieveConfig(join_timeout=0.3)
        pipeline = SievePipeline(sieve_config=cfg)

        try:
            result = pipeline.run(20)
        finally:
            release.set()
            # Let the stuck chain drain so later tests start from a clean baseline
            assert pipeline.manager.join_all(10.0) == []

        assert result.exit_status == 1
        assert any(isinstance(e, PipelineHang) for _, e in result.errors)
        assert result.primes[:2] == [2, 3]
