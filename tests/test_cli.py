"""Tests for the sieve command-line interface."""
from click.testing import CliRunner

from sieve_pipeline.cli import cli


def _prime_lines(output):
    return [line for line in output.splitlines() if line.startswith('prime ')]


class TestPrimesCommand:
    """`sieve primes` output and exit codes."""

    def test_ten(self):
        result = CliRunner().invoke(cli, ['primes', '10'])

        assert result.exit_code == 0
        assert _prime_lines(result.output) == ['prime 2', 'prime 3', 'prime 5', 'prime 7']

    def test_default_bound(self):
        result = CliRunner().invoke(cli, ['primes'])

        assert result.exit_code == 0
        assert _prime_lines(result.output)[-1] == 'prime 31'

    def test_one_prints_nothing(self):
        result = CliRunner().invoke(cli, ['primes', '1'])

        assert result.exit_code == 0
        assert _prime_lines(result.output) == []

    def test_stage_ceiling_keeps_partial_output(self):
        result = CliRunner().invoke(cli, ['primes', '10', '--max-stages', '3', '--join-timeout', '10'])

        assert result.exit_code == 1
        assert _prime_lines(result.output) == ['prime 2', 'prime 3', 'prime 5']

    def test_buffered_unbounded(self):
        result = CliRunner().invoke(cli, ['primes', '50', '--capacity', '4', '--max-stages', '0'])

        assert result.exit_code == 0
        assert len(_prime_lines(result.output)) == 15

    def test_config_file(self, tmp_path):
        config_file = tmp_path / 'sieve.yml'
        config_file.write_text("sieve:\n  max_candidate: 20\n")

        result = CliRunner().invoke(cli, ['--config', str(config_file), 'primes'])

        assert result.exit_code == 0
        assert _prime_lines(result.output)[-1] == 'prime 19'

    def test_invalid_config_value_is_reported(self, tmp_path):
        config_file = tmp_path / 'sieve.yml'
        config_file.write_text("sieve:\n  low: 1\n")

        result = CliRunner().invoke(cli, ['--config', str(config_file), 'primes', '10'])

        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)
        assert "low must be >= 2" in result.output
        assert _prime_lines(result.output) == []

    def test_malformed_config_file_is_reported(self, tmp_path):
        config_file = tmp_path / 'sieve.yml'
        config_file.write_text("- not\n- a mapping\n")

        result = CliRunner().invoke(cli, ['--config', str(config_file), 'primes'])

        assert result.exit_code == 1
        assert "Failed to load configuration" in result.output

    def test_rejects_negative_capacity(self):
        result = CliRunner().invoke(cli, ['primes', '10', '--capacity', '-1'])

        assert result.exit_code == 2


class TestPingPongCommand:
    """`sieve pingpong` round trip."""

    def test_round_trip(self):
        result = CliRunner().invoke(cli, ['pingpong', '--timeout', '5'])

        assert result.exit_code == 0
        assert 'received ping' in result.output
        assert 'received pong' in result.output
