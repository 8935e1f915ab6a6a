#!/usr/bin/env python3
"""
Command-line entry point for the concurrent prime sieve.

    sieve primes 100
    sieve -v primes 35 --max-stages 5
    sieve pingpong
"""

import click
import yaml
from pathlib import Path

from sieve_pipeline.config import Config, SieveConfig, config as default_config
from sieve_pipeline.infrastructure.logging import setup_logging
from sieve_pipeline.pipelines import SievePipeline
from sieve_pipeline.programs import pingpong as pingpong_program


@click.group()
@click.option('--verbose', '-v', count=True, help='-v for INFO logs, -vv for DEBUG')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML file overriding the default configuration')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write JSON logs here')
@click.pass_context
def cli(ctx, verbose, config_path, log_file):
    """Concurrent prime sieve."""
    try:
        cfg = Config(Path(config_path)) if config_path else default_config
    except (OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Failed to load configuration: {e}", err=True)
        raise click.Abort()

    log_level = None
    if verbose > 1:
        log_level = 'DEBUG'
    elif verbose == 1:
        log_level = 'INFO'
    setup_logging(cfg, log_file=log_file, log_level=log_level)

    ctx.obj = {'config': cfg}


@cli.command()
@click.argument('max_candidate', type=int, required=False)
@click.option('--capacity', type=click.IntRange(min=0),
              help='Channel buffer size (0 = rendezvous)')
@click.option('--max-stages', type=click.IntRange(min=0),
              help='Ceiling on spawned stages (0 = unbounded)')
@click.option('--join-timeout', type=click.FloatRange(min=0, min_open=True),
              help='Seconds to wait for the chain to finish')
@click.pass_context
def primes(ctx, max_candidate, capacity, max_stages, join_timeout):
    """Print every prime in [2, MAX_CANDIDATE]."""
    cfg = ctx.obj['config']
    sieve_config = SieveConfig.from_config(
        cfg,
        channel_capacity=capacity,
        max_stages=max_stages,
        join_timeout=join_timeout
    )
    if max_stages == 0:
        sieve_config.max_stages = None

    pipeline = SievePipeline(cfg, sieve_config, reporter=lambda p: click.echo(f"prime {p}"))
    try:
        result = pipeline.run(max_candidate)
    except ValueError as e:
        click.echo(f"Failed to run sieve: {e}", err=True)
        raise click.Abort()
    ctx.exit(result.exit_status)


@cli.command()
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True),
              help='Seconds to wait on each channel operation')
@click.pass_context
def pingpong(ctx, timeout):
    """Exchange one byte between two units and report each hop."""
    ctx.exit(pingpong_program.run(timeout=timeout, echo=click.echo))


def main():
    cli(prog_name='sieve')


if __name__ == '__main__':
    main()
