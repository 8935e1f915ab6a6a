# sieve_pipeline/pipelines/__init__.py
"""Concurrent prime sieve pipeline."""

from .orchestrator import SievePipeline, PipelineResult, PipelineStatus

__all__ = ['SievePipeline', 'PipelineResult', 'PipelineStatus']
