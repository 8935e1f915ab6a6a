"""Concurrent units of the sieve pipeline."""

from .base_stage import PipelineUnit, StageResult, StageStatus
from .feeder_stage import FeederStage
from .sieve_stage import SieveStage

__all__ = ['PipelineUnit', 'StageResult', 'StageStatus', 'FeederStage', 'SieveStage']
