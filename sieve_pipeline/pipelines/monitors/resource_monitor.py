# sieve_pipeline/pipelines/monitors/resource_monitor.py
"""Thread and channel-handle accounting around a pipeline run."""

import psutil
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Any, Optional

from sieve_pipeline.channels import live_handles


@dataclass
class ResourceSnapshot:
    """Point-in-time resource counters for this process."""
    timestamp: datetime
    threads: int  # Python threads (threading.active_count)
    handles: int  # Open channel ends, all runs
    os_threads: int  # OS-level threads reported by psutil
    rss_mb: float


class ResourceMonitor:
    """Resource accounting for one pipeline run.

    Leaks are judged per run: units of the run's manager that are still
    alive and channel ends it created that are still open. The process-wide
    snapshots taken before and after are informational only, since other
    runs and unrelated threads share those counters.
    """

    def __init__(self):
        self._process = psutil.Process()
        self.baseline: Optional[ResourceSnapshot] = None
        self.final: Optional[ResourceSnapshot] = None

    def snapshot(self) -> ResourceSnapshot:
        memory_info = self._process.memory_info()
        return ResourceSnapshot(
            timestamp=datetime.now(),
            threads=threading.active_count(),
            handles=live_handles(),
            os_threads=self._process.num_threads(),
            rss_mb=memory_info.rss / (1024 ** 2)
        )

    def capture_baseline(self) -> ResourceSnapshot:
        self.baseline = self.snapshot()
        self.final = None
        return self.baseline

    def capture_final(self) -> ResourceSnapshot:
        self.final = self.snapshot()
        return self.final

    def process_delta(self) -> Dict[str, int]:
        """Process-wide change in threads/handles since the baseline."""
        if self.baseline is None or self.final is None:
            return {}
        return {
            name: getattr(self.final, name) - getattr(self.baseline, name)
            for name in ('threads', 'handles')
        }

    @staticmethod
    def leaks(manager) -> Dict[str, int]:
        """Units still running and channel ends still open for ``manager``'s run."""
        leaked = {}
        units = len(manager.live_units())
        if units:
            leaked['units'] = units
        handles = manager.open_handles()
        if handles:
            leaked['handles'] = handles
        return leaked

    def report(self, manager=None) -> Dict[str, Any]:
        report = {
            'baseline': asdict(self.baseline) if self.baseline else None,
            'final': asdict(self.final) if self.final else None,
            'process_delta': self.process_delta(),
            'leaks': self.leaks(manager) if manager is not None else {}
        }
        if self.baseline and self.final:
            report['rss_delta_mb'] = round(self.final.rss_mb - self.baseline.rss_mb, 3)
        return report
