"""Human-readable formatter for console output."""

import logging
from typing import Any, Dict


class HumanFormatter(logging.Formatter):
    """One line per record, prefixed with the run/stage/prime it belongs to.

        12:00:01 INFO     sieve_stage [run:1b2c3d4e | stage:sieve-3 | prime:7] forwarding 11
          Performance: 0.012s | 11 primes | 12 stages | completed

    Performance fields and tracebacks go on indented continuation lines.
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.WARNING: '\033[93m',
        logging.ERROR: '\033[91m',
        logging.CRITICAL: '\033[95m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = False, show_context: bool = True):
        super().__init__(datefmt='%H:%M:%S')
        self.use_colors = use_colors
        self.show_context = show_context

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, '') if self.use_colors else ''
        reset = self.RESET if color else ''

        line = [
            self.formatTime(record, self.datefmt),
            f"{color}{record.levelname:<8}{reset}",
            record.name.rsplit('.', 1)[-1],
        ]
        if self.show_context:
            unit = self._format_context(getattr(record, 'context', None) or {})
            if unit:
                line.append(unit)
        line.append(record.getMessage())
        output = ' '.join(line)

        perf = getattr(record, 'performance', None)
        if perf:
            output += f"\n  Performance: {self._format_performance(perf)}"

        tb = getattr(record, 'traceback', None)
        if tb:
            output += '\n' + '\n'.join(f"  {color}{row}{reset}" for row in tb.rstrip().splitlines())

        return output

    @staticmethod
    def _format_context(context: Dict[str, Any]) -> str:
        parts = []
        if context.get('run_id'):
            parts.append(f"run:{str(context['run_id'])[:8]}")
        if context.get('stage'):
            parts.append(f"stage:{context['stage']}")
        if context.get('prime') is not None:
            parts.append(f"prime:{context['prime']}")
        return f"[{' | '.join(parts)}]" if parts else ''

    @staticmethod
    def _format_performance(perf: Dict[str, Any]) -> str:
        parts = []
        if 'duration_seconds' in perf:
            parts.append(f"{perf['duration_seconds']:.3f}s")
        if 'primes_found' in perf:
            parts.append(f"{perf['primes_found']} primes")
        if 'stages_spawned' in perf:
            parts.append(f"{perf['stages_spawned']} stages")
        if 'status' in perf:
            parts.append(str(perf['status']))
        return ' | '.join(parts)
