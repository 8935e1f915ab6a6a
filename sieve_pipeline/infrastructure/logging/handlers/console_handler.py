"""Console handler for interactive use."""

import logging
import os
import sys

from ..formatters import HumanFormatter


class ConsoleHandler(logging.StreamHandler):
    """Human-readable records on stderr, so stdout carries only ``prime <v>`` lines.

    Colors are used when stderr is a terminal and NO_COLOR is unset.
    """

    def __init__(self, show_context: bool = True):
        super().__init__(sys.stderr)
        use_colors = sys.stderr.isatty() and not os.environ.get('NO_COLOR')
        self.setFormatter(HumanFormatter(use_colors=use_colors, show_context=show_context))
