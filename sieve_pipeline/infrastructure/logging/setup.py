"""Setup and configuration for the structured logging system."""

import logging
from typing import Optional

from .structured_logger import get_logger
from .handlers import ConsoleHandler, FileHandler


def setup_logging(config,
                  log_file: Optional[str] = None,
                  console: bool = True,
                  log_level: Optional[str] = None):
    """Install console and file handlers on the root logger.

    Args:
        config: Config instance (dot-notation ``get``)
        log_file: Optional log file path (falls back to ``logging.log_file``)
        console: Whether to enable console logging
        log_level: Minimum console level (falls back to ``logging.level``)
    """
    log_level = log_level or config.get('logging.level', 'WARNING')
    level = getattr(logging, str(log_level).upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = ConsoleHandler(show_context=config.get('logging.show_context', True))
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    if log_file is None:
        log_file = config.get('logging.log_file')

    if log_file:
        file_handler = FileHandler(
            filename=str(log_file),
            max_bytes=config.get('logging.max_file_size', 10 * 1024 * 1024),
            backup_count=config.get('logging.backup_count', 5),
            use_json=config.get('logging.json_files', True)
        )
        # Files capture every stage's debug trail regardless of console level
        root_logger.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    get_logger(__name__).info(
        "Structured logging system initialized",
        extra={'context': {'log_level': log_level,
                           'log_file': str(log_file) if log_file else None}}
    )
