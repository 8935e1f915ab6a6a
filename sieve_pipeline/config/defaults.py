# sieve_pipeline/config/defaults.py
"""Default configuration values for the sieve pipeline."""

import os
from pathlib import Path

# Project path
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / 'logs'

PATHS = {
    'project_root': str(PROJECT_ROOT),
    'logs_dir': str(LOGS_DIR),
}


def _optional_int(name: str, default):
    """Integer from the environment; 'none'/'unbounded' map to None.

    A value that is not an integer is kept as the raw string so that
    SieveConfig.validate() reports it instead of the import failing.
    """
    value = os.getenv(name)
    if value is None or value == '':
        return default
    if value.lower() in ('none', 'unbounded'):
        return None
    try:
        return int(value)
    except ValueError:
        return value


# Sieve pipeline configuration
SIEVE = {
    'low': 2,  # First candidate the feeder emits
    'max_candidate': _optional_int('SIEVE_MAX_CANDIDATE', 35),
    'channel_capacity': 0,  # 0 = rendezvous channels
    # Ceiling on concurrently spawned stages (one thread per prime); None = unbounded
    'max_stages': _optional_int('SIEVE_MAX_STAGES', 1024),
    'join_timeout': None,  # seconds; None waits forever
    'receive_timeout': None,
    'send_timeout': None,
}

LOGGING = {
    'level': os.getenv('SIEVE_LOG_LEVEL', 'WARNING'),
    'log_file': None,  # e.g. str(LOGS_DIR / 'sieve.log')
    'max_file_size': 10 * 1024 * 1024,  # 10MB
    'backup_count': 5,
    'json_files': True,
    'show_context': True,
}

MONITORING = {
    'track_resources': True,
    'fail_on_leak': True,  # leaked threads/handles turn into a non-zero exit status
}
