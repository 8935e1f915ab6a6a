from .config import Config, config
from .sieve_config import SieveConfig

__all__ = ['Config', 'config', 'SieveConfig']
