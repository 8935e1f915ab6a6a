"""
Concurrent prime sieve.

A feeder streams candidates into a chain of concurrent filter stages that
grows by one stage per discovered prime.
"""

__version__ = "1.0.0"
__description__ = "Self-extending concurrent prime sieve pipeline"

# Note: submodules are imported explicitly when needed; importing the
# config package loads configuration files.

__all__ = [
    '__version__',
    '__description__',
]
