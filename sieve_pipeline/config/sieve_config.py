# sieve_pipeline/config/sieve_config.py
"""Run configuration for one sieve pipeline."""

from dataclasses import dataclass, asdict, fields
from typing import Optional, Dict, Any, List


@dataclass
class SieveConfig:
    """
    Configuration for a single pipeline run.

    Used by the driver, the feeder and every stage to size channels,
    bound spawning and bound blocking waits.
    """
    max_candidate: int = 35  # Upper bound of the sieved range (inclusive)
    low: int = 2  # Lower bound of the sieved range
    channel_capacity: int = 0  # 0 = rendezvous, >0 = buffered
    max_stages: Optional[int] = 1024  # Ceiling on spawned stages; None = unbounded
    join_timeout: Optional[float] = None  # Seconds to wait for a successor / the chain
    receive_timeout: Optional[float] = None
    send_timeout: Optional[float] = None

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty when valid)."""
        errors = []
        for name in ('max_candidate', 'low', 'channel_capacity', 'max_stages'):
            value = getattr(self, name)
            if name == 'max_stages' and value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be an integer, got {value!r}")
        for name in ('join_timeout', 'receive_timeout', 'send_timeout'):
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                errors.append(f"{name} must be a number of seconds or None, got {value!r}")
        if errors:
            # Range checks below assume numeric fields
            return errors

        if self.low < 2:
            errors.append(f"low must be >= 2, got {self.low}")
        if self.channel_capacity < 0:
            errors.append(f"channel_capacity must be >= 0, got {self.channel_capacity}")
        if self.max_stages is not None and self.max_stages < 1:
            errors.append(f"max_stages must be >= 1 or None, got {self.max_stages}")
        for name in ('join_timeout', 'receive_timeout', 'send_timeout'):
            value = getattr(self, name)
            if value is not None and value <= 0:
                errors.append(f"{name} must be positive or None, got {value}")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SieveConfig':
        """Create from dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in fields(cls)}
        filtered_data = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered_data)

    @classmethod
    def from_config(cls, config, **overrides) -> 'SieveConfig':
        """Build from the ``sieve`` section of a Config, then apply overrides."""
        data = dict(config.get('sieve', {}) or {})
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)
