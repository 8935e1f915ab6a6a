"""Channel and unit-lifecycle exceptions for the sieve pipeline."""

from typing import Optional


class ChannelError(Exception):
    """Base channel error."""
    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class ChannelClosed(ChannelError):
    """Raised when the peer end of a channel is gone.

    This is the normal shutdown signal of the pipeline, not a failure.
    """
    pass


class UnexpectedChannelError(ChannelError):
    """Raised on corrupted transfers, timeouts or misuse of a closed end."""
    pass


class PipelineHang(UnexpectedChannelError):
    """Raised when a join timed out with execution units still alive."""
    pass


class SpawnFailure(ChannelError):
    """Raised when a new execution unit could not be created."""
    pass
