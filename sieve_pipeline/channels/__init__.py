"""Blocking channels connecting the concurrent units of the pipeline."""

from .channel import Channel, ReadEnd, WriteEnd, END_OF_STREAM, live_handles
from .codec import IntCodec, ByteCodec
from .exceptions import (
    ChannelError, ChannelClosed, UnexpectedChannelError, PipelineHang, SpawnFailure
)

__all__ = [
    'Channel',
    'ReadEnd',
    'WriteEnd',
    'END_OF_STREAM',
    'live_handles',
    'IntCodec',
    'ByteCodec',
    'ChannelError',
    'ChannelClosed',
    'UnexpectedChannelError',
    'PipelineHang',
    'SpawnFailure'
]
