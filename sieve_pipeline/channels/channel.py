# sieve_pipeline/channels/channel.py
"""Unidirectional, ordered, blocking channel with independently closable ends."""

import itertools
import threading
import time
from collections import deque
from typing import Any, Deque, Iterator, Optional, Tuple

from sieve_pipeline.infrastructure.logging import get_logger

from .codec import IntCodec
from .exceptions import ChannelClosed, UnexpectedChannelError

logger = get_logger(__name__)


class _EndOfStream:
    """Sentinel returned by a receive once the write end is closed and drained."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'END_OF_STREAM'

    def __bool__(self) -> bool:
        return False


END_OF_STREAM = _EndOfStream()

# Process-wide count of open channel ends
_handle_lock = threading.Lock()
_live_handles = 0
_channel_ids = itertools.count(1)


def _track_handles(delta: int):
    global _live_handles
    with _handle_lock:
        _live_handles += delta


def live_handles() -> int:
    """Number of channel ends currently open in this process."""
    with _handle_lock:
        return _live_handles


class Channel:
    """
    Blocking byte conduit between two concurrent units.

    Values are framed through ``codec`` on send and decoded on receive.
    With ``capacity == 0`` the channel is a rendezvous: a send returns only
    once a receiver has taken the value. With ``capacity > 0`` a send blocks
    only while the buffer is full.

    Closing the write end wakes a blocked receiver with END_OF_STREAM;
    closing the read end drops buffered frames and wakes a blocked sender
    with ChannelClosed.
    """

    def __init__(self,
                 capacity: int = 0,
                 codec=None,
                 name: Optional[str] = None,
                 timeout: Optional[float] = None):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self.codec = codec or IntCodec()
        self.name = name or f"channel-{next(_channel_ids)}"
        self.timeout = timeout

        self._cond = threading.Condition()
        self._buffer: Deque[Tuple[int, bytes]] = deque()
        self._tickets = itertools.count(1)
        self._delivered = 0
        self._write_closed = False
        self._read_closed = False

        _track_handles(2)
        self.reader = ReadEnd(self)
        self.writer = WriteEnd(self)

    def __repr__(self) -> str:
        return (f"Channel({self.name!r}, capacity={self.capacity}, "
                f"write_closed={self._write_closed}, read_closed={self._read_closed})")

    @property
    def write_closed(self) -> bool:
        return self._write_closed

    @property
    def read_closed(self) -> bool:
        return self._read_closed

    def _wait(self, deadline: Optional[float], operation: str):
        if deadline is None:
            self._cond.wait()
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise UnexpectedChannelError(f"{operation} on {self.name} timed out")
        self._cond.wait(remaining)

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            timeout = self.timeout
        return None if timeout is None else time.monotonic() + timeout

    def send(self, value: Any, timeout: Optional[float] = None):
        """Send one value, blocking until it is accepted.

        Raises:
            ChannelClosed: the read end is closed (before or during the send)
            UnexpectedChannelError: the write end was already closed, the
                value cannot be framed, or the timeout expired
        """
        frame = self.codec.encode(value)
        deadline = self._deadline(timeout)

        with self._cond:
            if self._write_closed:
                raise UnexpectedChannelError(f"send on closed write end of {self.name}")
            if self._read_closed:
                raise ChannelClosed(f"read end of {self.name} is closed")

            if self.capacity > 0:
                while len(self._buffer) >= self.capacity and not self._read_closed:
                    self._wait(deadline, 'send')
                if self._read_closed:
                    raise ChannelClosed(f"read end of {self.name} closed during send")
                self._buffer.append((next(self._tickets), frame))
                self._cond.notify_all()
                return

            ticket = next(self._tickets)
            self._buffer.append((ticket, frame))
            self._cond.notify_all()
            try:
                while self._delivered < ticket and not self._read_closed:
                    self._wait(deadline, 'send')
            except UnexpectedChannelError:
                self._withdraw(ticket)
                raise
            if self._delivered < ticket:
                raise ChannelClosed(f"read end of {self.name} closed during send")

    def _withdraw(self, ticket: int):
        for entry in self._buffer:
            if entry[0] == ticket:
                self._buffer.remove(entry)
                break

    def receive(self, timeout: Optional[float] = None) -> Any:
        """Receive the next value, or END_OF_STREAM once the writer is gone.

        Raises:
            UnexpectedChannelError: the read end was already closed, the frame
                is corrupt, or the timeout expired
        """
        deadline = self._deadline(timeout)

        with self._cond:
            if self._read_closed:
                raise UnexpectedChannelError(f"receive on closed read end of {self.name}")
            while not self._buffer and not self._write_closed:
                self._wait(deadline, 'receive')
            if not self._buffer:
                return END_OF_STREAM
            ticket, frame = self._buffer.popleft()
            self._delivered = ticket
            self._cond.notify_all()

        return self.codec.decode(frame)

    def close_write(self):
        """Close the write end. Idempotent."""
        with self._cond:
            if self._write_closed:
                return
            self._write_closed = True
            self._cond.notify_all()
        _track_handles(-1)
        logger.debug(f"Closed write end of {self.name}")

    def close_read(self):
        """Close the read end, discarding anything still buffered. Idempotent."""
        with self._cond:
            if self._read_closed:
                return
            self._read_closed = True
            dropped = len(self._buffer)
            self._buffer.clear()
            self._cond.notify_all()
        _track_handles(-1)
        if dropped:
            logger.debug(f"Closed read end of {self.name}, dropped {dropped} pending values")
        else:
            logger.debug(f"Closed read end of {self.name}")


class ReadEnd:
    """Receiving handle of a channel. Closing it on exit is guaranteed by ``with``."""

    def __init__(self, channel: Channel):
        self.channel = channel

    @property
    def closed(self) -> bool:
        return self.channel.read_closed

    def receive(self, timeout: Optional[float] = None) -> Any:
        return self.channel.receive(timeout)

    def close(self):
        self.channel.close_read()

    def __iter__(self) -> Iterator[Any]:
        while True:
            value = self.channel.receive()
            if value is END_OF_STREAM:
                return
            yield value

    def __enter__(self) -> 'ReadEnd':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"ReadEnd({self.channel.name!r}, closed={self.closed})"


class WriteEnd:
    """Sending handle of a channel. Closing it signals end-of-stream downstream."""

    def __init__(self, channel: Channel):
        self.channel = channel

    @property
    def closed(self) -> bool:
        return self.channel.write_closed

    def send(self, value: Any, timeout: Optional[float] = None):
        self.channel.send(value, timeout)

    def close(self):
        self.channel.close_write()

    def __enter__(self) -> 'WriteEnd':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"WriteEnd({self.channel.name!r}, closed={self.closed})"
