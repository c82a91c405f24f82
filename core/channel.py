"""
Queues between the scan thread and its consumers.

Both channels are unbounded and never block the sender.
"""

import threading
from queue import Queue, Empty
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when publishing to a channel whose consumer has gone away."""
    pass


class EventChannel(Generic[T]):
    """
    Append-only event stream from one producer to one consumer.

    The consumer takes everything currently queued with drain().
    """

    def __init__(self):
        self._queue: "Queue[T]" = Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def publish(self, item: T):
        """Queue an item. Raises ChannelClosed once the consumer is gone."""
        if self._closed.is_set():
            raise ChannelClosed("event consumer has gone away")
        self._queue.put_nowait(item)

    def drain(self) -> List[T]:
        """Return every queued item in order, without waiting for more."""
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except Empty:
                return items

    def close(self):
        """Mark the consumer as gone."""
        self._closed.set()


class SettingsChannel(Generic[T]):
    """Latest-wins mailbox polled once per scan cycle."""

    def __init__(self):
        self._queue: "Queue[T]" = Queue()

    def send(self, settings: T):
        self._queue.put_nowait(settings)

    def poll(self) -> Optional[T]:
        """Return the newest queued settings, or None if nothing arrived."""
        latest = None
        while True:
            try:
                latest = self._queue.get_nowait()
            except Empty:
                return latest
