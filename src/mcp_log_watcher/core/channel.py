"""Update channel between a watcher and its consumer.

Contract:
- single producer: only the owning watcher emits, from its worker task;
- ordered delivery: callbacks run synchronously in emission order;
- at most one active consumer: a second subscribe fails until the first
  subscription is cancelled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ChannelClosedError(RuntimeError):
    """Raised when subscribing to a closed channel."""


class Subscription:
    """Handle returned by :meth:`UpdateChannel.subscribe`."""

    def __init__(self, channel: UpdateChannel, callback: Callable) -> None:
        self._channel = channel
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._channel._callback is self._callback

    def cancel(self) -> None:
        self._channel._unsubscribe(self._callback)


class UpdateChannel(Generic[T]):
    """Callback registration with one consumer at a time."""

    def __init__(self) -> None:
        self._callback: Callable[[T], None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        if self._closed:
            raise ChannelClosedError("channel is closed")
        if self._callback is not None:
            raise RuntimeError("channel already has an active consumer")
        self._callback = callback
        return Subscription(self, callback)

    def _unsubscribe(self, callback: Callable) -> None:
        if self._callback is callback:
            self._callback = None

    def emit(self, item: T) -> None:
        """Deliver ``item`` to the consumer, if any.

        Consumer errors are logged and do not reach the producer.
        """
        if self._closed or self._callback is None:
            return
        try:
            self._callback(item)
        except Exception:
            LOGGER.exception("Update consumer failed")

    def close(self) -> None:
        self._closed = True
        self._callback = None
