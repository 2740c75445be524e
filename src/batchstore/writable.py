"""Writable store — a value plus the callbacks that want to hear about it.

This is the publish/subscribe primitive a container flushes into. It knows
nothing about batching: every set() notifies every subscriber, synchronously,
in subscription order.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Generic, Protocol, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

Unsubscriber = Callable[[], None]

# (callback, value) notifications not yet delivered. Shared by every store so
# a set() made from inside a subscriber waits until the outer set() has
# reached all of its subscribers. Only the outermost set() drains it.
_queue: deque = deque()


class Readable(Protocol[T_co]):
    """Anything that can be subscribed to."""

    def subscribe(self, callback: Callable[[T_co], None]) -> Unsubscriber: ...


class Writable(Generic[T]):
    """A value holder that pushes every new value to its subscribers."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscriber:
        """Register a callback and call it once with the current value.

        Returns a function that removes it. Calling it twice is harmless.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        callback(self._value)
        return _unsubscribe

    def set(self, value: T) -> None:
        """Replace the value and notify every subscriber with it.

        Notifications are delivered in the order the values were set, so
        no subscriber ends on a value older than the one the store holds.
        """
        self._value = value
        outermost = not _queue
        _queue.extend((cb, value) for cb in list(self._subscribers))
        if not outermost:
            return
        try:
            while _queue:
                cb, queued = _queue[0]
                cb(queued)
                _queue.popleft()
        finally:
            _queue.clear()

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def __repr__(self) -> str:
        return f"Writable({self._value!r}, subscribers={len(self._subscribers)})"


def get(store: Readable[T]) -> T:
    """Read the current value of any readable by subscribing once.

    Usage:
        counter = store(0).actions(lambda s: {})
        get(counter)  # 0
    """
    captured: list[T] = []
    unsubscribe = store.subscribe(captured.append)
    unsubscribe()
    return captured[0]
