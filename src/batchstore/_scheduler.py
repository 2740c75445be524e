"""Flush scheduling — the heart of batchstore.

Every tracked access calls FlushScheduler.report(). The first report after a
flush marks the container dirty and books a single checkpoint; later reports
just ride along. When the checkpoint runs (or an action forces a flush first)
the latest value is published once and the container is clean again.

Checkpoints come from a process-wide scheduler. The default books
``loop.call_soon`` on the running asyncio loop, which fires after the current
synchronous stretch of code and before anything the loop had not yet queued.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger("batchstore.scheduler")

Checkpoint = Callable[[Callable[[], None]], object]


def call_soon(callback: Callable[[], None]) -> None:
    """Default checkpoint: run callback on the next turn of the running loop.

    Raises RuntimeError when no event loop is running.
    """
    asyncio.get_running_loop().call_soon(callback)


_scheduler: Checkpoint = call_soon

# Bumped by set_scheduler(). A booking made under an older scheduler is
# abandoned, since that scheduler may never run it.
_generation = 0


def set_scheduler(scheduler: Checkpoint | None) -> None:
    """Install the global checkpoint scheduler. None restores the default.

    A scheduler takes a zero-argument callback and arranges for it to run
    once the current synchronous work is done. It raises RuntimeError when
    it cannot do that right now. A scheduler that may silently drop
    callbacks (an app shutting down) should be replaced with another
    set_scheduler() call; bookings made through it are then abandoned.

    Usage:
        batchstore.set_scheduler(app.call_later)
    """
    global _scheduler, _generation
    _scheduler = scheduler if scheduler is not None else call_soon
    _generation += 1


def get_scheduler() -> Checkpoint:
    return _scheduler


class FlushScheduler:
    """Dirty token plus at most one outstanding checkpoint for one container.

    ``publish`` pushes the container's current value downstream. It is called
    at most once per flush and always reads the value as of that moment.
    """

    __slots__ = ("_publish", "_pending", "_booked")

    def __init__(self, publish: Callable[[], None]) -> None:
        self._publish = publish
        self._pending = False
        self._booked: int | None = None

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def booked(self) -> bool:
        """True while a checkpoint is scheduled and has not yet run."""
        return self._booked == _generation

    def report(self) -> None:
        """Record that the value may have changed."""
        self._pending = True
        if self.booked:
            return
        generation = _generation
        try:
            _scheduler(lambda: self._checkpoint(generation))
        except RuntimeError:
            # No loop to defer to. Stay dirty; the next forced flush or the
            # next report made under a running loop picks it up.
            logger.debug("No checkpoint available, flush deferred")
            return
        self._booked = generation

    def flush(self) -> None:
        """Publish the current value if anything changed since the last flush."""
        if not self._pending:
            return
        # Clear first so a subscriber that mutates again books a fresh flush.
        self._pending = False
        logger.debug("Flushing pending changes")
        self._publish()

    def _checkpoint(self, generation: int) -> None:
        if self._booked == generation:
            self._booked = None
        self.flush()

    def __repr__(self) -> str:
        state = "pending" if self._pending else "clean"
        return f"FlushScheduler({state}, booked={self.booked})"
