"""Bound actions — force a flush around every user action call.

A bound action flushes twice: once as soon as the call returns (or raises),
so subscribers see the synchronous part of the action before the caller
continues, and once more when an asynchronous result settles.

Coroutines are started eagerly on the running loop. The body runs up to its
first ``await`` inside the call, exactly as far as the synchronous part of an
action goes, and the caller gets back an asyncio.Task it may await or ignore.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import Callable, Coroutine, ParamSpec, TypeVar

from batchstore._scheduler import FlushScheduler

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger("batchstore.action")


def _flush_after_error(scheduler: FlushScheduler) -> None:
    """Flush while an action error is propagating.

    The action's own exception must reach the caller, so a subscriber that
    fails here is logged instead of replacing it.
    """
    try:
        scheduler.flush()
    except Exception:
        logger.exception("Subscriber failed while flushing after an action error")


async def _flush_when_settled(coro: Coroutine, scheduler: FlushScheduler):
    try:
        result = await coro
    except BaseException:
        _flush_after_error(scheduler)
        raise
    scheduler.flush()
    return result


def _start(coro: Coroutine, scheduler: FlushScheduler, tasks: set[asyncio.Task]):
    """Run coro eagerly up to its first suspension.

    Without a running loop there is nothing to run it on; the wrapped
    coroutine goes back to the caller, who will drive it (asyncio.run etc).
    """
    settled = _flush_when_settled(coro, scheduler)
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return settled
    task = asyncio.Task(settled, loop=loop, eager_start=True)
    if not task.done():
        # The loop only keeps weak references to tasks.
        tasks.add(task)
        task.add_done_callback(tasks.discard)
    return task


def bind_action(
    fn: Callable[P, R],
    scheduler: FlushScheduler,
    tasks: set[asyncio.Task] | None = None,
) -> Callable[P, R]:
    """Wrap fn so the container is flushed when it returns and when it settles.

    The return value is handed back untouched, with one exception: a
    coroutine is replaced by the task (or coroutine) that runs it, which
    settles with the same result or exception.

    Usage:
        next_ = bind_action(lambda: setattr(view, "count", 1), scheduler)
        next_()   # subscribers have been notified by now
    """
    if tasks is None:
        tasks = set()

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            result = fn(*args, **kwargs)
            if inspect.iscoroutine(result):
                result = _start(result, scheduler, tasks)
            elif asyncio.isfuture(result) and not result.done():
                result.add_done_callback(lambda _: scheduler.flush())
        except BaseException:
            _flush_after_error(scheduler)
            raise
        scheduler.flush()
        return result

    return wrapper
