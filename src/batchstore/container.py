"""Containers — a value, the actions allowed to change it, and subscribe().

    counter = store(0).actions(lambda s: {
        "up": lambda: setattr(s, "value", s.value + 1),
    })
    counter.subscribe(print)   # prints 0
    counter.up()               # prints 1

Actions change the value with ordinary Python: assign ``s.value`` for
wholesale replacement, or mutate ``s.value`` in place when it is a list,
dict or object. There is no set() or update() on the container itself.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Callable, Generic, TypeVar

from batchstore._scheduler import FlushScheduler
from batchstore.action import bind_action
from batchstore.tracked import track, unwrap
from batchstore.writable import Writable

T = TypeVar("T")


class ValueAccessor(Generic[T]):
    """What an action builder receives: a live ``value`` property.

    Reading ``value`` gives the tracked view (or the raw immutable value).
    Assigning it replaces the value and rebuilds the view, so the new
    object is tracked from the very next access.
    """

    __slots__ = ("_value", "_view", "_scheduler")

    def __init__(self, value: T, writable: Writable[T]) -> None:
        self._scheduler = FlushScheduler(lambda: writable.set(self._value))
        self._value = unwrap(value)
        self._view = track(self._value, self._scheduler.report)

    @property
    def value(self) -> T:
        return self._view

    @value.setter
    def value(self, value: T) -> None:
        self._scheduler.report()
        self._value = unwrap(value)
        self._view = track(self._value, self._scheduler.report)

    def __repr__(self) -> str:
        return f"ValueAccessor({self._value!r})"


class Container:
    """Public face of a store: ``subscribe`` plus the bound actions.

    Everything lives in the instance dict, so ``vars(container)`` lists
    exactly what a caller may use.
    """

    def __init__(self, subscribe: Callable, actions: Mapping[str, Callable]) -> None:
        self.__dict__["subscribe"] = subscribe
        self.__dict__.update(actions)

    def __repr__(self) -> str:
        names = ", ".join(k for k in vars(self) if k != "subscribe")
        return f"Container(actions=[{names}])"


def _check_actions(actions: object) -> Mapping[str, Callable]:
    if not isinstance(actions, Mapping):
        raise TypeError(
            f"Action builder must return a mapping of names to callables, "
            f"got {type(actions).__name__}"
        )
    for name, fn in actions.items():
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError(f"Action name {name!r} is not a valid identifier")
        if name == "subscribe":
            raise ValueError("'subscribe' is reserved and cannot be an action")
        if not callable(fn):
            raise TypeError(f"Action {name!r} is not callable")
    return actions


class Builder(Generic[T]):
    """Holds the initial value until actions() turns it into a Container."""

    __slots__ = ("_initial",)

    def __init__(self, initial: T) -> None:
        self._initial = initial

    def actions(self, build: Callable[[ValueAccessor[T]], Mapping[str, Callable]]) -> Container:
        """Call build once with the value accessor and bind what it returns.

        Anything build keeps in its closure (helpers, caches, counters)
        stays private. Only the returned names become actions. Works as a
        decorator too:

            @store([]).actions
            def todos(s):
                def add(item):
                    s.value.append(item)
                return {"add": add}
        """
        writable: Writable[T] = Writable(unwrap(self._initial))
        accessor = ValueAccessor(self._initial, writable)
        actions = _check_actions(build(accessor))
        tasks: set[asyncio.Task] = set()
        bound = {
            name: bind_action(fn, accessor._scheduler, tasks)
            for name, fn in actions.items()
        }
        return Container(writable.subscribe, bound)


def store(initial: T) -> Builder[T]:
    """Start a container holding initial. Finish it with .actions(...)."""
    return Builder(initial)
