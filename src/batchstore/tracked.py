"""Tracked views — transparent wrappers that report every access.

A TrackedView stands in for a mutable value inside actions. Every attribute
or item access, every container-protocol call and every operator is forwarded
to the real object after calling the view's report hook.

Reads are reported too. A read can hand out a nested mutable object or a
bound method (``view.append`` looks exactly like ``view.count``), so the view
cannot tell a harmless read from the first half of a mutation.

Immutable values are never wrapped — there is nothing to intercept, and
replacing them goes through the container's value accessor instead.

The view fakes ``__class__`` so isinstance() checks pass, but code that
checks the exact C-level type still sees a TrackedView. ``json.dumps``,
``pickle`` and C extensions are the usual cases. Hand them ``unwrap(view)``.
"""

from __future__ import annotations

import copy
import enum
import numbers
import operator
from typing import Any, Callable

Report = Callable[[], None]

_IMMUTABLE = (
    type(None),
    bool,
    numbers.Number,
    str,
    bytes,
    tuple,
    frozenset,
    range,
    enum.Enum,
)


def is_trackable(value: object) -> bool:
    """True if value can be mutated in place and therefore needs a view."""
    return not isinstance(value, _IMMUTABLE)


def unwrap(value):
    """Return the real object behind a TrackedView, or value itself."""
    if type(value) is TrackedView:
        return object.__getattribute__(value, "_tv_target")
    return value


def track(value, report: Report):
    """Wrap value in a TrackedView, unless it is immutable."""
    value = unwrap(value)
    if not is_trackable(value):
        return value
    return TrackedView(value, report)


def _forward(op: Callable[..., Any], *, reports: bool = True):
    """Build a dunder that applies op to the real target."""

    def method(self, *args):
        if reports:
            self._tv_report()
        return op(self._tv_target, *(unwrap(a) for a in args))

    method.__name__ = f"__{getattr(op, '__name__', 'op').strip('_')}__"
    return method


def _forward_inplace(op: Callable[[Any, Any], Any]):
    """Build an in-place operator. Mutating ops keep returning the view."""

    def method(self, other):
        self._tv_report()
        target = self._tv_target
        result = op(target, unwrap(other))
        return self if result is target else result

    method.__name__ = f"__{op.__name__.strip('_')}__"
    return method


def _forward_reflected(op: Callable[[Any, Any], Any]):
    """Build a reflected operator: the view is the right-hand operand."""

    def method(self, other):
        self._tv_report()
        return op(unwrap(other), self._tv_target)

    method.__name__ = f"__r{getattr(op, '__name__', 'op').strip('_')}__"
    return method


class TrackedView:
    """A proxy over a mutable value that reports each access before doing it.

    Usage:
        hits = []
        view = track({"count": 0}, lambda: hits.append(1))
        view["count"] += 1      # two reports: the read, then the write
        unwrap(view)            # {"count": 1}
    """

    __slots__ = ("_tv_target", "_tv_report")

    def __init__(self, target: object, report: Report) -> None:
        object.__setattr__(self, "_tv_target", target)
        object.__setattr__(self, "_tv_report", report)

    # --- Attributes ---

    def __getattr__(self, name: str):
        # Only reached when normal lookup fails, i.e. for the target's names.
        if name.startswith("_tv_"):
            raise AttributeError(name)
        self._tv_report()
        return getattr(self._tv_target, name)

    def __setattr__(self, name: str, value: object) -> None:
        self._tv_report()
        setattr(self._tv_target, name, unwrap(value))

    def __delattr__(self, name: str) -> None:
        self._tv_report()
        delattr(self._tv_target, name)

    @property
    def __class__(self):
        # Lets isinstance(view, list) and friends see the real type.
        return type(self._tv_target)

    # --- Container protocol ---

    __getitem__ = _forward(operator.getitem)
    __setitem__ = _forward(operator.setitem)
    __delitem__ = _forward(operator.delitem)
    __contains__ = _forward(operator.contains)
    __len__ = _forward(len)
    __iter__ = _forward(iter)
    __reversed__ = _forward(reversed)
    __bool__ = _forward(bool)
    __hash__ = _forward(hash)

    def __call__(self, *args, **kwargs):
        self._tv_report()
        return self._tv_target(*args, **kwargs)

    # --- Comparison and arithmetic ---

    __eq__ = _forward(operator.eq)
    __ne__ = _forward(operator.ne)
    __lt__ = _forward(operator.lt)
    __le__ = _forward(operator.le)
    __gt__ = _forward(operator.gt)
    __ge__ = _forward(operator.ge)
    __add__ = _forward(operator.add)
    __sub__ = _forward(operator.sub)
    __mul__ = _forward(operator.mul)
    __matmul__ = _forward(operator.matmul)
    __truediv__ = _forward(operator.truediv)
    __floordiv__ = _forward(operator.floordiv)
    __mod__ = _forward(operator.mod)
    __pow__ = _forward(pow)
    __lshift__ = _forward(operator.lshift)
    __rshift__ = _forward(operator.rshift)
    __or__ = _forward(operator.or_)
    __and__ = _forward(operator.and_)
    __xor__ = _forward(operator.xor)

    __radd__ = _forward_reflected(operator.add)
    __rsub__ = _forward_reflected(operator.sub)
    __rmul__ = _forward_reflected(operator.mul)
    __rmatmul__ = _forward_reflected(operator.matmul)
    __rtruediv__ = _forward_reflected(operator.truediv)
    __rfloordiv__ = _forward_reflected(operator.floordiv)
    __rmod__ = _forward_reflected(operator.mod)
    __rpow__ = _forward_reflected(pow)
    __rlshift__ = _forward_reflected(operator.lshift)
    __rrshift__ = _forward_reflected(operator.rshift)
    __ror__ = _forward_reflected(operator.or_)
    __rand__ = _forward_reflected(operator.and_)
    __rxor__ = _forward_reflected(operator.xor)

    __iadd__ = _forward_inplace(operator.iadd)
    __isub__ = _forward_inplace(operator.isub)
    __imul__ = _forward_inplace(operator.imul)
    __imatmul__ = _forward_inplace(operator.imatmul)
    __itruediv__ = _forward_inplace(operator.itruediv)
    __ifloordiv__ = _forward_inplace(operator.ifloordiv)
    __imod__ = _forward_inplace(operator.imod)
    __ipow__ = _forward_inplace(operator.ipow)
    __ilshift__ = _forward_inplace(operator.ilshift)
    __irshift__ = _forward_inplace(operator.irshift)
    __ior__ = _forward_inplace(operator.ior)
    __iand__ = _forward_inplace(operator.iand)
    __ixor__ = _forward_inplace(operator.ixor)

    __neg__ = _forward(operator.neg)
    __pos__ = _forward(operator.pos)
    __abs__ = _forward(abs)
    __invert__ = _forward(operator.invert)

    # --- Copying and display (raw values out, no report for display) ---

    def __copy__(self):
        self._tv_report()
        return copy.copy(self._tv_target)

    def __deepcopy__(self, memo):
        self._tv_report()
        return copy.deepcopy(self._tv_target, memo)

    __repr__ = _forward(repr, reports=False)
    __str__ = _forward(str, reports=False)
