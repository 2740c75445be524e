"""Tests for TrackedView, track() and unwrap()."""

import copy
import enum
import json
import operator
from dataclasses import dataclass
from decimal import Decimal
from types import SimpleNamespace

import pytest

from batchstore import TrackedView, is_trackable, track, unwrap


class Color(enum.Enum):
    RED = 1


@dataclass
class Counter:
    count: int = 0


class Box:
    """A mutable number-like object with the full operator set."""

    def __init__(self, v):
        self.v = v

    def __eq__(self, other):
        return isinstance(other, Box) and other.v == self.v

    def __repr__(self):
        return f"Box({self.v!r})"


_BINARY = {
    "add": operator.add,
    "sub": operator.sub,
    "mul": operator.mul,
    "matmul": operator.mul,
    "truediv": operator.truediv,
    "floordiv": operator.floordiv,
    "mod": operator.mod,
    "pow": operator.pow,
    "lshift": operator.lshift,
    "rshift": operator.rshift,
    "and": operator.and_,
    "or": operator.or_,
    "xor": operator.xor,
}

for _name, _op in _BINARY.items():
    setattr(Box, f"__{_name}__", lambda self, o, _op=_op: Box(_op(self.v, o)))
    setattr(Box, f"__r{_name}__", lambda self, o, _op=_op: Box(_op(o, self.v)))
for _name in ("neg", "pos", "abs", "invert"):
    _op = abs if _name == "abs" else getattr(operator, _name)
    setattr(Box, f"__{_name}__", lambda self, _op=_op: Box(_op(self.v)))


def _tracked(value):
    hits = []
    return track(value, lambda: hits.append(1)), hits


class TestTrack:
    @pytest.mark.parametrize(
        "value",
        [None, True, 3, 2.5, 1j, Decimal("1.5"), "s", b"b", (1, 2), frozenset({1}), range(3), Color.RED],
    )
    def test_immutables_are_not_wrapped(self, value):
        assert not is_trackable(value)
        assert track(value, lambda: None) is value

    @pytest.mark.parametrize("value", [[], {}, set(), Counter(), SimpleNamespace()])
    def test_mutables_are_wrapped(self, value):
        view = track(value, lambda: None)
        assert type(view) is TrackedView
        assert unwrap(view) is value

    def test_unwrap_passes_plain_values_through(self):
        raw = {"a": 1}
        assert unwrap(raw) is raw
        assert unwrap(7) == 7

    def test_track_rewraps_the_raw_target(self):
        raw = [1]
        first, _ = _tracked(raw)
        second = track(first, lambda: None)
        assert unwrap(second) is raw

    def test_isinstance_sees_real_type(self):
        view, _ = _tracked({"a": 1})
        assert isinstance(view, dict)
        assert view.__class__ is dict


class TestReports:
    def test_item_read_reports_and_returns_live_value(self):
        inner = []
        view, hits = _tracked({"items": inner})
        assert view["items"] is inner
        assert hits == [1]

    def test_item_increment_reports_read_and_write(self):
        raw = {"count": 0}
        view, hits = _tracked(raw)
        view["count"] += 1
        assert raw == {"count": 1}
        assert len(hits) == 2

    def test_attribute_increment(self):
        raw = Counter()
        view, hits = _tracked(raw)
        view.count += 1
        assert raw.count == 1
        assert len(hits) == 2

    def test_method_call_mutates_target(self):
        raw = []
        view, hits = _tracked(raw)
        view.append(3)
        assert raw == [3]
        assert hits == [1]

    def test_nested_mutation_after_read(self):
        raw = {"items": []}
        view, hits = _tracked(raw)
        view["items"].append("x")
        assert raw == {"items": ["x"]}
        assert hits == [1]

    def test_delete_attribute_and_item(self):
        obj = SimpleNamespace(a=1)
        view, hits = _tracked(obj)
        del view.a
        assert not hasattr(obj, "a")

        d = {"k": 1}
        dview, dhits = _tracked(d)
        del dview["k"]
        assert d == {}
        assert hits == [1]
        assert dhits == [1]

    def test_missing_attribute_raises(self):
        view, hits = _tracked(SimpleNamespace())
        with pytest.raises(AttributeError):
            view.nope
        assert hits == [1]

    @pytest.mark.parametrize(
        "op, expected",
        [
            (len, 3),
            (list, [1, 2, 3]),
            (lambda v: 2 in v, True),
            (bool, True),
            (lambda v: list(reversed(v)), [3, 2, 1]),
        ],
    )
    def test_container_protocol_reports(self, op, expected):
        view, hits = _tracked([1, 2, 3])
        assert op(view) == expected
        assert hits

    def test_equality_unwraps_other_views(self):
        view, _ = _tracked({"a": 1})
        other, _ = _tracked({"a": 1})
        assert view == {"a": 1}
        assert view == other
        assert view != {"a": 2}

    def test_hash_forwards(self):
        raw = object.__new__(type("Plain", (), {}))
        view, _ = _tracked(raw)
        assert hash(view) == hash(raw)

    def test_call_forwards(self):
        view, hits = _tracked(lambda x: x * 2)
        assert view(3) == 6
        assert hits == [1]

    def test_setattr_stores_raw_objects(self):
        raw = SimpleNamespace(child=None)
        view, _ = _tracked(raw)
        child = {"x": 1}
        view.child = track(child, lambda: None)
        assert raw.child is child


class TestOperators:
    def test_inplace_list_add_keeps_view(self):
        raw = [1]
        view, hits = _tracked(raw)
        view += [2]
        assert type(view) is TrackedView
        assert raw == [1, 2]
        assert hits == [1]

    def test_inplace_set_union(self):
        raw = {1}
        view, _ = _tracked(raw)
        view |= {2}
        assert raw == {1, 2}

    def test_inplace_falls_back_to_new_object(self):
        class Vec:
            def __init__(self, x):
                self.x = x

            def __add__(self, other):
                return Vec(self.x + other)

        raw = Vec(1)
        view, _ = _tracked(raw)
        view += 2
        assert type(view) is Vec
        assert view.x == 3
        assert raw.x == 1

    def test_binary_operators_return_raw_results(self):
        view, _ = _tracked([1])
        result = view + [2]
        assert result == [1, 2]
        assert type(result) is list

    def test_dict_merge(self):
        view, _ = _tracked({"a": 1})
        assert view | {"b": 2} == {"a": 1, "b": 2}


class TestCopyAndDisplay:
    def test_repr_and_str_do_not_report(self):
        raw = {"a": 1}
        view, hits = _tracked(raw)
        assert repr(view) == repr(raw)
        assert str(view) == str(raw)
        assert hits == []

    def test_copy_returns_raw_copy(self):
        raw = {"a": [1]}
        view, _ = _tracked(raw)
        shallow = copy.copy(view)
        deep = copy.deepcopy(view)
        assert type(shallow) is dict and type(deep) is dict
        assert shallow["a"] is raw["a"]
        assert deep == raw and deep["a"] is not raw["a"]


_OPERATORS = [
    operator.add,
    operator.sub,
    operator.mul,
    operator.matmul,
    operator.truediv,
    operator.floordiv,
    operator.mod,
    operator.pow,
    operator.lshift,
    operator.rshift,
    operator.and_,
    operator.or_,
    operator.xor,
]

_INPLACE = [
    (operator.iadd, operator.add),
    (operator.isub, operator.sub),
    (operator.imul, operator.mul),
    (operator.imatmul, operator.matmul),
    (operator.itruediv, operator.truediv),
    (operator.ifloordiv, operator.floordiv),
    (operator.imod, operator.mod),
    (operator.ipow, operator.pow),
    (operator.ilshift, operator.lshift),
    (operator.irshift, operator.rshift),
    (operator.iand, operator.and_),
    (operator.ior, operator.or_),
    (operator.ixor, operator.xor),
]


class TestFullOperatorSet:
    @pytest.mark.parametrize("op", _OPERATORS, ids=lambda op: op.__name__)
    def test_view_on_the_left(self, op):
        view, hits = _tracked(Box(6))
        assert op(view, 2) == op(Box(6), 2)
        assert hits == [1]

    @pytest.mark.parametrize("op", _OPERATORS, ids=lambda op: op.__name__)
    def test_view_on_the_right(self, op):
        view, hits = _tracked(Box(6))
        assert op(2, view) == op(2, Box(6))
        assert hits == [1]

    @pytest.mark.parametrize("iop, op", _INPLACE, ids=lambda op: op.__name__)
    def test_inplace_without_inplace_support(self, iop, op):
        view, _ = _tracked(Box(6))
        assert iop(view, 2) == op(Box(6), 2)

    @pytest.mark.parametrize(
        "op", [operator.neg, operator.pos, abs, operator.invert], ids=lambda op: op.__name__
    )
    def test_unary(self, op):
        view, hits = _tracked(Box(6))
        assert op(view) == op(Box(6))
        assert hits == [1]

    def test_list_concatenation_on_the_right(self):
        view, hits = _tracked([1])
        assert [0] + view == [0, 1]
        assert hits == [1]

    def test_three_argument_pow(self):
        class Modular(Box):
            def __pow__(self, exp, mod=None):
                return Box(pow(self.v, exp, mod))

        view, _ = _tracked(Modular(3))
        assert pow(view, 2, 5) == Box(4)


class TestExactTypeChecks:
    def test_json_needs_unwrap(self):
        view, _ = _tracked({"a": [1]})
        with pytest.raises(TypeError):
            json.dumps(view)
        assert json.dumps(unwrap(view)) == '{"a": [1]}'
