import pytest

from linkage_sketch.core.geometry import Point
from linkage_sketch.core.validation import ValidationSpec, point_guard


class _State:
    def __init__(self, linkage):
        self.linkage = linkage


def _record(calls):
    def handler(state, arg):
        calls.append(arg)
        return "next"

    return handler


def test_canvas_candidate_rejected_within_tolerance(linkage):
    calls = []
    guard = point_guard([Point(10.0, 10.0)], tolerance=1.0)
    guarded = guard("on_canvas_up", _record(calls))
    state = _State(linkage)
    assert guarded(state, Point(10.0, 10.0)) is None
    assert guarded(state, Point(10.5, 10.5)) is None
    assert guarded(state, Point(11.0, 10.0)) is None
    assert guarded(state, Point(12.0, 10.0)) == "next"
    assert calls == [Point(12.0, 10.0)]


def test_point_candidate_rejected_by_id_or_position(linkage):
    calls = []
    guard = point_guard([Point(0.0, 0.0)], ids=["g1"])
    guarded = guard("on_any_point_up", _record(calls))
    state = _State(linkage)
    assert guarded(state, "g1") is None
    linkage.positions["p9"] = Point(0.2, 0.0)
    assert guarded(state, "p9") is None
    assert guarded(state, "p7") == "next"
    assert calls == ["p7"]


def test_references_captured_at_build_time(linkage):
    refs = [Point(0.0, 0.0)]
    guarded = point_guard(refs)("on_canvas_up", _record([]))
    refs.append(Point(5.0, 5.0))
    assert guarded(_State(linkage), Point(5.0, 5.0)) == "next"


def test_unknown_operation_rejected():
    with pytest.raises(ValueError):
        point_guard([Point(0.0, 0.0)])("on_key_up", lambda state, key: None)


def test_guard_keeps_handler_name():
    def _my_handler(state, arg):
        return None

    assert point_guard([])("on_canvas_up", _my_handler).__name__ == "_my_handler"


def test_validation_spec_wraps_only_named_operations(linkage):
    calls = []
    spec = ValidationSpec((Point(0.0, 0.0),), ("g1",), ("on_canvas_up", "on_any_point_up"), 1.0)
    wrapped = spec.wrap({"on_canvas_up": _record(calls)})
    assert set(wrapped) == {"on_canvas_up"}
    assert wrapped["on_canvas_up"](_State(linkage), Point(0.0, 0.5)) is None
    assert wrapped["on_canvas_up"](_State(linkage), Point(30.0, 0.0)) == "next"


def test_zero_tolerance_rejects_exact_match_only(linkage):
    guarded = point_guard([Point(1.0, 1.0)], tolerance=0.0)("on_canvas_up", _record([]))
    assert guarded(_State(linkage), Point(1.0, 1.0)) is None
    assert guarded(_State(linkage), Point(1.0, 1.001)) == "next"
