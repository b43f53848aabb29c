from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest

from linkage_sketch.core.geometry import Point, as_point, distance_to_segment, euclid
from linkage_sketch.core.linkage import LinkageSpec
from linkage_sketch.core.settings import EditorSettings
from linkage_sketch.core.states import StateEnv


class FakeLinkage:
    """Records model calls; positions and outcomes are set by the test."""

    def __init__(self, positions: Optional[Dict[str, Point]] = None):
        self.positions: Dict[str, Point] = dict(positions or {})
        self.spec = LinkageSpec()
        self.calls: List[tuple] = []
        self.remove_ok = True
        self.paths: Dict[str, List[Point]] = {}
        self.speed_scale = 1.0

    def get_point(self, pid):
        return self.positions[pid]

    def is_rotary(self, pid):
        return pid in self.spec.rotaries

    def is_ground(self, pid):
        return pid in self.spec.ground_points

    def rotary_triad(self, base_id):
        eid = self.spec.rotaries[base_id]
        return eid, base_id, self.spec.extenders[eid]["ref"]

    def point_at(self, p, radius):
        p = as_point(p)
        hits = [(euclid(p, q), pid) for pid, q in self.positions.items() if euclid(p, q) <= radius]
        return min(hits)[1] if hits else None

    def segment_at(self, p, radius):
        p = as_point(p)
        for i, nbrs in self.spec.points.items():
            for j in nbrs:
                if i < j and distance_to_segment(p, self.positions[i], self.positions[j]) <= radius:
                    return i, j
        return None

    def get_path(self, pid):
        return self.paths.get(pid)

    def calculate_positions(self):
        self.calls.append(("calculate_positions",))
        return True

    def try_rotating_linkage_input(self):
        self.calls.append(("rotate",))
        return True

    def scale_speed(self, factor):
        self.calls.append(("scale_speed", factor))
        self.speed_scale *= factor

    def change_speed(self, delta, pid):
        self.calls.append(("change_speed", delta, pid))

    def reverse_rotary(self, pid=None):
        self.calls.append(("reverse_rotary", pid))

    def try_changing_bar_length(self, delta, p0id, p1id):
        self.calls.append(("bar_length", delta, p0id, p1id))
        return True

    def try_moving_ground_points(self, moves):
        self.calls.append(("move_ground", [(as_point(p), pid) for p, pid in moves]))
        for p, pid in moves:
            self.spec.ground_points[pid] = as_point(p)
            self.positions[pid] = as_point(p)
        return True

    def move_not_ground_point(self, point, pid):
        self.calls.append(("move_point", as_point(point), pid))
        return True

    def add_ground_segment(self, ground_point, point, connected_id):
        self.calls.append(("ground_segment", as_point(ground_point), as_point(point), connected_id))
        return "gx", "px"

    def add_triangle(self, p0id, p1id, point):
        self.calls.append(("triangle", p0id, p1id, as_point(point)))
        return "tx"

    def add_rotary_input(self, point, ref_offset=(10.0, 0.0), crank_offset=(30.0, 40.0)):
        self.calls.append(("rotary", as_point(point)))
        return "rx"

    def try_removing_point(self, pid):
        self.calls.append(("remove", pid))
        return self.remove_ok

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]


class FakeRenderer:
    def __init__(self):
        self.calls: List[tuple] = []

    def draw_linkage(self, positions, points, ground_points=None):
        self.calls.append(("linkage", dict(positions)))

    def draw_lines(self, points, options):
        self.calls.append(("lines", list(points), options))

    def draw_point(self, point, options):
        self.calls.append(("point", point, options))


class ManualScheduler:
    """Collects scheduled callbacks; the test decides when each one runs."""

    def __init__(self):
        self.pending: List[Callable[[], None]] = []

    def __call__(self, fn):
        self.pending.append(fn)

    def run_next(self) -> bool:
        if not self.pending:
            return False
        fn = self.pending.pop(0)
        fn()
        return True

    def run(self, n: int) -> int:
        ran = 0
        while ran < n and self.run_next():
            ran += 1
        return ran


@pytest.fixture
def linkage():
    lk = FakeLinkage({
        "g1": Point(0.0, 0.0),
        "p7": Point(50.0, 0.0),
        "p8": Point(0.0, 50.0),
        "r1": Point(100.0, 100.0),
        "r1ref": Point(110.0, 100.0),
        "r1ext": Point(130.0, 140.0),
    })
    lk.spec.ground_points.update({
        "g1": Point(0.0, 0.0),
        "r1": Point(100.0, 100.0),
        "r1ref": Point(110.0, 100.0),
    })
    lk.spec.rotaries["r1"] = "r1ext"
    lk.spec.extenders["r1ext"] = {"base": "r1", "ref": "r1ref", "angle": 0.9, "len": 50.0, "speed": 1}
    return lk


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def env(scheduler):
    return StateEnv(settings=EditorSettings(), schedule=scheduler)


@pytest.fixture
def renderer():
    return FakeRenderer()
