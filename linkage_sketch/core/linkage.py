# -*- coding: utf-8 -*-
"""Linkage model: topology, positions and structural edits.

The model is a plain dict-of-dicts topology (``LinkageSpec``) plus the solved
positions of every point. Editing operations named ``try_*`` validate the
edit by re-solving the pose and roll back when the pose cannot be solved,
returning ``False``. Construction operations (``add_*``) always succeed.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .geometry import Point, as_point, clamp_angle_rad, distance_to_segment, euclid, translate
from .scipy_kinematics import SciPyKinematicSolver

# One unit of rotary speed, in radians per frame.
BASE_ANGULAR_STEP = 0.02
# Samples per full turn of the fastest rotary when computing a path.
PATH_SAMPLES = 72
MIN_BAR_LENGTH = 1.0


@dataclass
class LinkageSpec:
    """Static topology.

    points:        {id: {neighbor_id: {"len": L}}}, symmetric
    ground_points: {id: Point}
    rotaries:      {base_id: extender_id}
    extenders:     {extender_id: {"base", "ref", "angle", "len", "speed"}}
    """

    points: Dict[str, Dict[str, Dict[str, float]]] = field(default_factory=dict)
    ground_points: Dict[str, Point] = field(default_factory=dict)
    rotaries: Dict[str, str] = field(default_factory=dict)
    extenders: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def copy(self) -> "LinkageSpec":
        return copy.deepcopy(self)

    def add_bar(self, i: str, j: str, length: float):
        self.points.setdefault(i, {})[j] = {"len": float(length)}
        self.points.setdefault(j, {})[i] = {"len": float(length)}

    def remove_point(self, pid: str):
        for nbr in list(self.points.get(pid, {})):
            self.points.get(nbr, {}).pop(pid, None)
        self.points.pop(pid, None)
        self.ground_points.pop(pid, None)
        self.extenders.pop(pid, None)
        for base, eid in list(self.rotaries.items()):
            if base == pid or eid == pid:
                self.rotaries.pop(base, None)

    def is_free(self, pid: str) -> bool:
        return pid in self.points and pid not in self.ground_points and pid not in self.extenders

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": copy.deepcopy(self.points),
            "ground_points": {k: {"x": p.x, "y": p.y} for k, p in self.ground_points.items()},
            "rotaries": dict(self.rotaries),
            "extenders": copy.deepcopy(self.extenders),
        }


class Linkage:
    def __init__(
        self,
        spec: Optional[LinkageSpec] = None,
        positions: Optional[Dict[str, Point]] = None,
        speed_scale: float = 1.0,
    ):
        self.spec = spec if spec is not None else LinkageSpec()
        self.positions: Dict[str, Point] = dict(positions or {})
        self.speed_scale = float(speed_scale)
        self._next_id = 0
        for pid in self.spec.points:
            if pid.startswith("p") and pid[1:].isdigit():
                self._next_id = max(self._next_id, int(pid[1:]) + 1)
        if spec is not None and positions is None:
            self.positions.update(self.spec.ground_points)
            self.calculate_positions()

    def copy(self) -> "Linkage":
        return Linkage(self.spec.copy(), dict(self.positions), self.speed_scale)

    def _new_id(self) -> str:
        pid = f"p{self._next_id}"
        self._next_id += 1
        return pid

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_point(self, pid: str) -> Point:
        return self.positions[pid]

    def is_ground(self, pid: str) -> bool:
        return pid in self.spec.ground_points

    def is_rotary(self, pid: str) -> bool:
        return pid in self.spec.rotaries

    def rotary_triad(self, base_id: str) -> Tuple[str, str, str]:
        """(extender, base, reference) ids of a rotary input."""
        eid = self.spec.rotaries[base_id]
        return eid, base_id, self.spec.extenders[eid]["ref"]

    def point_at(self, p: Point, radius: float) -> Optional[str]:
        best: Optional[str] = None
        best_d = radius
        for pid, q in self.positions.items():
            d = euclid(p, q)
            if d <= best_d:
                best, best_d = pid, d
        return best

    def segment_at(self, p: Point, radius: float) -> Optional[Tuple[str, str]]:
        best: Optional[Tuple[str, str]] = None
        best_d = radius
        for i, nbrs in self.spec.points.items():
            for j in nbrs:
                if i >= j or i not in self.positions or j not in self.positions:
                    continue
                d = distance_to_segment(p, self.positions[i], self.positions[j])
                if d <= best_d:
                    best, best_d = (i, j), d
        return best

    def get_path(self, pid: str, samples: int = PATH_SAMPLES) -> Optional[List[Point]]:
        """Trajectory of ``pid`` over one drive cycle, or None when it has none."""
        if pid not in self.positions or self.is_ground(pid) or not self.spec.rotaries:
            return None
        speeds = {eid: int(self.spec.extenders[eid]["speed"]) for eid in self.spec.rotaries.values()}
        g = 0
        for s in speeds.values():
            g = math.gcd(g, abs(s))
        if g == 0:
            return None
        fastest = max(abs(s) for s in speeds.values()) // g
        n = max(1, int(samples)) * fastest
        sim = self.copy()
        path: List[Point] = []
        for _ in range(n):
            for eid, s in speeds.items():
                ext = sim.spec.extenders[eid]
                ext["angle"] = clamp_angle_rad(ext["angle"] + (s / g) * 2 * math.pi / n)
            if not sim.calculate_positions():
                return None
            path.append(sim.positions[pid])
        return path

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------
    def calculate_positions(self) -> bool:
        ok, positions, _err = SciPyKinematicSolver.solve(self.spec, self.positions)
        if ok:
            self.positions = positions
        return ok

    def _advance_rotaries(self, sign: float = 1.0):
        for eid in self.spec.rotaries.values():
            ext = self.spec.extenders[eid]
            step = ext["speed"] * BASE_ANGULAR_STEP * self.speed_scale * sign
            ext["angle"] = clamp_angle_rad(ext["angle"] + step)

    def try_rotating_linkage_input(self) -> bool:
        """Advance every rotary by one frame; bounce all rotaries off a dead point."""
        if not self.spec.rotaries:
            return False
        self._advance_rotaries()
        if self.calculate_positions():
            return True
        self._advance_rotaries(-1.0)
        self.reverse_rotary()
        return False

    def scale_speed(self, factor: float):
        self.speed_scale *= float(factor)

    def change_speed(self, delta: int, base_id: str):
        ext = self.spec.extenders[self.spec.rotaries[base_id]]
        speed = int(ext["speed"]) + int(delta)
        if speed == 0:
            speed += int(delta)
        ext["speed"] = speed

    def reverse_rotary(self, base_id: Optional[str] = None):
        ids = [base_id] if base_id is not None else list(self.spec.rotaries)
        for bid in ids:
            ext = self.spec.extenders[self.spec.rotaries[bid]]
            ext["speed"] = -int(ext["speed"])

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def _commit_or_rollback(self, spec_before: LinkageSpec, positions_before: Dict[str, Point]) -> bool:
        if self.calculate_positions():
            return True
        self.spec = spec_before
        self.positions = positions_before
        return False

    def try_changing_bar_length(self, delta: float, p0id: str, p1id: str) -> bool:
        bar = self.spec.points.get(p0id, {}).get(p1id)
        if bar is None:
            return False
        length = float(bar["len"]) + float(delta)
        if length < MIN_BAR_LENGTH:
            return False
        before, pos_before = self.spec.copy(), dict(self.positions)
        self.spec.add_bar(p0id, p1id, length)
        for a, b in ((p0id, p1id), (p1id, p0id)):
            ext = self.spec.extenders.get(a)
            if ext is not None and ext["base"] == b:
                ext["len"] = length
        return self._commit_or_rollback(before, pos_before)

    def try_moving_ground_points(self, moves: Sequence[Tuple[Point, str]]) -> bool:
        before, pos_before = self.spec.copy(), dict(self.positions)
        for point, pid in moves:
            if pid not in self.spec.ground_points:
                continue
            self.spec.ground_points[pid] = as_point(point)
            self.positions[pid] = as_point(point)
        return self._commit_or_rollback(before, pos_before)

    def move_not_ground_point(self, point: Point, pid: str) -> bool:
        """Move a free point by re-deriving the lengths of its bars."""
        if pid not in self.positions or self.is_ground(pid):
            return False
        point = as_point(point)
        before, pos_before = self.spec.copy(), dict(self.positions)
        ext = self.spec.extenders.get(pid)
        if ext is not None:
            base = self.spec.ground_points[ext["base"]]
            ref = self.spec.ground_points[ext["ref"]]
            length = euclid(base, point)
            if length < MIN_BAR_LENGTH:
                return False
            a_ref = math.atan2(ref.y - base.y, ref.x - base.x)
            a_pt = math.atan2(point.y - base.y, point.x - base.x)
            ext["angle"] = clamp_angle_rad(a_pt - a_ref)
            ext["len"] = length
        self.positions[pid] = point
        for nbr in self.spec.points.get(pid, {}):
            self.spec.add_bar(pid, nbr, euclid(point, self.positions[nbr]))
        return self._commit_or_rollback(before, pos_before)

    def add_ground_segment(self, ground_point: Point, point: Point, connected_id: str) -> Tuple[str, str]:
        """Pin a new ground point, hang a new point off it and bar it to ``connected_id``."""
        ground_point, point = as_point(ground_point), as_point(point)
        gid = self._new_id()
        pid = self._new_id()
        self.spec.ground_points[gid] = ground_point
        self.positions[gid] = ground_point
        self.positions[pid] = point
        self.spec.add_bar(gid, pid, euclid(ground_point, point))
        self.spec.add_bar(pid, connected_id, euclid(point, self.positions[connected_id]))
        return gid, pid

    def add_triangle(self, p0id: str, p1id: str, point: Point) -> str:
        """Add a point held rigidly by bars to two existing points."""
        point = as_point(point)
        pid = self._new_id()
        self.positions[pid] = point
        self.spec.add_bar(pid, p0id, euclid(point, self.positions[p0id]))
        self.spec.add_bar(pid, p1id, euclid(point, self.positions[p1id]))
        return pid

    def add_rotary_input(
        self,
        point: Point,
        ref_offset: Tuple[float, float] = (10.0, 0.0),
        crank_offset: Tuple[float, float] = (30.0, 40.0),
    ) -> str:
        """Add a driven crank centred at ``point``; returns the rotary (base) id."""
        base = as_point(point)
        ref = translate(base, *ref_offset)
        crank = translate(base, *crank_offset)
        bid, rid, eid = self._new_id(), self._new_id(), self._new_id()
        self.spec.ground_points[bid] = base
        self.spec.ground_points[rid] = ref
        self.spec.points.setdefault(rid, {})
        a_ref = math.atan2(ref.y - base.y, ref.x - base.x)
        a_crank = math.atan2(crank.y - base.y, crank.x - base.x)
        self.spec.extenders[eid] = {
            "base": bid,
            "ref": rid,
            "angle": clamp_angle_rad(a_crank - a_ref),
            "len": euclid(base, crank),
            "speed": 1,
        }
        self.spec.rotaries[bid] = eid
        self.spec.add_bar(bid, eid, euclid(base, crank))
        self.positions.update({bid: base, rid: ref, eid: crank})
        return bid

    def try_removing_point(self, pid: str) -> bool:
        """Remove a point plus whatever it leaves under-constrained.

        A rotary is removed as a whole (base, reference and crank point). A
        reference ground point of a rotary cannot be removed on its own.
        """
        if pid not in self.positions:
            return False
        if any(ext["ref"] == pid for ext in self.spec.extenders.values()):
            return False
        doomed = {pid}
        if pid in self.spec.rotaries:
            doomed.update(self.rotary_triad(pid))
        elif pid in self.spec.extenders:
            doomed.update(self.rotary_triad(self.spec.extenders[pid]["base"]))

        trial = self.spec.copy()
        for d in doomed:
            trial.remove_point(d)
        changed = True
        while changed:
            changed = False
            refs = {ext["ref"] for ext in trial.extenders.values()}
            for q in list(trial.points):
                dangling = q in trial.ground_points and not trial.points[q] and q not in refs
                if dangling or (trial.is_free(q) and len(trial.points[q]) < 2):
                    trial.remove_point(q)
                    doomed.add(q)
                    changed = True
        ok, positions, _err = SciPyKinematicSolver.solve(
            trial, {k: v for k, v in self.positions.items() if k not in doomed}
        )
        if not ok:
            return False
        self.spec = trial
        self.positions = positions
        return True


def demo_linkage() -> Linkage:
    """A crank-rocker four-bar with a coupler point, used as the startup design."""
    lk = Linkage()
    crank_base = lk.add_rotary_input(Point(200.0, 300.0))
    crank_tip = lk.spec.rotaries[crank_base]
    _gid, rocker_tip = lk.add_ground_segment(Point(320.0, 300.0), Point(260.0, 200.0), crank_tip)
    lk.add_triangle(crank_tip, rocker_tip, Point(300.0, 150.0))
    lk.calculate_positions()
    return lk
