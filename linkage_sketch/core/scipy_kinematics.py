# -*- coding: utf-8 -*-
"""Pose solver for bar linkages, backed by scipy.optimize.least_squares.

Ground points are pinned and rotary crank tips are placed from their drive
angle; every remaining point is an unknown. One residual per bar touching an
unknown: ``|p_i - p_j| - L``.
"""

from __future__ import annotations

import math
from typing import Dict, List, Tuple, TYPE_CHECKING

import numpy as np

from .geometry import Point, extend_point

if TYPE_CHECKING:
    from .linkage import LinkageSpec

# Largest bar-length error (canvas units) still counted as a solved pose.
SOLVE_TOLERANCE = 1e-2


def _least_squares():
    try:
        from scipy.optimize import least_squares  # type: ignore
    except Exception as e:
        raise RuntimeError("The pose solver needs SciPy (pip install scipy).") from e
    return least_squares


def extender_positions(spec: "LinkageSpec") -> Dict[str, Point]:
    """Crank tip of every rotary at its current drive angle."""
    out: Dict[str, Point] = {}
    for eid, ext in spec.extenders.items():
        base = spec.ground_points[ext["base"]]
        ref = spec.ground_points[ext["ref"]]
        out[eid] = extend_point(base, ref, float(ext["angle"]), float(ext["len"]))
    return out


class _BarSystem:
    """Bars as index arrays into a stacked (fixed + unknown) coordinate table."""

    def __init__(self, spec: "LinkageSpec", fixed: Dict[str, Point]):
        self.unknown: List[str] = [pid for pid in spec.points if pid not in fixed]
        self.fixed_ids: List[str] = list(fixed)
        order = {pid: k for k, pid in enumerate(self.unknown + self.fixed_ids)}
        self.fixed_xy = np.array([[fixed[pid].x, fixed[pid].y] for pid in self.fixed_ids], dtype=float).reshape(-1, 2)

        n_unknown = len(self.unknown)
        rows: List[Tuple[int, int, float]] = []
        for i, nbrs in spec.points.items():
            for j, bar in nbrs.items():
                if i >= j or j not in order:
                    continue
                a, b = order[i], order[j]
                if a < n_unknown or b < n_unknown:
                    rows.append((a, b, float(bar["len"])))
        self.a = np.array([r[0] for r in rows], dtype=int)
        self.b = np.array([r[1] for r in rows], dtype=int)
        self.lengths = np.array([r[2] for r in rows], dtype=float)

    @property
    def empty(self) -> bool:
        return self.lengths.size == 0

    def table(self, x: np.ndarray) -> np.ndarray:
        return np.vstack([x.reshape(-1, 2), self.fixed_xy])

    def residuals(self, x: np.ndarray) -> np.ndarray:
        xy = self.table(x)
        d = xy[self.a] - xy[self.b]
        return np.hypot(d[:, 0], d[:, 1]) - self.lengths


class SciPyKinematicSolver:
    @staticmethod
    def solve(
        spec: "LinkageSpec",
        seed: Dict[str, Point],
        max_nfev: int = 200,
        ftol: float = 1e-10,
        xtol: float = 1e-10,
        gtol: float = 1e-10,
    ) -> Tuple[bool, Dict[str, Point], float]:
        """Solve the pose starting from ``seed``.

        Seeding with the previous frame keeps the solution on the same
        assembly branch. Returns ``(ok, positions, max_bar_error)``; an
        unknown point missing from ``seed`` fails immediately.
        """
        fixed: Dict[str, Point] = dict(spec.ground_points)
        fixed.update(extender_positions(spec))
        system = _BarSystem(spec, fixed)

        if any(pid not in seed for pid in system.unknown):
            return False, dict(seed), math.inf

        positions = dict(fixed)
        positions.update({pid: seed[pid] for pid in system.unknown})
        if not system.unknown or system.empty:
            return True, positions, 0.0

        x0 = np.array([[seed[pid].x, seed[pid].y] for pid in system.unknown], dtype=float).ravel()
        res = _least_squares()(
            system.residuals,
            x0,
            max_nfev=int(max_nfev),
            ftol=float(ftol),
            xtol=float(xtol),
            gtol=float(gtol),
        )
        err = float(np.max(np.abs(res.fun)))
        for pid, (x, y) in zip(system.unknown, res.x.reshape(-1, 2)):
            positions[pid] = Point(float(x), float(y))
        return err <= SOLVE_TOLERANCE, positions, err
