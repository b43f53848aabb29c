# -*- coding: utf-8 -*-
"""Path-fitting optimizer and its stepped, cancellable task."""

from __future__ import annotations

import json
import os
import random
import traceback
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from PyQt6.QtCore import QTimer

from .geometry import Point, as_point, path_distance, translate
from .linkage import Linkage, LinkageSpec, MIN_BAR_LENGTH


@dataclass(frozen=True)
class LinkageOptContext:
    """One optimizer state: target path, tracked point and the current best linkage.

    ``linkage_spec``/``positions`` describe the starting design; ``linkage`` is
    the best design found so far and is built from them when omitted.
    """

    path: Tuple[Point, ...]
    linkage_spec: LinkageSpec
    point_id: str
    positions: Optional[Dict[str, Point]] = None
    linkage: Optional[Linkage] = None
    score: float = float("inf")
    iteration: int = 0
    seed: Optional[int] = None
    step_size: float = 4.0
    speed_scale: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "path", tuple(as_point(p) for p in self.path))
        if self.linkage is None:
            lk = Linkage(self.linkage_spec.copy(), dict(self.positions or {}), self.speed_scale)
            object.__setattr__(self, "linkage", lk)


def design_variables(linkage: Linkage) -> List[Tuple[str, ...]]:
    """Bars and movable ground points the optimizer may perturb."""
    spec = linkage.spec
    refs = {ext["ref"] for ext in spec.extenders.values()}
    out: List[Tuple[str, ...]] = []
    for i, nbrs in spec.points.items():
        for j in nbrs:
            if i < j:
                out.append(("bar", i, j))
    for gid in spec.ground_points:
        if gid not in refs:
            out.append(("ground", gid))
    return out


def _perturb(linkage: Linkage, var: Tuple[str, ...], rng: random.Random, step: float) -> bool:
    if var[0] == "bar":
        _kind, i, j = var
        delta = rng.gauss(0.0, step)
        if linkage.spec.points[i][j]["len"] + delta < MIN_BAR_LENGTH:
            return False
        return linkage.try_changing_bar_length(delta, i, j)
    gid = var[1]
    dx, dy = rng.gauss(0.0, step), rng.gauss(0.0, step)
    moves = [(translate(linkage.spec.ground_points[gid], dx, dy), gid)]
    if linkage.is_rotary(gid):
        _eid, _bid, rid = linkage.rotary_triad(gid)
        moves.append((translate(linkage.spec.ground_points[rid], dx, dy), rid))
    return linkage.try_moving_ground_points(moves)


def score_linkage(linkage: Linkage, target: Sequence[Point], point_id: str) -> float:
    path = linkage.get_path(point_id)
    if path is None:
        return float("inf")
    return path_distance(target, path)


def optimize_step(ctx: LinkageOptContext) -> LinkageOptContext:
    """One random-search step. Pure: ``ctx`` and its linkage are left untouched."""
    rng = random.Random(None if ctx.seed is None else ctx.seed + ctx.iteration)
    best = ctx.score
    if best == float("inf"):
        best = score_linkage(ctx.linkage, ctx.path, ctx.point_id)

    variables = design_variables(ctx.linkage)
    if not variables or not ctx.path:
        return replace(ctx, score=best, iteration=ctx.iteration + 1)

    candidate = ctx.linkage.copy()
    if _perturb(candidate, rng.choice(variables), rng, ctx.step_size):
        score = score_linkage(candidate, ctx.path, ctx.point_id)
        if score < best:
            return replace(ctx, linkage=candidate, score=score, iteration=ctx.iteration + 1)
    return replace(ctx, score=best, iteration=ctx.iteration + 1)


class OptimizationLog:
    """Optional JSON-lines record of optimizer steps."""

    def __init__(self, log_path: Optional[str]) -> None:
        self.log_path = log_path
        self._handle = None
        if not self.log_path:
            return
        log_dir = os.path.dirname(self.log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        self._handle = open(self.log_path, "a", encoding="utf-8")

    def log(self, payload: Dict[str, Any]) -> None:
        if not self._handle:
            return
        record = {"timestamp": datetime.now(timezone.utc).isoformat()}
        record.update(payload)
        try:
            self._handle.write(json.dumps(record, ensure_ascii=False) + "\n")
            self._handle.flush()
        except Exception:
            self.close()

    def close(self) -> None:
        if self._handle:
            try:
                self._handle.close()
            except Exception:
                pass
            self._handle = None


def qt_schedule(fn: Callable[[], None]) -> None:
    QTimer.singleShot(0, fn)


class OptimizationTask:
    """Runs ``step`` repeatedly, one call per scheduling turn, until cancelled.

    A step that improves the design publishes its linkage into a single slot
    the owner drains with ``take_latest()``. Cancellation is checked before each
    step, so a step in flight finishes but no further step starts.
    """

    def __init__(
        self,
        context: LinkageOptContext,
        step: Callable[[LinkageOptContext], LinkageOptContext] = optimize_step,
        schedule: Optional[Callable[[Callable[[], None]], None]] = None,
        log: Optional[OptimizationLog] = None,
    ):
        self.context = context
        self._step = step
        self._schedule = schedule or qt_schedule
        self._log = log or OptimizationLog(None)
        self._cancelled = False
        self._started = False
        self._latest: Optional[Linkage] = None
        self.steps = 0
        self.error: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self):
        if self._started:
            return
        self._started = True
        self._schedule(self._run_step)

    def cancel(self):
        self._cancelled = True
        self._log.close()

    def take_latest(self) -> Optional[Linkage]:
        latest, self._latest = self._latest, None
        return latest

    def _run_step(self):
        if self._cancelled:
            return
        try:
            previous = self.context.linkage
            self.context = self._step(self.context)
        except Exception as exc:
            traceback.print_exc()
            self.error = str(exc).splitlines()[0] if str(exc) else "unknown_error"
            self._log.log({"iteration": self.steps, "status": "fail", "error": self.error})
            self.cancel()
            return
        self.steps += 1
        if self.context.linkage is not previous:
            self._latest = self.context.linkage
        self._log.log({"iteration": self.context.iteration, "score": self.context.score, "status": "success"})
        if not self._cancelled:
            self._schedule(self._run_step)
