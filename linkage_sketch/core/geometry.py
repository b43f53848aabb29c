# -*- coding: utf-8 -*-
"""Geometry helpers."""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple, Sequence

import numpy as np


class Point(NamedTuple):
    x: float
    y: float


def as_point(p) -> Point:
    """Coerce a Point, (x, y) pair or QPointF-like object into a Point."""
    if isinstance(p, Point):
        return p
    if hasattr(p, "x") and callable(p.x):
        return Point(float(p.x()), float(p.y()))
    x, y = p
    return Point(float(x), float(y))


def clamp_angle_rad(a: float) -> float:
    """Wrap angle to (-pi, pi]."""
    while a <= -math.pi:
        a += 2 * math.pi
    while a > math.pi:
        a -= 2 * math.pi
    return a


def rot2(x: float, y: float, a: float) -> tuple[float, float]:
    ca, sa = math.cos(a), math.sin(a)
    return ca * x - sa * y, sa * x + ca * y


def euclid(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def translate(p: Point, dx: float, dy: float) -> Point:
    return Point(p.x + dx, p.y + dy)


def extend_point(base: Point, ref: Point, angle: float, length: float) -> Point:
    """Point at ``length`` from ``base`` along (ref - base), rotated by ``angle``."""
    vx, vy = ref.x - base.x, ref.y - base.y
    n = math.hypot(vx, vy)
    if n < 1e-12:
        vx, vy, n = 1.0, 0.0, 1.0
    ux, uy = rot2(vx / n, vy / n, angle)
    return Point(base.x + length * ux, base.y + length * uy)


def within(p: Point, refs: Iterable[Point], tol: float) -> bool:
    return any(euclid(p, r) <= tol for r in refs)


def distance_to_segment(p: Point, a: Point, b: Point) -> float:
    vx = b.x - a.x
    vy = b.y - a.y
    denom = vx * vx + vy * vy
    if denom <= 1e-18:
        return euclid(p, a)
    u = ((p.x - a.x) * vx + (p.y - a.y) * vy) / denom
    u = max(0.0, min(1.0, u))
    return math.hypot(a.x + u * vx - p.x, a.y + u * vy - p.y)


def path_distance(target: Sequence[Point], path: Sequence[Point]) -> float:
    """Mean squared distance from each target point to the nearest path sample."""
    if not target or not path:
        return float("inf")
    t = np.asarray(target, dtype=float)
    q = np.asarray(path, dtype=float)
    d2 = ((t[:, None, :] - q[None, :, :]) ** 2).sum(axis=2)
    return float(d2.min(axis=1).mean())
