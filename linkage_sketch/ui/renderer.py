# -*- coding: utf-8 -*-
"""QPainter drawing primitives for the linkage and state overlays."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QPainter, QPen, QPolygonF

from ..core.geometry import Point
from ..utils.constants import DARK, GRAY, YELLOW


class LinkageRenderer:
    def __init__(self, painter: QPainter, point_radius: float = 5.0):
        self.painter = painter
        self.point_radius = float(point_radius)
        self._colors: Dict[str, QColor] = {}

    def _color(self, name: str) -> QColor:
        c = self._colors.get(name)
        if c is None:
            c = QColor(name)
            self._colors[name] = c
        return c

    def draw_linkage(
        self,
        positions: Mapping[str, Point],
        points: Mapping[str, Mapping[str, Any]],
        ground_points: Optional[Mapping[str, Point]] = None,
    ):
        ground_points = ground_points or {}
        p = self.painter
        p.setPen(QPen(DARK, 3))
        for i, nbrs in points.items():
            for j in nbrs:
                if i < j and i in positions and j in positions:
                    a, b = positions[i], positions[j]
                    p.drawLine(QPointF(a.x, a.y), QPointF(b.x, b.y))

        r = self.point_radius
        p.setPen(QPen(Qt.GlobalColor.black, 1))
        for pid, pos in positions.items():
            if pid in ground_points:
                p.setBrush(QBrush(GRAY))
                p.drawRect(QRectF(pos.x - r, pos.y - r, 2 * r, 2 * r))
            else:
                p.setBrush(QBrush(YELLOW))
                p.drawEllipse(QPointF(pos.x, pos.y), r, r)

    def draw_lines(self, points: Sequence[Point], options: Mapping[str, Any]):
        if not points:
            return
        p = self.painter
        if len(points) > 1:
            p.setPen(QPen(self._color(options["line_color"]), 2))
            p.setBrush(Qt.BrushStyle.NoBrush)
            p.drawPolyline(QPolygonF([QPointF(pt.x, pt.y) for pt in points]))
        if options.get("draw_points", False):
            for pt in points:
                self.draw_point(pt, options)

    def draw_point(self, point: Point, options: Mapping[str, Any]):
        p = self.painter
        color = self._color(options["point_color"])
        p.setPen(QPen(color, 1))
        p.setBrush(QBrush(color))
        r = self.point_radius * 0.8
        p.drawEllipse(QPointF(point.x, point.y), r, r)
