# -*- coding: utf-8 -*-
"""UI constants, colors and overlay styles."""

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor

DARK = QColor(40, 40, 40)
YELLOW = QColor(255, 230, 0)
GRAY = QColor(160, 160, 160)
BACKGROUND = QColor(250, 250, 250)

# Overlay styles passed to LinkageRenderer.draw_lines / draw_point.
PREVIEW_OPTIONS = {
    "line_color": "pink",
    "point_color": "red",
    "draw_points": True,
}

TRACE_OPTIONS = {
    "line_color": "pink",
    "point_color": "red",
    "draw_points": False,
}

OPTIMIZE_PATH_OPTIONS = {
    "line_color": "hotpink",
    "point_color": "magenta",
    "draw_points": False,
}

MAX_TRACE_POINTS = 100

# Key codes as delivered by QKeyEvent.key(); letters are case-insensitive there.
KEY_SPACE = Qt.Key.Key_Space.value
KEY_ESC = Qt.Key.Key_Escape.value
KEY_D = Qt.Key.Key_D.value
KEY_O = Qt.Key.Key_O.value
KEY_R = Qt.Key.Key_R.value
KEY_S = Qt.Key.Key_S.value
KEY_T = Qt.Key.Key_T.value
KEY_W = Qt.Key.Key_W.value
