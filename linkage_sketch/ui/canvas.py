# -*- coding: utf-8 -*-
"""Canvas widget: feeds Qt input to the editor session and repaints every frame."""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QPainter
from PyQt6.QtWidgets import QWidget

from ..core.geometry import as_point
from ..core.linkage import Linkage
from ..core.session import EditorSession
from ..core.settings import EditorSettings
from ..core.states import EditState
from ..utils.constants import BACKGROUND
from ..utils.qt_safe import safe_event
from .renderer import LinkageRenderer


class LinkageCanvas(QWidget):
    stateChanged = pyqtSignal(object)
    errorRaised = pyqtSignal(str)

    def __init__(self, linkage: Linkage, settings: Optional[EditorSettings] = None, parent=None):
        super().__init__(parent)
        self.session = EditorSession(linkage, settings or EditorSettings(), on_change=self.stateChanged.emit)

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(640, 480)

        self._timer = QTimer(self)
        self._timer.timeout.connect(self.update)
        self._timer.start(int(self.settings.frame_interval_ms))

    @property
    def state(self) -> EditState:
        return self.session.state

    @property
    def settings(self) -> EditorSettings:
        return self.session.settings

    @property
    def linkage(self) -> Linkage:
        return self.session.linkage

    def reset(self, linkage: Linkage, paused: bool = True):
        self.session.reset(linkage, paused)

    def apply_settings(self, settings: EditorSettings):
        self._timer.setInterval(int(settings.frame_interval_ms))
        self.session.apply_settings(settings)

    def report_error(self, message: str):
        self.errorRaised.emit(message)

    @safe_event
    def mousePressEvent(self, e):
        if e.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(e)
            return
        self.session.mouse_press(as_point(e.position()))
        e.accept()

    @safe_event
    def mouseMoveEvent(self, e):
        self.session.mouse_move(as_point(e.position()))
        e.accept()

    @safe_event
    def mouseReleaseEvent(self, e):
        if e.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(e)
            return
        self.session.mouse_release(as_point(e.position()))
        e.accept()

    @safe_event
    def keyPressEvent(self, e):
        self.session.key_press(int(e.key()), e.isAutoRepeat())
        e.accept()

    @safe_event
    def keyReleaseEvent(self, e):
        self.session.key_release(int(e.key()), e.isAutoRepeat())
        e.accept()

    @safe_event
    def paintEvent(self, e):
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.fillRect(self.rect(), BACKGROUND)
            self.session.draw(LinkageRenderer(painter))
        finally:
            painter.end()

    def closeEvent(self, e):
        self._timer.stop()
        self.session.cancel_optimization()
        super().closeEvent(e)
