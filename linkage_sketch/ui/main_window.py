# -*- coding: utf-8 -*-
"""Main window + menus."""

from __future__ import annotations

import traceback
from typing import Optional

from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import QFileDialog, QLabel, QMainWindow, QMessageBox, QStatusBar

from ..core.linkage import Linkage, demo_linkage
from ..core.settings import EditorSettings, load_settings, save_settings
from ..core.states import EditState, Mode
from .canvas import LinkageCanvas
from .settings_dialog import SettingsDialog

MODE_HINTS = {
    Mode.UNPAUSED: "Running | Space: pause, S/W: slower/faster, T: reverse",
    Mode.IDLE: "Paused | Click points, bars or the canvas to build. Hold R + click: add rotary. Space: run",
    Mode.CANVAS_1: "Click the canvas or a point to continue the ground segment",
    Mode.CANVAS_2: "Click an existing point to attach the segment",
    Mode.CANVAS_POINT: "Click the canvas to place the ground point",
    Mode.GROUND_PRESSED: "Drag to move the ground point",
    Mode.POINT_SELECTED: "Point | click point: triangle, canvas: segment, D: delete, O: optimize, Space: trace",
    Mode.TWO_POINTS_SELECTED: "Click the canvas to add a rigid triangle point",
    Mode.POINT_CANVAS: "Click the canvas for a ground segment or a point for a triangle",
    Mode.ROTARY_PRESSED: "Drag to move the rotary",
    Mode.ROTARY_SELECTED: "Rotary | Space: run this rotary, D: delete",
    Mode.SEGMENT_SELECTED: "Bar | click canvas: triangle, S/W: shorter/longer",
    Mode.ROTARY_MOVING: "Rotary running | S/W: speed, T: reverse, Space: pause",
    Mode.PLACING_ROTARY: "Click to place the rotary, release R to cancel",
    Mode.POINT_PRESSED: "Drag to move the point",
    Mode.TRACE: "Tracing | Space: pause",
    Mode.DRAW_OPTIMIZE_PATH: "Drag to draw the target path",
    Mode.OPTIMIZING: "Optimizing | Space: stop and trace, Esc: stop",
}


class MainWindow(QMainWindow):
    def __init__(self, settings: Optional[EditorSettings] = None):
        super().__init__()
        self.setWindowTitle("Linkage Sketch")
        self.resize(1100, 800)
        self.canvas = LinkageCanvas(demo_linkage(), settings or EditorSettings(), self)
        self.setCentralWidget(self.canvas)
        self.setStatusBar(QStatusBar())
        self.lbl_mode = QLabel("")
        self.statusBar().addPermanentWidget(self.lbl_mode)
        self.canvas.stateChanged.connect(self.update_status)
        self.canvas.errorRaised.connect(self.show_error)
        self._build_menus()
        self.update_status(self.canvas.state)
        self.canvas.setFocus()

    def _build_menus(self):
        m_file = self.menuBar().addMenu("&File")
        act_new = QAction("New", self)
        act_new.setShortcut(QKeySequence.StandardKey.New)
        act_new.triggered.connect(self.file_new)
        act_demo = QAction("Demo Linkage", self)
        act_demo.triggered.connect(self.file_demo)
        act_quit = QAction("Quit", self)
        act_quit.setShortcut(QKeySequence.StandardKey.Quit)
        act_quit.triggered.connect(self.close)
        m_file.addAction(act_new)
        m_file.addAction(act_demo)
        m_file.addSeparator()
        m_file.addAction(act_quit)

        m_settings = self.menuBar().addMenu("&Settings")
        act_edit = QAction("Preferences...", self)
        act_edit.triggered.connect(self.open_settings)
        act_load = QAction("Load Settings...", self)
        act_load.triggered.connect(self.load_settings_file)
        act_save = QAction("Save Settings...", self)
        act_save.triggered.connect(self.save_settings_file)
        m_settings.addAction(act_edit)
        m_settings.addAction(act_load)
        m_settings.addAction(act_save)

    def update_status(self, state: EditState):
        self.lbl_mode.setText(state.mode.name)
        self.statusBar().showMessage(MODE_HINTS.get(state.mode, ""))

    def show_error(self, message: str):
        self.statusBar().showMessage(message, 5000)

    def file_new(self):
        self.canvas.reset(Linkage())

    def file_demo(self):
        self.canvas.reset(demo_linkage(), paused=False)

    def open_settings(self):
        dlg = SettingsDialog(self.canvas.settings, self)
        if dlg.exec():
            try:
                self.canvas.apply_settings(dlg.settings())
            except ValueError as exc:
                QMessageBox.warning(self, "Settings", str(exc))

    def load_settings_file(self):
        path, _ = QFileDialog.getOpenFileName(self, "Load Settings", "", "JSON (*.json)")
        if not path:
            return
        try:
            self.canvas.apply_settings(load_settings(path))
        except (OSError, ValueError, TypeError):
            QMessageBox.critical(self, "Load Settings", traceback.format_exc())

    def save_settings_file(self):
        path, _ = QFileDialog.getSaveFileName(self, "Save Settings", "settings.json", "JSON (*.json)")
        if not path:
            return
        try:
            save_settings(self.canvas.settings, path)
        except OSError:
            QMessageBox.critical(self, "Save Settings", traceback.format_exc())
