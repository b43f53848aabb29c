# -*- coding: utf-8 -*-
"""Settings dialog for editor preferences."""

from __future__ import annotations

from dataclasses import replace

from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QDoubleSpinBox,
    QSpinBox,
)

from ..core.settings import EditorSettings


class SettingsDialog(QDialog):
    def __init__(self, settings: EditorSettings, parent=None):
        super().__init__(parent)
        self.base = settings
        self.setWindowTitle("Editor Settings")

        layout = QFormLayout(self)
        self.spin_frame = QSpinBox(self)
        self.spin_frame.setRange(1, 1000)
        self.spin_frame.setSuffix(" ms")
        self.spin_frame.setValue(int(settings.frame_interval_ms))
        layout.addRow("Frame interval", self.spin_frame)

        self.spin_tolerance = QDoubleSpinBox(self)
        self.spin_tolerance.setRange(0.0, 50.0)
        self.spin_tolerance.setSingleStep(0.5)
        self.spin_tolerance.setValue(float(settings.point_tolerance))
        layout.addRow("Point tolerance", self.spin_tolerance)

        self.spin_hit = QDoubleSpinBox(self)
        self.spin_hit.setRange(1.0, 50.0)
        self.spin_hit.setSingleStep(1.0)
        self.spin_hit.setValue(float(settings.hit_radius))
        layout.addRow("Hit radius", self.spin_hit)

        self.spin_trace = QSpinBox(self)
        self.spin_trace.setRange(1, 10000)
        self.spin_trace.setValue(int(settings.trace_capacity))
        layout.addRow("Trace length", self.spin_trace)

        self.spin_step = QDoubleSpinBox(self)
        self.spin_step.setRange(0.1, 100.0)
        self.spin_step.setSingleStep(0.5)
        self.spin_step.setValue(float(settings.optimizer_step_size))
        layout.addRow("Optimizer step", self.spin_step)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def settings(self) -> EditorSettings:
        return replace(
            self.base,
            frame_interval_ms=int(self.spin_frame.value()),
            point_tolerance=float(self.spin_tolerance.value()),
            hit_radius=float(self.spin_hit.value()),
            trace_capacity=int(self.spin_trace.value()),
            optimizer_step_size=float(self.spin_step.value()),
        )
