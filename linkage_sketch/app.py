# -*- coding: utf-8 -*-
"""Entry point: ``linkage-sketch [settings.json]``."""

from __future__ import annotations

import sys
import traceback
from PyQt6.QtWidgets import QApplication

from .core.settings import EditorSettings, load_settings
from .ui.main_window import MainWindow


def settings_from_args(args) -> EditorSettings:
    if not args:
        return EditorSettings()
    try:
        return load_settings(args[0])
    except (OSError, ValueError, TypeError):
        traceback.print_exc()
        print(f"Ignoring settings file {args[0]!r}, using defaults.", file=sys.stderr)
        return EditorSettings()


def main():
    app = QApplication(sys.argv)
    w = MainWindow(settings_from_args(app.arguments()[1:]))
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
