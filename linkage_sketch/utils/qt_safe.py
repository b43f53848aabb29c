# -*- coding: utf-8 -*-
"""Keep the editor alive when an input handler fails.

Qt aborts the process on an exception escaping a virtual event handler, so
canvas handlers are wrapped: the traceback goes to stderr, the first line of
the error goes to the widget's ``report_error`` (when it has one) and the
event is dropped.
"""

from __future__ import annotations

import traceback
from functools import wraps
from typing import Any, Callable, Optional


def describe_error(exc: BaseException) -> str:
    text = str(exc).strip()
    first = text.splitlines()[0] if text else ""
    return f"{type(exc).__name__}: {first}" if first else type(exc).__name__


def safe_event(handler: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Optional[Any]]:
    """Decorator for ``(self, event)`` Qt handlers."""

    @wraps(handler)
    def run(widget, event):
        try:
            return handler(widget, event)
        except Exception as exc:
            traceback.print_exc()
            report = getattr(widget, "report_error", None)
            if report is not None:
                report(describe_error(exc))
            if hasattr(event, "ignore"):
                event.ignore()
            return None

    return run
