# -*- coding: utf-8 -*-
"""Editor settings.

Settings are plain values kept on a dataclass and optionally loaded from a
JSON file. Unknown keys are ignored; invalid values raise ``ValueError``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple

from .validation import DEFAULT_POINT_TOLERANCE
from ..utils.constants import MAX_TRACE_POINTS


@dataclass
class EditorSettings:
    frame_interval_ms: int = 16
    point_tolerance: float = DEFAULT_POINT_TOLERANCE
    hit_radius: float = 8.0
    trace_capacity: int = MAX_TRACE_POINTS
    rotary_ref_offset: Tuple[float, float] = (10.0, 0.0)
    rotary_crank_offset: Tuple[float, float] = (30.0, 40.0)
    optimizer_seed: Optional[int] = None
    optimizer_step_size: float = 4.0
    optimization_log_path: Optional[str] = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        if int(self.frame_interval_ms) < 1:
            raise ValueError(f"frame_interval_ms must be >= 1, got {self.frame_interval_ms!r}")
        if float(self.point_tolerance) < 0.0:
            raise ValueError(f"point_tolerance must be >= 0, got {self.point_tolerance!r}")
        if float(self.hit_radius) <= 0.0:
            raise ValueError(f"hit_radius must be > 0, got {self.hit_radius!r}")
        if int(self.trace_capacity) < 1:
            raise ValueError(f"trace_capacity must be >= 1, got {self.trace_capacity!r}")
        if float(self.optimizer_step_size) <= 0.0:
            raise ValueError(f"optimizer_step_size must be > 0, got {self.optimizer_step_size!r}")
        for name in ("rotary_ref_offset", "rotary_crank_offset"):
            val = getattr(self, name)
            if len(val) != 2:
                raise ValueError(f"{name} must be an (x, y) pair, got {val!r}")
            setattr(self, name, (float(val[0]), float(val[1])))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["rotary_ref_offset"] = list(self.rotary_ref_offset)
        d["rotary_crank_offset"] = list(self.rotary_crank_offset)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorSettings":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in (data or {}).items() if k in known}
        for name in ("rotary_ref_offset", "rotary_crank_offset"):
            if name in kwargs:
                kwargs[name] = tuple(kwargs[name])
        return cls(**kwargs)


def load_settings(path: str) -> EditorSettings:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {path!r} must contain a JSON object")
    return EditorSettings.from_dict(raw)


def save_settings(settings: EditorSettings, path: str):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
