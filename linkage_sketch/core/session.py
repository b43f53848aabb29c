# -*- coding: utf-8 -*-
"""Editor session: owns the current edit state and routes pointer/key input.

The canvas widget translates Qt events into the calls below and repaints;
everything that decides which state operation fires lives here.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

from .geometry import Point
from .linkage import Linkage
from .settings import EditorSettings
from .states import (
    EditState,
    PointerInfo,
    StateEnv,
    initial_paused_state,
    initial_unpaused_state,
    resolve_transition,
)


class EditorSession:
    def __init__(
        self,
        linkage: Linkage,
        settings: Optional[EditorSettings] = None,
        env: Optional[StateEnv] = None,
        on_change: Optional[Callable[[EditState], None]] = None,
    ):
        self.env = env or StateEnv()
        if settings is not None:
            self.env = replace(self.env, settings=settings)
        self.state: EditState = initial_unpaused_state(linkage, self.env)
        self.pointer_info = PointerInfo()
        self.mouse_down = False
        self.on_change = on_change

    @property
    def settings(self) -> EditorSettings:
        return self.env.settings

    @property
    def linkage(self) -> Linkage:
        return self.state.linkage

    def reset(self, linkage: Linkage, paused: bool = True):
        self.cancel_optimization()
        make = initial_paused_state if paused else initial_unpaused_state
        self._replace_state(make(linkage, self.env))

    def apply_settings(self, settings: EditorSettings):
        self.env = replace(self.env, settings=settings)
        self.reset(self.linkage, paused=self.state.paused)

    def cancel_optimization(self):
        if self.state.task is not None:
            self.state.task.cancel()

    def _replace_state(self, new: EditState):
        self.state = new
        if self.on_change is not None:
            self.on_change(new)

    def apply(self, result: Optional[EditState]) -> bool:
        """Install ``result``; False when it leaves the state unchanged."""
        new = resolve_transition(self.state, result)
        if new is self.state:
            return False
        # A state left behind must not keep optimizing.
        if self.state.task is not None and new.task is not self.state.task:
            self.state.task.cancel()
        self._replace_state(new)
        return True

    # ------------------------------------------------------------------
    # Hit testing
    # ------------------------------------------------------------------
    def update_hover(self, p: Point):
        radius = self.settings.hit_radius
        pid = self.linkage.point_at(p, radius)
        seg = None if pid is not None else self.linkage.segment_at(p, radius)
        self.pointer_info.mouse_point = p
        self.pointer_info.p0id = pid if pid is not None else (seg[0] if seg else None)
        self.pointer_info.p1id = seg[1] if seg else None

    def element_down(self, p: Point) -> Optional[EditState]:
        lk = self.linkage
        radius = self.settings.hit_radius
        pid = lk.point_at(p, radius)
        if pid is not None:
            if lk.is_rotary(pid):
                return self.state.on_rotary_down(pid)
            if lk.is_ground(pid):
                return self.state.on_ground_down(pid)
            return self.state.on_point_down(pid)
        seg = lk.segment_at(p, radius)
        if seg is not None:
            return self.state.on_segment_down(*seg)
        return self.state.on_canvas_down(p)

    def element_up(self, p: Point) -> Optional[EditState]:
        lk = self.linkage
        radius = self.settings.hit_radius
        pid = lk.point_at(p, radius)
        if pid is not None:
            return self.state.on_any_point_up(pid)
        seg = lk.segment_at(p, radius)
        if seg is not None:
            return self.state.on_segment_up(*seg)
        return self.state.on_canvas_up(p)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def mouse_press(self, p: Point):
        self.mouse_down = True
        if not self.apply(self.state.on_mouse_down()):
            self.apply(self.element_down(p))

    def mouse_move(self, p: Point):
        self.update_hover(p)
        if self.mouse_down:
            self.apply(self.state.on_mouse_drag(p))

    def mouse_release(self, p: Point):
        self.mouse_down = False
        if not self.apply(self.state.on_mouse_up(p)):
            self.apply(self.element_up(p))

    def key_press(self, key: int, auto_repeat: bool = False):
        if not auto_repeat:
            self.apply(self.state.on_key_down(key))
        self.apply(self.state.on_key_press(key))

    def key_release(self, key: int, auto_repeat: bool = False):
        if not auto_repeat:
            self.apply(self.state.on_key_up(key))

    def draw(self, renderer):
        self.state.draw(renderer, self.pointer_info)
