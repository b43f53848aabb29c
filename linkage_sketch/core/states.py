# -*- coding: utf-8 -*-
"""Interaction state machine for the linkage editor.

Every UI state is an ``EditState`` whose ``mode`` selects its behavior. Input
operations (``on_mouse_up``, ``on_key_up``, ...) are looked up in a handler
table keyed by ``(mode, operation)``; a missing entry means the state ignores
that input. A handler returns the next state, or ``None`` to stay put, and the
canvas resolves both the same way with ``resolve_transition``.

Modes marked "running" keep the simulation moving; every other mode freezes it.

    UNPAUSED            running, nothing selected
    IDLE                paused, nothing selected
    CANVAS_1            one free point picked
    CANVAS_2            two free points picked
    CANVAS_POINT        free point, then an existing point
    GROUND_PRESSED      ground point held down
    POINT_SELECTED      one existing point selected
    TWO_POINTS_SELECTED two existing points selected
    POINT_CANVAS        existing point, then a free point
    ROTARY_PRESSED      rotary held down
    ROTARY_SELECTED     rotary selected (otherwise behaves like IDLE)
    SEGMENT_SELECTED    bar selected
    ROTARY_MOVING       rotary selected, running
    PLACING_ROTARY      R held, next click places a rotary
    POINT_PRESSED       free point held down
    TRACE               running, trail of one point recorded
    DRAW_OPTIMIZE_PATH  target path being drawn for one point
    OPTIMIZING          optimizer fitting the point's path to the target

States that are about to commit geometry validate their candidate points
(see ``validation.py``); the guards are built once in ``make_state``.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from .geometry import Point, as_point, translate
from .linkage import Linkage
from .optimization import LinkageOptContext, OptimizationLog, OptimizationTask, optimize_step
from .settings import EditorSettings
from .validation import ValidationSpec
from ..utils.constants import (
    KEY_D,
    KEY_ESC,
    KEY_O,
    KEY_R,
    KEY_S,
    KEY_SPACE,
    KEY_T,
    KEY_W,
    OPTIMIZE_PATH_OPTIONS,
    PREVIEW_OPTIONS,
    TRACE_OPTIONS,
)


class Mode(Enum):
    UNPAUSED = auto()
    IDLE = auto()
    CANVAS_1 = auto()
    CANVAS_2 = auto()
    CANVAS_POINT = auto()
    GROUND_PRESSED = auto()
    POINT_SELECTED = auto()
    TWO_POINTS_SELECTED = auto()
    POINT_CANVAS = auto()
    ROTARY_PRESSED = auto()
    ROTARY_SELECTED = auto()
    SEGMENT_SELECTED = auto()
    ROTARY_MOVING = auto()
    PLACING_ROTARY = auto()
    POINT_PRESSED = auto()
    TRACE = auto()
    DRAW_OPTIMIZE_PATH = auto()
    OPTIMIZING = auto()


RUNNING_MODES = frozenset({Mode.UNPAUSED, Mode.ROTARY_MOVING, Mode.TRACE})

OPERATIONS = (
    "on_mouse_down",
    "on_mouse_drag",
    "on_mouse_up",
    "on_key_down",
    "on_key_up",
    "on_key_press",
    "on_any_point_up",
    "on_canvas_down",
    "on_canvas_up",
    "on_ground_down",
    "on_point_down",
    "on_rotary_down",
    "on_segment_down",
    "on_segment_up",
)


@dataclass
class PointerInfo:
    """Per-frame pointer position plus the point or bar under it."""

    mouse_point: Point = Point(0.0, 0.0)
    p0id: Optional[str] = None
    p1id: Optional[str] = None


@dataclass(frozen=True)
class StateEnv:
    """Settings and collaborators shared by every state of one editor."""

    settings: EditorSettings = field(default_factory=EditorSettings)
    # None schedules optimizer steps on the Qt event loop.
    schedule: Optional[Callable[[Callable[[], None]], None]] = None
    optimize: Callable[[LinkageOptContext], LinkageOptContext] = optimize_step


@dataclass(eq=False)
class EditState:
    mode: Mode
    linkage: Linkage = field(repr=False)
    env: StateEnv = field(default_factory=StateEnv, repr=False)
    p0id: Optional[str] = None
    p1id: Optional[str] = None
    point_a: Optional[Point] = None
    point_b: Optional[Point] = None
    dragged: bool = False
    trace_points: Optional[Deque[Point]] = field(default=None, repr=False)
    drawn_points: Optional[List[Point]] = field(default=None, repr=False)
    point_path: Optional[List[Point]] = field(default=None, repr=False)
    task: Optional[OptimizationTask] = field(default=None, repr=False)
    _guarded: Dict[str, Callable[..., Any]] = field(default_factory=dict, repr=False)

    @property
    def paused(self) -> bool:
        return self.mode not in RUNNING_MODES

    @property
    def stop_optimizing(self) -> bool:
        return self.task is not None and self.task.cancelled

    def to(self, mode: Mode, **fields) -> "EditState":
        """New state sharing this state's linkage and environment."""
        return make_state(mode, self.linkage, self.env, **fields)

    def _dispatch(self, op: str, *args) -> Optional["EditState"]:
        handler = self._guarded.get(op) or _HANDLERS.get((self.mode, op))
        if handler is None:
            return None
        return handler(self, *args)

    def on_mouse_down(self):
        return self._dispatch("on_mouse_down")

    def on_mouse_drag(self, mouse_point: Point):
        return self._dispatch("on_mouse_drag", as_point(mouse_point))

    def on_mouse_up(self, mouse_point: Point):
        return self._dispatch("on_mouse_up", as_point(mouse_point))

    def on_key_down(self, key: int):
        return self._dispatch("on_key_down", key)

    def on_key_up(self, key: int):
        return self._dispatch("on_key_up", key)

    def on_key_press(self, key: int):
        return self._dispatch("on_key_press", key)

    def on_any_point_up(self, p0id: str):
        return self._dispatch("on_any_point_up", p0id)

    def on_canvas_down(self, point_a: Point):
        return self._dispatch("on_canvas_down", as_point(point_a))

    def on_canvas_up(self, point_a: Point):
        return self._dispatch("on_canvas_up", as_point(point_a))

    def on_ground_down(self, p0id: str):
        return self._dispatch("on_ground_down", p0id)

    def on_point_down(self, p0id: str):
        return self._dispatch("on_point_down", p0id)

    def on_rotary_down(self, p0id: str):
        return self._dispatch("on_rotary_down", p0id)

    def on_segment_down(self, p0id: str, p1id: str):
        return self._dispatch("on_segment_down", p0id, p1id)

    def on_segment_up(self, p0id: str, p1id: str):
        return self._dispatch("on_segment_up", p0id, p1id)

    def draw(self, renderer, pointer_info: PointerInfo):
        _DRAWERS.get(self.mode, _draw_paused)(self, renderer, pointer_info)


def resolve_transition(current: EditState, result: Optional[EditState]) -> EditState:
    return current if result is None else result


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------
def _validation_spec(state: EditState) -> Optional[ValidationSpec]:
    tol = state.env.settings.point_tolerance
    lk = state.linkage
    both = ("on_canvas_up", "on_any_point_up")
    mode = state.mode
    if mode is Mode.CANVAS_1:
        return ValidationSpec((state.point_a,), (), both, tol)
    if mode is Mode.CANVAS_2:
        return ValidationSpec((state.point_b,), (), ("on_any_point_up",), tol)
    if mode is Mode.CANVAS_POINT:
        return ValidationSpec((state.point_a, lk.get_point(state.p0id)), (state.p0id,), ("on_canvas_up",), tol)
    if mode is Mode.POINT_SELECTED:
        return ValidationSpec((lk.get_point(state.p0id),), (state.p0id,), both, tol)
    if mode in (Mode.TWO_POINTS_SELECTED, Mode.SEGMENT_SELECTED):
        return ValidationSpec(
            (lk.get_point(state.p0id), lk.get_point(state.p1id)),
            (state.p0id, state.p1id),
            ("on_canvas_up",),
            tol,
        )
    if mode is Mode.POINT_CANVAS:
        return ValidationSpec((state.point_a, lk.get_point(state.p0id)), (state.p0id,), both, tol)
    return None


def make_state(mode: Mode, linkage: Linkage, env: Optional[StateEnv] = None, **fields) -> EditState:
    state = EditState(mode, linkage, env or StateEnv(), **fields)

    vspec = _validation_spec(state)
    if vspec is not None:
        handlers = {name: _HANDLERS[(mode, name)] for name in vspec.operations if (mode, name) in _HANDLERS}
        state._guarded = vspec.wrap(handlers)

    if mode is Mode.TRACE:
        state.trace_points = deque(maxlen=state.env.settings.trace_capacity)
    elif mode is Mode.DRAW_OPTIMIZE_PATH:
        state.drawn_points = []
        state.point_path = linkage.get_path(state.p0id)
    elif mode is Mode.OPTIMIZING:
        state.drawn_points = list(state.drawn_points or [])
        state.point_path = linkage.get_path(state.p0id)
        _start_optimization(state)
    return state


def initial_unpaused_state(linkage: Linkage, env: Optional[StateEnv] = None) -> EditState:
    return make_state(Mode.UNPAUSED, linkage, env)


def initial_paused_state(linkage: Linkage, env: Optional[StateEnv] = None) -> EditState:
    return make_state(Mode.IDLE, linkage, env)


# ----------------------------------------------------------------------
# Handler table
# ----------------------------------------------------------------------
_HANDLERS: Dict[Tuple[Mode, str], Callable[..., Optional[EditState]]] = {}
_DRAWERS: Dict[Mode, Callable[[EditState, Any, PointerInfo], None]] = {}


def handles(op: str, *modes: Mode):
    def register(fn):
        for m in modes:
            _HANDLERS[(m, op)] = fn
        return fn

    return register


def draws(*modes: Mode):
    def register(fn):
        for m in modes:
            _DRAWERS[m] = fn
        return fn

    return register


# Shared fragments ------------------------------------------------------

def _draw_base(state: EditState, renderer, pointer_info: PointerInfo):
    spec = state.linkage.spec
    renderer.draw_linkage(
        positions=state.linkage.positions,
        points=spec.points,
        ground_points=spec.ground_points,
    )


def _draw_running(state: EditState, renderer, pointer_info: PointerInfo):
    state.linkage.try_rotating_linkage_input()
    _draw_base(state, renderer, pointer_info)


def _draw_paused(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_base(state, renderer, pointer_info)
    positions = state.linkage.positions
    p0id, p1id = pointer_info.p0id, pointer_info.p1id
    if p0id in positions and p1id in positions:
        renderer.draw_lines([positions[p0id], positions[p1id]], PREVIEW_OPTIONS)
    elif p0id in positions:
        renderer.draw_point(positions[p0id], PREVIEW_OPTIONS)


def _draw_rotary_triad(state: EditState, renderer):
    lk = state.linkage
    eid, bid, rid = lk.rotary_triad(state.p0id)
    renderer.draw_lines([lk.get_point(eid), lk.get_point(bid), lk.get_point(rid)], PREVIEW_OPTIONS)


def _paused_key_up(state: EditState, key: int):
    if key == KEY_SPACE:
        return state.to(Mode.UNPAUSED)
    if key == KEY_ESC:
        return state.to(Mode.IDLE)
    return None


_PAUSED = tuple(m for m in Mode if m not in RUNNING_MODES)
handles("on_key_up", *_PAUSED)(_paused_key_up)
draws(Mode.IDLE)(_draw_paused)


def _try_remove(state: EditState):
    if state.linkage.try_removing_point(state.p0id):
        return state.to(Mode.IDLE)
    return None


def _commit(state: EditState):
    state.linkage.calculate_positions()
    return state.to(Mode.IDLE)


# Running modes ---------------------------------------------------------

@handles("on_key_up", Mode.UNPAUSED, Mode.ROTARY_MOVING, Mode.TRACE)
def _running_key_up(state: EditState, key: int):
    if key == KEY_SPACE:
        return state.to(Mode.IDLE)
    return None


@handles("on_key_press", Mode.UNPAUSED, Mode.TRACE)
def _running_key_press(state: EditState, key: int):
    if key == KEY_S:
        state.linkage.scale_speed(0.9)
    elif key == KEY_W:
        state.linkage.scale_speed(1.1)
    elif key == KEY_T:
        state.linkage.reverse_rotary()
    return None


@handles("on_key_press", Mode.ROTARY_MOVING)
def _rotary_moving_key_press(state: EditState, key: int):
    if key == KEY_S:
        state.linkage.change_speed(-1, state.p0id)
    elif key == KEY_W:
        state.linkage.change_speed(1, state.p0id)
    elif key == KEY_T:
        state.linkage.reverse_rotary(state.p0id)
    return None


draws(Mode.UNPAUSED)(_draw_running)


@draws(Mode.ROTARY_MOVING)
def _draw_rotary_moving(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_running(state, renderer, pointer_info)
    _draw_rotary_triad(state, renderer)


@draws(Mode.TRACE)
def _draw_trace(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_running(state, renderer, pointer_info)
    cur = state.linkage.positions[state.p0id]
    state.trace_points.append(Point(cur.x, cur.y))
    renderer.draw_lines(list(state.trace_points), TRACE_OPTIONS)
    renderer.draw_point(cur, PREVIEW_OPTIONS)


# Idle ------------------------------------------------------------------

@handles("on_ground_down", Mode.IDLE, Mode.ROTARY_SELECTED)
def _idle_ground_down(state: EditState, p0id: str):
    return state.to(Mode.GROUND_PRESSED, p0id=p0id)


@handles("on_rotary_down", Mode.IDLE, Mode.ROTARY_SELECTED)
def _idle_rotary_down(state: EditState, p0id: str):
    return state.to(Mode.ROTARY_PRESSED, p0id=p0id)


@handles("on_point_down", Mode.IDLE, Mode.ROTARY_SELECTED)
def _idle_point_down(state: EditState, p0id: str):
    return state.to(Mode.POINT_PRESSED, p0id=p0id)


@handles("on_segment_down", Mode.IDLE, Mode.ROTARY_SELECTED)
def _idle_segment_down(state: EditState, p0id: str, p1id: str):
    return state.to(Mode.SEGMENT_SELECTED, p0id=p0id, p1id=p1id)


@handles("on_canvas_down", Mode.IDLE, Mode.ROTARY_SELECTED)
def _idle_canvas_down(state: EditState, point_a: Point):
    return state.to(Mode.CANVAS_1, point_a=point_a)


@handles("on_key_down", Mode.IDLE, Mode.ROTARY_SELECTED)
def _idle_key_down(state: EditState, key: int):
    if key == KEY_R:
        return state.to(Mode.PLACING_ROTARY)
    return None


# Building from free points ---------------------------------------------

@handles("on_canvas_up", Mode.CANVAS_1)
def _canvas1_canvas_up(state: EditState, point_b: Point):
    return state.to(Mode.CANVAS_2, point_a=state.point_a, point_b=point_b)


@handles("on_any_point_up", Mode.CANVAS_1)
def _canvas1_point_up(state: EditState, p0id: str):
    return state.to(Mode.CANVAS_POINT, point_a=state.point_a, p0id=p0id)


@draws(Mode.CANVAS_1)
def _draw_canvas1(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_lines([state.point_a, pointer_info.mouse_point], PREVIEW_OPTIONS)


@handles("on_any_point_up", Mode.CANVAS_2)
def _canvas2_point_up(state: EditState, p0id: str):
    state.linkage.add_ground_segment(state.point_a, state.point_b, p0id)
    return _commit(state)


@draws(Mode.CANVAS_2)
def _draw_canvas2(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_lines([state.point_a, state.point_b], PREVIEW_OPTIONS)
    renderer.draw_lines([state.point_b, pointer_info.mouse_point], PREVIEW_OPTIONS)


@handles("on_canvas_up", Mode.CANVAS_POINT)
def _canvas_point_canvas_up(state: EditState, point_b: Point):
    state.linkage.add_ground_segment(state.point_a, point_b, state.p0id)
    return _commit(state)


@draws(Mode.CANVAS_POINT)
def _draw_canvas_point(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_lines(
        [state.point_a, pointer_info.mouse_point, state.linkage.get_point(state.p0id)],
        PREVIEW_OPTIONS,
    )


# Pressed (drag or click) -----------------------------------------------

@handles("on_mouse_up", Mode.GROUND_PRESSED, Mode.POINT_PRESSED)
def _point_pressed_up(state: EditState, mouse_point: Point):
    if state.dragged:
        return state.to(Mode.IDLE)
    return state.to(Mode.POINT_SELECTED, p0id=state.p0id)


@handles("on_mouse_drag", Mode.GROUND_PRESSED)
def _ground_pressed_drag(state: EditState, mouse_point: Point):
    state.dragged = True
    state.linkage.try_moving_ground_points([(mouse_point, state.p0id)])
    return None


@handles("on_mouse_drag", Mode.POINT_PRESSED)
def _point_pressed_drag(state: EditState, mouse_point: Point):
    state.dragged = True
    state.linkage.move_not_ground_point(mouse_point, state.p0id)
    return None


@handles("on_mouse_up", Mode.ROTARY_PRESSED)
def _rotary_pressed_up(state: EditState, mouse_point: Point):
    if state.dragged:
        return state.to(Mode.IDLE)
    return state.to(Mode.ROTARY_SELECTED, p0id=state.p0id)


@handles("on_mouse_drag", Mode.ROTARY_PRESSED)
def _rotary_pressed_drag(state: EditState, mouse_point: Point):
    state.dragged = True
    lk = state.linkage
    _eid, bid, rid = lk.rotary_triad(state.p0id)
    prev = lk.spec.ground_points[bid]
    ref_next = translate(lk.spec.ground_points[rid], mouse_point.x - prev.x, mouse_point.y - prev.y)
    lk.try_moving_ground_points([(mouse_point, bid), (ref_next, rid)])
    return None


@draws(Mode.GROUND_PRESSED, Mode.POINT_PRESSED)
def _draw_point_marker(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_point(state.linkage.get_point(state.p0id), PREVIEW_OPTIONS)


@draws(Mode.ROTARY_PRESSED, Mode.ROTARY_SELECTED)
def _draw_rotary_selected(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    _draw_rotary_triad(state, renderer)


# Selections ------------------------------------------------------------

@handles("on_any_point_up", Mode.POINT_SELECTED)
def _point_selected_point_up(state: EditState, p1id: str):
    return state.to(Mode.TWO_POINTS_SELECTED, p0id=state.p0id, p1id=p1id)


@handles("on_canvas_up", Mode.POINT_SELECTED)
def _point_selected_canvas_up(state: EditState, point_a: Point):
    return state.to(Mode.POINT_CANVAS, p0id=state.p0id, point_a=point_a)


@handles("on_key_up", Mode.POINT_SELECTED)
def _point_selected_key_up(state: EditState, key: int):
    if key == KEY_D:
        return _try_remove(state)
    if key == KEY_O:
        if state.linkage.get_path(state.p0id):
            return state.to(Mode.DRAW_OPTIMIZE_PATH, p0id=state.p0id)
        return None
    if key == KEY_SPACE:
        return state.to(Mode.TRACE, p0id=state.p0id)
    return _paused_key_up(state, key)


@draws(Mode.POINT_SELECTED)
def _draw_point_selected(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_lines([state.linkage.get_point(state.p0id), pointer_info.mouse_point], PREVIEW_OPTIONS)


@handles("on_canvas_up", Mode.TWO_POINTS_SELECTED, Mode.SEGMENT_SELECTED)
def _two_points_canvas_up(state: EditState, point_a: Point):
    state.linkage.add_triangle(state.p0id, state.p1id, point_a)
    return _commit(state)


@draws(Mode.TWO_POINTS_SELECTED)
def _draw_two_points(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    lk = state.linkage
    renderer.draw_lines(
        [lk.get_point(state.p0id), pointer_info.mouse_point, lk.get_point(state.p1id)],
        PREVIEW_OPTIONS,
    )


@handles("on_canvas_up", Mode.POINT_CANVAS)
def _point_canvas_canvas_up(state: EditState, point_b: Point):
    state.linkage.add_ground_segment(point_b, state.point_a, state.p0id)
    return _commit(state)


@handles("on_any_point_up", Mode.POINT_CANVAS)
def _point_canvas_point_up(state: EditState, p1id: str):
    state.linkage.add_triangle(state.p0id, p1id, state.point_a)
    return _commit(state)


@draws(Mode.POINT_CANVAS)
def _draw_point_canvas(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_lines(
        [state.linkage.get_point(state.p0id), state.point_a, pointer_info.mouse_point],
        PREVIEW_OPTIONS,
    )


@handles("on_key_up", Mode.ROTARY_SELECTED)
def _rotary_selected_key_up(state: EditState, key: int):
    if key == KEY_SPACE:
        return state.to(Mode.ROTARY_MOVING, p0id=state.p0id)
    if key == KEY_D:
        return _try_remove(state)
    return _paused_key_up(state, key)


@handles("on_key_press", Mode.SEGMENT_SELECTED)
def _segment_key_press(state: EditState, key: int):
    if key == KEY_S:
        state.linkage.try_changing_bar_length(-1, state.p0id, state.p1id)
    elif key == KEY_W:
        state.linkage.try_changing_bar_length(1, state.p0id, state.p1id)
    return None


@draws(Mode.SEGMENT_SELECTED)
def _draw_segment_selected(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    lk = state.linkage
    mp = pointer_info.mouse_point
    renderer.draw_lines([mp, lk.get_point(state.p0id), lk.get_point(state.p1id), mp], PREVIEW_OPTIONS)


# Rotary placement ------------------------------------------------------

@handles("on_key_up", Mode.PLACING_ROTARY)
def _placing_rotary_key_up(state: EditState, key: int):
    if key == KEY_R:
        return state.to(Mode.IDLE)
    return _paused_key_up(state, key)


@handles("on_mouse_up", Mode.PLACING_ROTARY)
def _placing_rotary_up(state: EditState, mouse_point: Point):
    settings = state.env.settings
    state.linkage.add_rotary_input(mouse_point, settings.rotary_ref_offset, settings.rotary_crank_offset)
    return _commit(state)


@draws(Mode.PLACING_ROTARY)
def _draw_placing_rotary(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    mp = pointer_info.mouse_point
    settings = state.env.settings
    renderer.draw_lines(
        [translate(mp, *settings.rotary_crank_offset), mp, translate(mp, *settings.rotary_ref_offset)],
        PREVIEW_OPTIONS,
    )


# Optimize --------------------------------------------------------------

def _start_optimization(state: EditState):
    settings = state.env.settings
    ctx = LinkageOptContext(
        path=state.drawn_points,
        linkage_spec=state.linkage.spec,
        point_id=state.p0id,
        positions=state.linkage.positions,
        seed=settings.optimizer_seed,
        step_size=settings.optimizer_step_size,
        speed_scale=state.linkage.speed_scale,
    )
    state.task = OptimizationTask(
        ctx,
        step=state.env.optimize,
        schedule=state.env.schedule,
        log=OptimizationLog(settings.optimization_log_path),
    )
    state.task.start()


def _take_optimized(state: EditState):
    latest = state.task.take_latest()
    if latest is not None:
        state.linkage = latest
        state.point_path = latest.get_path(state.p0id)


@handles("on_key_up", Mode.DRAW_OPTIMIZE_PATH)
def _optimize_key_up(state: EditState, key: int):
    if key == KEY_SPACE:
        return state.to(Mode.TRACE, p0id=state.p0id)
    return _paused_key_up(state, key)


@handles("on_key_up", Mode.OPTIMIZING)
def _optimizing_key_up(state: EditState, key: int):
    state.task.cancel()
    _take_optimized(state)
    return _optimize_key_up(state, key)


@handles("on_mouse_drag", Mode.DRAW_OPTIMIZE_PATH)
def _draw_path_drag(state: EditState, mouse_point: Point):
    state.drawn_points.append(mouse_point)
    return None


@handles("on_mouse_up", Mode.DRAW_OPTIMIZE_PATH)
def _draw_path_up(state: EditState, mouse_point: Point):
    return state.to(Mode.OPTIMIZING, p0id=state.p0id, drawn_points=state.drawn_points)


def _draw_optimize_common(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_paused(state, renderer, pointer_info)
    renderer.draw_lines(state.drawn_points or [], OPTIMIZE_PATH_OPTIONS)
    renderer.draw_lines(state.point_path or [], TRACE_OPTIONS)


@draws(Mode.DRAW_OPTIMIZE_PATH)
def _draw_optimize_path(state: EditState, renderer, pointer_info: PointerInfo):
    _draw_optimize_common(state, renderer, pointer_info)
    renderer.draw_point(state.linkage.get_point(state.p0id), PREVIEW_OPTIONS)
    renderer.draw_point(pointer_info.mouse_point, OPTIMIZE_PATH_OPTIONS)


@draws(Mode.OPTIMIZING)
def _draw_optimizing(state: EditState, renderer, pointer_info: PointerInfo):
    _take_optimized(state)
    _draw_optimize_common(state, renderer, pointer_info)
    renderer.draw_point(state.linkage.get_point(state.p0id), PREVIEW_OPTIONS)
