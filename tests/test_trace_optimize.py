from dataclasses import replace

import pytest

from linkage_sketch.core.geometry import Point, translate
from linkage_sketch.core.linkage import demo_linkage
from linkage_sketch.core.settings import EditorSettings
from linkage_sketch.core.states import Mode, PointerInfo, StateEnv, make_state
from linkage_sketch.utils.constants import (
    KEY_ESC,
    KEY_SPACE,
    OPTIMIZE_PATH_OPTIONS,
    TRACE_OPTIONS,
)

from conftest import FakeLinkage

PATH = [Point(50.0, 0.0), Point(55.0, 5.0), Point(50.0, 10.0)]


class StepStub:
    """Optimizer step returning a new fake linkage tagged with the step number."""

    def __init__(self, fail_at=None):
        self.produced = []
        self.fail_at = fail_at

    def __call__(self, ctx):
        n = len(self.produced) + 1
        if self.fail_at == n:
            raise RuntimeError("solver diverged")
        lk = FakeLinkage({"p7": Point(50.0 + n, 0.0)})
        lk.paths["p7"] = [Point(float(n), 0.0)]
        self.produced.append(lk)
        return replace(ctx, linkage=lk, iteration=ctx.iteration + 1, score=1.0 / n)


@pytest.fixture
def step():
    return StepStub()


@pytest.fixture
def opt_env(scheduler, step):
    return StateEnv(settings=EditorSettings(), schedule=scheduler, optimize=step)


def _optimizing(linkage, env):
    linkage.paths["p7"] = list(PATH)
    drawing = make_state(Mode.DRAW_OPTIMIZE_PATH, linkage, env, p0id="p7")
    for p in [(60.0, 0.0), (65.0, 5.0), (60.0, 10.0)]:
        assert drawing.on_mouse_drag(Point(*p)) is None
    return drawing.on_mouse_up(Point(60.0, 10.0))


# Trace -----------------------------------------------------------------

def test_trace_keeps_latest_points_in_order(linkage, env, renderer):
    state = make_state(Mode.TRACE, linkage, env, p0id="p7")
    for i in range(150):
        linkage.positions["p7"] = Point(float(i), 0.0)
        state.draw(renderer, PointerInfo())
    assert len(state.trace_points) == 100
    assert list(state.trace_points) == [Point(float(i), 0.0) for i in range(50, 150)]
    trail = [c for c in renderer.calls if c[0] == "lines"][-1]
    assert trail[2] is TRACE_OPTIONS
    assert trail[1][0] == Point(50.0, 0.0)
    assert trail[1][-1] == Point(149.0, 0.0)
    assert linkage.names().count("rotate") == 150


def test_trace_capacity_from_settings(linkage, scheduler, renderer):
    env = StateEnv(settings=EditorSettings(trace_capacity=3), schedule=scheduler)
    state = make_state(Mode.TRACE, linkage, env, p0id="p7")
    for i in range(5):
        linkage.positions["p7"] = Point(float(i), 1.0)
        state.draw(renderer, PointerInfo())
    assert list(state.trace_points) == [Point(2.0, 1.0), Point(3.0, 1.0), Point(4.0, 1.0)]


def test_trace_keys(linkage, env):
    state = make_state(Mode.TRACE, linkage, env, p0id="p7")
    assert not state.paused
    assert state.on_key_up(KEY_ESC) is None
    assert state.on_key_up(KEY_SPACE).mode is Mode.IDLE


# Drawing the target path ----------------------------------------------

def test_draw_path_captures_drag_points(linkage, opt_env, renderer):
    linkage.paths["p7"] = list(PATH)
    state = make_state(Mode.DRAW_OPTIMIZE_PATH, linkage, opt_env, p0id="p7")
    assert state.point_path == PATH
    state.on_mouse_drag(Point(1.0, 2.0))
    state.on_mouse_drag(Point(3.0, 4.0))
    assert state.drawn_points == [Point(1.0, 2.0), Point(3.0, 4.0)]
    state.draw(renderer, PointerInfo(Point(5.0, 5.0)))
    lines = [c for c in renderer.calls if c[0] == "lines"]
    assert lines[0] == ("lines", [Point(1.0, 2.0), Point(3.0, 4.0)], OPTIMIZE_PATH_OPTIONS)
    assert lines[1] == ("lines", PATH, TRACE_OPTIONS)


def test_draw_path_keys(linkage, opt_env):
    linkage.paths["p7"] = list(PATH)
    state = make_state(Mode.DRAW_OPTIMIZE_PATH, linkage, opt_env, p0id="p7")
    trace = state.on_key_up(KEY_SPACE)
    assert (trace.mode, trace.p0id) == (Mode.TRACE, "p7")
    assert state.on_key_up(KEY_ESC).mode is Mode.IDLE


def test_mouse_up_starts_optimizing(linkage, opt_env, scheduler):
    state = _optimizing(linkage, opt_env)
    assert state.mode is Mode.OPTIMIZING
    assert state.drawn_points == [Point(60.0, 0.0), Point(65.0, 5.0), Point(60.0, 10.0)]
    assert state.task.context.path == tuple(state.drawn_points)
    assert state.task.context.point_id == "p7"
    assert len(scheduler.pending) == 1
    assert state.task.steps == 0


# Optimizing ------------------------------------------------------------

def test_draw_polls_latest_linkage(linkage, opt_env, scheduler, step, renderer):
    state = _optimizing(linkage, opt_env)
    state.draw(renderer, PointerInfo())
    assert state.linkage is linkage
    assert scheduler.run(2) == 2
    state.draw(renderer, PointerInfo())
    assert state.linkage is step.produced[-1]
    assert state.point_path == [Point(2.0, 0.0)]
    # Slot drained: nothing new until the next step completes.
    assert state.task.take_latest() is None


def test_cancel_stops_further_steps(linkage, opt_env, scheduler, step):
    state = _optimizing(linkage, opt_env)
    scheduler.run(3)
    assert state.task.steps == 3
    idle = state.on_key_up(KEY_ESC)
    assert idle.mode is Mode.IDLE
    assert state.stop_optimizing
    assert idle.linkage is step.produced[-1]
    scheduler.run(10)
    assert state.task.steps == 3
    assert len(step.produced) == 3
    assert not scheduler.pending


def test_cancel_before_first_step_runs_nothing(linkage, opt_env, scheduler, step):
    state = _optimizing(linkage, opt_env)
    state.task.cancel()
    scheduler.run(5)
    assert state.task.steps == 0
    assert step.produced == []


def test_space_carries_optimized_linkage_into_trace(linkage, opt_env, scheduler, step):
    state = _optimizing(linkage, opt_env)
    scheduler.run(1)
    trace = state.on_key_up(KEY_SPACE)
    assert (trace.mode, trace.p0id) == (Mode.TRACE, "p7")
    assert trace.linkage is step.produced[0]
    assert trace.task is None


def test_any_key_up_cancels(linkage, opt_env, scheduler):
    state = _optimizing(linkage, opt_env)
    assert state.on_key_up(ord("Q")) is None
    assert state.stop_optimizing
    scheduler.run(5)
    assert state.task.steps == 0


def test_failing_step_stops_task(linkage, scheduler):
    step = StepStub(fail_at=2)
    env = StateEnv(settings=EditorSettings(), schedule=scheduler, optimize=step)
    state = _optimizing(linkage, env)
    scheduler.run(5)
    assert state.task.steps == 1
    assert state.task.error == "solver diverged"
    assert state.stop_optimizing
    assert not scheduler.pending
    trace = state.on_key_up(KEY_SPACE)
    assert trace.linkage is step.produced[0]


def test_optimized_linkage_keeps_speed_scale(scheduler):
    lk = demo_linkage()
    lk.scale_speed(2.0)
    env = StateEnv(settings=EditorSettings(optimizer_seed=5), schedule=scheduler)
    drawing = make_state(Mode.DRAW_OPTIMIZE_PATH, lk, env, p0id="p5")
    for p in drawing.point_path[::6]:
        drawing.on_mouse_drag(translate(p, 5.0, 0.0))
    state = drawing.on_mouse_up(Point(0.0, 0.0))
    assert state.task.context.linkage.speed_scale == pytest.approx(2.0)
    scheduler.run(3)
    trace = state.on_key_up(KEY_SPACE)
    assert trace.mode is Mode.TRACE
    assert trace.linkage.speed_scale == pytest.approx(2.0)
