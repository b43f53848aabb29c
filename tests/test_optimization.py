import json
from dataclasses import replace

import pytest

from linkage_sketch.core.geometry import Point, translate
from linkage_sketch.core.linkage import demo_linkage
from linkage_sketch.core.optimization import (
    LinkageOptContext,
    OptimizationLog,
    OptimizationTask,
    design_variables,
    optimize_step,
    score_linkage,
)


@pytest.fixture
def demo():
    return demo_linkage()


def _context(lk, shift=(6.0, -4.0), seed=7):
    target = [translate(p, *shift) for p in lk.get_path("p5", samples=24)]
    return LinkageOptContext(
        path=target,
        linkage_spec=lk.spec,
        point_id="p5",
        positions=lk.positions,
        seed=seed,
    )


def test_design_variables_skip_rotary_reference(demo):
    variables = design_variables(demo)
    assert ("ground", "p0") in variables
    assert ("ground", "p3") in variables
    assert ("ground", "p1") not in variables
    assert ("bar", "p0", "p2") in variables
    assert ("bar", "p4", "p5") in variables


def test_score_is_zero_on_own_path(demo):
    assert score_linkage(demo, demo.get_path("p5"), "p5") == pytest.approx(0.0, abs=1e-6)
    assert score_linkage(demo, demo.get_path("p5"), "p3") == float("inf")


def test_context_builds_its_own_linkage(demo):
    ctx = _context(demo)
    assert ctx.linkage is not demo
    assert ctx.linkage.spec is not demo.spec
    assert isinstance(ctx.path, tuple)
    assert all(isinstance(p, Point) for p in ctx.path)


def test_step_is_pure(demo):
    ctx = _context(demo)
    before = ctx.linkage.spec.to_dict()
    positions = dict(ctx.linkage.positions)
    nxt = optimize_step(ctx)
    assert nxt is not ctx
    assert ctx.iteration == 0
    assert ctx.linkage.spec.to_dict() == before
    assert ctx.linkage.positions == positions
    assert demo.spec.to_dict() == before


def test_score_never_increases(demo):
    ctx = _context(demo)
    scores = []
    for _ in range(12):
        ctx = optimize_step(ctx)
        scores.append(ctx.score)
    assert ctx.iteration == 12
    assert all(b <= a for a, b in zip(scores, scores[1:]))
    assert scores[-1] < float("inf")


def test_seeded_steps_are_reproducible(demo):
    a = b = _context(demo, seed=3)
    for _ in range(5):
        a = optimize_step(a)
        b = optimize_step(b)
    assert a.score == b.score


def test_step_without_target_only_counts(demo):
    ctx = replace(_context(demo), path=())
    nxt = optimize_step(ctx)
    assert nxt.iteration == 1
    assert nxt.linkage is ctx.linkage


class _Scheduler:
    def __init__(self):
        self.pending = []

    def __call__(self, fn):
        self.pending.append(fn)

    def run(self, n):
        for _ in range(n):
            if not self.pending:
                return
            self.pending.pop(0)()


def _counting_step(ctx):
    return replace(ctx, iteration=ctx.iteration + 1, score=1.0 / (ctx.iteration + 1))


def test_task_runs_one_step_per_turn(demo):
    sched = _Scheduler()
    task = OptimizationTask(_context(demo), step=_counting_step, schedule=sched)
    task.start()
    task.start()
    assert len(sched.pending) == 1
    sched.run(4)
    assert task.steps == 4
    assert task.context.iteration == 4


def test_task_publishes_only_improved_linkages(demo):
    sched = _Scheduler()
    task = OptimizationTask(_context(demo), step=_counting_step, schedule=sched)
    task.start()
    sched.run(3)
    assert task.take_latest() is None

    def improving(ctx):
        return replace(ctx, linkage=ctx.linkage.copy(), iteration=ctx.iteration + 1)

    sched = _Scheduler()
    task = OptimizationTask(_context(demo), step=improving, schedule=sched)
    task.start()
    sched.run(1)
    latest = task.take_latest()
    assert latest is task.context.linkage
    assert task.take_latest() is None


def test_context_keeps_speed_scale(demo):
    demo.scale_speed(2.0)
    ctx = replace(_context(demo), linkage=None, speed_scale=demo.speed_scale)
    assert ctx.linkage.speed_scale == pytest.approx(2.0)
    for _ in range(4):
        ctx = optimize_step(ctx)
    assert ctx.linkage.speed_scale == pytest.approx(2.0)


def test_task_writes_jsonl_log(demo, tmp_path):
    log_path = tmp_path / "logs" / "opt.jsonl"
    sched = _Scheduler()
    task = OptimizationTask(
        _context(demo),
        step=_counting_step,
        schedule=sched,
        log=OptimizationLog(str(log_path)),
    )
    task.start()
    sched.run(3)
    task.cancel()
    sched.run(1)
    lines = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert [r["iteration"] for r in lines] == [1, 2, 3]
    assert all(r["status"] == "success" for r in lines)
    assert "timestamp" in lines[0]


def test_task_logs_failure(demo, tmp_path):
    log_path = tmp_path / "opt.jsonl"

    def boom(ctx):
        raise ValueError("bad geometry\nmore detail")

    sched = _Scheduler()
    task = OptimizationTask(_context(demo), step=boom, schedule=sched, log=OptimizationLog(str(log_path)))
    task.start()
    sched.run(2)
    assert task.cancelled
    assert task.error == "bad geometry"
    record = json.loads(log_path.read_text(encoding="utf-8").strip())
    assert record["status"] == "fail"
    assert record["error"] == "bad geometry"


def test_disabled_log_is_silent(tmp_path):
    log = OptimizationLog(None)
    log.log({"iteration": 1})
    log.close()
    assert list(tmp_path.iterdir()) == []
