# -*- coding: utf-8 -*-
"""Point validation for edit states.

A state that is about to commit geometry must not accept a candidate point
that coincides with a point it already holds: that would create zero-length
bars, triangles with a repeated vertex, or duplicate segments. The guard here
wraps a handler so that such candidates are absorbed (the handler is never
called and the state stays as it is).

Two operations carry candidates:

- ``on_canvas_up(point)``: the candidate is the free point itself;
- ``on_any_point_up(pid)``: the candidate is the existing point ``pid``,
  looked up on the state's linkage, and ``pid`` must also differ from every
  reference id.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .geometry import Point, as_point, within

DEFAULT_POINT_TOLERANCE = 1.0

Handler = Callable[..., Any]


def _canvas_candidate(state, point) -> Tuple[Point, Optional[str]]:
    return as_point(point), None


def _point_candidate(state, pid) -> Tuple[Point, Optional[str]]:
    return state.linkage.get_point(pid), pid


CANDIDATE_RESOLVERS: Dict[str, Callable[[Any, Any], Tuple[Point, Optional[str]]]] = {
    "on_canvas_up": _canvas_candidate,
    "on_any_point_up": _point_candidate,
}


def point_guard(
    points: Iterable[Point],
    ids: Iterable[str] = (),
    tolerance: float = DEFAULT_POINT_TOLERANCE,
) -> Callable[[str, Handler], Handler]:
    """Build a guard over fixed reference points/ids.

    Returns ``guard(op_name, handler) -> handler'``. References are captured
    here, so later model changes do not move them.
    """
    refs = tuple(as_point(p) for p in points)
    ref_ids = frozenset(ids)
    tol = float(tolerance)

    def guard(op_name: str, handler: Handler) -> Handler:
        try:
            resolve = CANDIDATE_RESOLVERS[op_name]
        except KeyError:
            raise ValueError(f"Operation {op_name!r} has no point candidate to validate") from None

        @wraps(handler)
        def guarded(state, arg):
            candidate, cid = resolve(state, arg)
            if cid is not None and cid in ref_ids:
                return None
            if within(candidate, refs, tol):
                return None
            return handler(state, arg)

        return guarded

    return guard


@dataclass(frozen=True)
class ValidationSpec:
    """Reference geometry plus the operation names it guards."""

    points: Tuple[Point, ...] = ()
    ids: Tuple[str, ...] = ()
    operations: Tuple[str, ...] = ()
    tolerance: float = DEFAULT_POINT_TOLERANCE

    def wrap(self, handlers: Dict[str, Handler]) -> Dict[str, Handler]:
        """Guard every named operation found in ``handlers``; others pass through untouched."""
        guard = point_guard(self.points, self.ids, self.tolerance)
        return {name: guard(name, handlers[name]) for name in self.operations if name in handlers}
