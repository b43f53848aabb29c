# -*- coding: utf-8 -*-
"""Coarse editing phases.

A small automaton over four input symbols describing the intended editing
phases. It is not driven at runtime; ``PHASE_OF_MODE`` places every editing
mode of the concrete machine in one phase so the two can be compared.
Phases without a row (the triangle phases and ROTARY_LAND) are terminal in
the table: any input leaves them undefined.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from .states import Mode


class EditPhase(Enum):
    INITIAL = 0
    GROUND = 1
    POINT = 2
    SEGMENT = 3
    GROUND_POINT = 4
    GROUND_GROUND = 5
    GROUND_TRIANGLE_1 = 6
    GROUND_TRIANGLE_2 = 7
    DYNAMIC_TRIANGLE = 8
    ROTARY_HOVER = 9
    ROTARY_LAND = 10
    ROTARY_SELECTED = 11


class EditInput(Enum):
    POINT = 0
    SEGMENT = 1
    SPACE = 2
    ROTARY = 3


P, S, SP, R = EditInput.POINT, EditInput.SEGMENT, EditInput.SPACE, EditInput.ROTARY

EDIT_PHASE_TRANSITIONS: Dict[EditPhase, Dict[EditInput, EditPhase]] = {
    EditPhase.INITIAL: {
        P: EditPhase.POINT, S: EditPhase.SEGMENT, SP: EditPhase.GROUND, R: EditPhase.ROTARY_SELECTED,
    },
    EditPhase.POINT: {
        P: EditPhase.SEGMENT, S: EditPhase.INITIAL, SP: EditPhase.GROUND_POINT, R: EditPhase.INITIAL,
    },
    EditPhase.SEGMENT: {
        P: EditPhase.INITIAL, S: EditPhase.SEGMENT, SP: EditPhase.DYNAMIC_TRIANGLE, R: EditPhase.INITIAL,
    },
    EditPhase.GROUND: {
        P: EditPhase.INITIAL, S: EditPhase.INITIAL, SP: EditPhase.GROUND_GROUND, R: EditPhase.INITIAL,
    },
    EditPhase.GROUND_POINT: {
        P: EditPhase.DYNAMIC_TRIANGLE, S: EditPhase.INITIAL, SP: EditPhase.GROUND_TRIANGLE_1, R: EditPhase.INITIAL,
    },
    EditPhase.GROUND_GROUND: {
        P: EditPhase.GROUND_TRIANGLE_2, S: EditPhase.INITIAL, SP: EditPhase.INITIAL, R: EditPhase.INITIAL,
    },
    EditPhase.ROTARY_HOVER: {
        P: EditPhase.INITIAL, S: EditPhase.INITIAL, SP: EditPhase.ROTARY_LAND, R: EditPhase.INITIAL,
    },
    EditPhase.ROTARY_SELECTED: {
        P: EditPhase.POINT, S: EditPhase.SEGMENT, SP: EditPhase.GROUND, R: EditPhase.ROTARY_SELECTED,
    },
}
del P, S, SP, R

# Editing modes only; the trace/optimize/unpaused submachines have no phase.
PHASE_OF_MODE: Dict[Mode, EditPhase] = {
    Mode.IDLE: EditPhase.INITIAL,
    Mode.CANVAS_1: EditPhase.GROUND,
    Mode.CANVAS_2: EditPhase.GROUND_GROUND,
    Mode.CANVAS_POINT: EditPhase.GROUND_POINT,
    Mode.GROUND_PRESSED: EditPhase.POINT,
    Mode.POINT_PRESSED: EditPhase.POINT,
    Mode.POINT_SELECTED: EditPhase.POINT,
    Mode.TWO_POINTS_SELECTED: EditPhase.SEGMENT,
    Mode.POINT_CANVAS: EditPhase.GROUND_POINT,
    Mode.SEGMENT_SELECTED: EditPhase.SEGMENT,
    Mode.ROTARY_PRESSED: EditPhase.ROTARY_HOVER,
    Mode.ROTARY_SELECTED: EditPhase.ROTARY_SELECTED,
    Mode.PLACING_ROTARY: EditPhase.ROTARY_HOVER,
}


def next_phase(phase: EditPhase, symbol: EditInput) -> Optional[EditPhase]:
    return EDIT_PHASE_TRANSITIONS.get(phase, {}).get(symbol)


def phase_of(mode: Mode) -> Optional[EditPhase]:
    return PHASE_OF_MODE.get(mode)
