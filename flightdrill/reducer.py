"""Formation state machine encoding drill doctrine.

``reduce`` is total: illegal or unknown commands return the state unchanged
together with an error string, never an exception.
"""

from __future__ import annotations

import dataclasses
import logging
import math

from .commands import AnimationHints, Command, CommandKind, Effects, ReduceResult
from .config import DEFAULT_DRILL_CONFIG, DrillConfig
from .state import (
    FormationType,
    GuideSide,
    GuidonShiftMode,
    Interval,
    Motion,
    PendingGuidonShift,
    SimulatorState,
    normalize_heading,
)

logger = logging.getLogger(__name__)

HALTED_ONLY = "Command only valid at the halt"
MARCHING_ONLY = "Command only valid while marching"

# Facing/flanking right walks this cycle forward; facing left walks it backward.
_RIGHT_CYCLE: dict[FormationType, FormationType] = {
    FormationType.LINE: FormationType.COLUMN,
    FormationType.COLUMN: FormationType.INVERTED_LINE,
    FormationType.INVERTED_LINE: FormationType.INVERTED_COLUMN,
    FormationType.INVERTED_COLUMN: FormationType.LINE,
}
_LEFT_CYCLE: dict[FormationType, FormationType] = {v: k for k, v in _RIGHT_CYCLE.items()}
_ABOUT: dict[FormationType, FormationType] = {
    FormationType.LINE: FormationType.INVERTED_LINE,
    FormationType.INVERTED_LINE: FormationType.LINE,
    FormationType.COLUMN: FormationType.INVERTED_COLUMN,
    FormationType.INVERTED_COLUMN: FormationType.COLUMN,
}

_HALF_STEP = Effects(animation_hints=AnimationHints(use_half_step=True))


def next_formation_right(formation: FormationType) -> FormationType:
    return _RIGHT_CYCLE[formation]


def next_formation_left(formation: FormationType) -> FormationType:
    return _LEFT_CYCLE[formation]


def next_formation_about(formation: FormationType) -> FormationType:
    return _ABOUT[formation]


def _reject(state: SimulatorState, command: Command, reason: str) -> ReduceResult:
    kind = getattr(command.kind, "value", command.kind)
    logger.debug(f"Rejected {kind} ({state.formation_type.value}, {state.motion.value}): {reason}")
    return ReduceResult(next=state, error=reason)


def _turn(state: SimulatorState, delta_deg: int, **changes) -> SimulatorState:
    return dataclasses.replace(state, heading_deg=normalize_heading(state.heading_deg + delta_deg), **changes)


def build_flank_guidon_shift(
    next_formation: FormationType, element_count: int, guide_side: GuideSide
) -> PendingGuidonShift | None:
    """Where the guidon walks to once the flight halts after a flank."""
    files = max(1, int(element_count))
    if files <= 1:
        return None
    line_base = 0 if guide_side is GuideSide.LEFT else files - 1
    column_base = files - 1 if guide_side is GuideSide.LEFT else 0
    target_file = line_base if next_formation is FormationType.LINE else column_base
    is_line = next_formation in (FormationType.LINE, FormationType.INVERTED_LINE)
    mode = GuidonShiftMode.STRAIGHT if is_line else GuidonShiftMode.AUTO
    return PendingGuidonShift(mode=mode, target_file=target_file)


def reduce(state: SimulatorState, command: Command, config: DrillConfig | None = None) -> ReduceResult:
    cfg = config or DEFAULT_DRILL_CONFIG
    try:
        kind = CommandKind(command.kind)
    except ValueError:
        return _reject(state, command, "Unknown command")
    halted = state.motion is Motion.HALTED

    if kind is CommandKind.FALL_IN:
        composition = state.composition
        if command.elements is not None:
            try:
                requested = math.floor(command.elements)
            except (TypeError, ValueError, OverflowError):
                return _reject(state, command, f"Invalid element count: {command.elements!r}")
            elements = max(1, min(cfg.max_fall_in_elements, requested))
            composition = dataclasses.replace(composition, element_count=elements)
        nxt = dataclasses.replace(
            state,
            formation_type=FormationType.LINE,
            motion=Motion.HALTED,
            interval=Interval.NORMAL,
            guide_side=GuideSide.LEFT,
            heading_deg=0,
            composition=composition,
            pending_guidon_shift=None,
        )
        return ReduceResult(next=nxt)

    if kind is CommandKind.ROTATE_FALL_IN:
        if not halted:
            return _reject(state, command, HALTED_ONLY)
        return ReduceResult(next=_turn(state, 90, pending_guidon_shift=None))

    if kind is CommandKind.NO_OP:
        return ReduceResult(next=state, error="No operation")

    if kind is CommandKind.FORWARD_MARCH:
        if not halted:
            return _reject(state, command, "Already marching")
        nxt = dataclasses.replace(state, motion=Motion.MARCHING)
        return ReduceResult(next=nxt, effects=Effects(animation_hints=AnimationHints(use_half_step=False)))

    if kind is CommandKind.HALT:
        if halted:
            return _reject(state, command, "Already halted")
        nxt = dataclasses.replace(state, motion=Motion.HALTED, pending_guidon_shift=None)
        return ReduceResult(next=nxt, effects=Effects(animation_hints=AnimationHints(snap_align_on_halt=True)))

    if kind in (CommandKind.LEFT_FACE, CommandKind.RIGHT_FACE, CommandKind.ABOUT_FACE):
        if not halted:
            return _reject(state, command, HALTED_ONLY)
        if kind is CommandKind.LEFT_FACE:
            delta, formation = -90, next_formation_left(state.formation_type)
        elif kind is CommandKind.RIGHT_FACE:
            delta, formation = 90, next_formation_right(state.formation_type)
        else:
            delta, formation = 180, next_formation_about(state.formation_type)
        return ReduceResult(next=_turn(state, delta, formation_type=formation, pending_guidon_shift=None))

    if kind in (CommandKind.RIGHT_FLANK, CommandKind.LEFT_FLANK, CommandKind.TO_THE_REAR):
        if halted and not cfg.allow_flank_from_halt:
            return _reject(state, command, MARCHING_ONLY)
        if kind is CommandKind.TO_THE_REAR:
            nxt = _turn(
                state,
                180,
                motion=Motion.MARCHING,
                formation_type=next_formation_about(state.formation_type),
            )
            return ReduceResult(next=nxt, effects=_HALF_STEP)
        if kind is CommandKind.RIGHT_FLANK:
            delta, formation = 90, next_formation_right(state.formation_type)
        else:
            delta, formation = -90, next_formation_left(state.formation_type)
        shift = build_flank_guidon_shift(formation, state.composition.element_count, state.guide_side)
        nxt = _turn(state, delta, motion=Motion.MARCHING, formation_type=formation, pending_guidon_shift=shift)
        return ReduceResult(next=nxt)

    if kind in (
        CommandKind.COLUMN_RIGHT,
        CommandKind.COLUMN_LEFT,
        CommandKind.COLUMN_HALF_RIGHT,
        CommandKind.COLUMN_HALF_LEFT,
    ):
        if halted:
            return _reject(state, command, MARCHING_ONLY)
        delta = {
            CommandKind.COLUMN_RIGHT: 90,
            CommandKind.COLUMN_LEFT: -90,
            CommandKind.COLUMN_HALF_RIGHT: 45,
            CommandKind.COLUMN_HALF_LEFT: -45,
        }[kind]
        return ReduceResult(next=_turn(state, delta), effects=_HALF_STEP)

    if kind is CommandKind.COUNTER_MARCH:
        if halted:
            return _reject(state, command, MARCHING_ONLY)
        return ReduceResult(next=_turn(state, 180), effects=_HALF_STEP)

    if kind is CommandKind.GUIDE_LEFT:
        return ReduceResult(next=dataclasses.replace(state, guide_side=GuideSide.LEFT))

    if kind is CommandKind.GUIDE_RIGHT:
        return ReduceResult(next=dataclasses.replace(state, guide_side=GuideSide.RIGHT))

    if kind is CommandKind.AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS:
        if not halted:
            return _reject(state, command, HALTED_ONLY)
        return ReduceResult(next=dataclasses.replace(state, interval=Interval.CLOSE))

    if kind is CommandKind.READY_FRONT:
        return ReduceResult(next=state)

    if kind in (CommandKind.OPEN_RANKS, CommandKind.CLOSE_RANKS):
        if state.formation_type is not FormationType.LINE or not halted:
            verb = "Open" if kind is CommandKind.OPEN_RANKS else "Close"
            return _reject(state, command, f"{verb} Ranks valid only in halted line")
        return ReduceResult(next=state)

    return _reject(state, command, "Unknown command")
