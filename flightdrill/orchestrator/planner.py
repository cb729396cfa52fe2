"""Translate formation transitions into per-cadet action queues.

``apply_command_to_simulation`` diffs ``prev_state`` against ``next_state``
(both already produced by ``reduce``) and appends actions to every
cadet's queue. Queues are only ever appended to here; the beat clock is
the only thing that consumes them.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from ..actions import CadetAction, Wait
from ..commands import TURN_COMMANDS, Command, CommandKind
from ..geometry import slot_position
from ..state import (
    FormationType,
    GuidonShiftMode,
    PendingGuidonShift,
    SimulatorState,
    clamp_count,
    normalize_delta,
)
from .cadets import Cadet, CadetSimulation, assign_roles, formation_targets
from .sequences import (
    flank_turn_sequence,
    heading_change_sequence,
    moving_turn_sequence,
    plan_move,
    project_pose,
    rotate_sequence,
    step_length,
    step_sequence,
)

logger = logging.getLogger(__name__)

# (command, formation before the facing) -> (shift mode, walk to the last file?)
# A False target means file 0.
FACING_GUIDON_SHIFTS: dict[tuple[CommandKind, FormationType], tuple[GuidonShiftMode, bool]] = {
    (CommandKind.RIGHT_FACE, FormationType.LINE): (GuidonShiftMode.PIVOT_RIGHT, True),
    (CommandKind.RIGHT_FACE, FormationType.INVERTED_COLUMN): (GuidonShiftMode.STRAIGHT, False),
    (CommandKind.LEFT_FACE, FormationType.LINE): (GuidonShiftMode.PIVOT_LEFT, True),
    (CommandKind.LEFT_FACE, FormationType.COLUMN): (GuidonShiftMode.STRAIGHT, False),
    (CommandKind.ABOUT_FACE, FormationType.LINE): (GuidonShiftMode.STRAIGHT, True),
    (CommandKind.ABOUT_FACE, FormationType.INVERTED_LINE): (GuidonShiftMode.STRAIGHT, False),
}

_STATIONARY_FACINGS = (CommandKind.LEFT_FACE, CommandKind.RIGHT_FACE, CommandKind.ABOUT_FACE)
_COLUMN_TURNS = (
    CommandKind.COLUMN_RIGHT,
    CommandKind.COLUMN_LEFT,
    CommandKind.COLUMN_HALF_RIGHT,
    CommandKind.COLUMN_HALF_LEFT,
    CommandKind.COUNTER_MARCH,
)


def _command_kind(command: Command | Any) -> CommandKind | None:
    raw = getattr(command, "kind", command)
    try:
        return CommandKind(raw)
    except ValueError:
        return None


def _append(cadet: Cadet, actions: list[CadetAction]) -> Cadet:
    if not actions:
        return cadet
    return dataclasses.replace(cadet, action_queue=cadet.action_queue + tuple(actions))


def _append_all(cadets: tuple[Cadet, ...], actions: list[CadetAction]) -> tuple[Cadet, ...]:
    if not actions:
        return cadets
    return tuple(_append(c, actions) for c in cadets)


def _needs_rebuild(prev_state: SimulatorState, next_state: SimulatorState, kind: CommandKind | None) -> bool:
    if kind is CommandKind.FALL_IN:
        return True
    prev_comp, next_comp = prev_state.composition, next_state.composition
    if clamp_count(prev_comp.element_count) != clamp_count(next_comp.element_count):
        return True
    if clamp_count(prev_comp.rank_count) != clamp_count(next_comp.rank_count):
        return True
    if prev_state.interval is not next_state.interval:
        return True
    return kind not in TURN_COMMANDS and prev_state.formation_type is not next_state.formation_type


def rebuild_formation(simulation: CadetSimulation, state: SimulatorState) -> CadetSimulation:
    """Plan every cadet's walk into its regulation slot at ``state``.

    The guidon bearer is sent to the guide slot and everybody else takes
    the remaining slots in fall-in order. Planning starts from where each
    cadet will be once its current queue drains.
    """
    cadets = simulation.cadets
    targets = formation_targets(state, len(cadets))
    bearer = simulation.guidon
    order = ([bearer] if bearer is not None else []) + [c for c in cadets if c is not bearer]
    assignment = {c.id: t for c, t in zip(order, targets)}
    step_len = step_length(state)

    rebuilt: list[Cadet] = []
    moving = 0
    for cadet in cadets:
        target = assignment[cadet.id]
        x, y, heading = project_pose(cadet)
        actions = plan_move(x, y, heading, target.x, target.y, state.heading_deg, step_len)
        if actions:
            moving += 1
        rebuilt.append(dataclasses.replace(_append(cadet, actions), rank=target.rank, file=target.file))

    logger.debug(f"Rebuild: {moving}/{len(cadets)} cadets moving into {state.formation_type.value}")
    return dataclasses.replace(
        simulation,
        cadets=assign_roles(rebuilt, state),
        pending_guidon_shift=None,
    )


def _shift_guidon(
    cadets: tuple[Cadet, ...], shift: PendingGuidonShift, state: SimulatorState, step_len: float
) -> tuple[Cadet, ...]:
    files = clamp_count(state.composition.element_count)
    target_file = min(max(0, shift.target_file), files - 1)
    out: list[Cadet] = []
    for cadet in cadets:
        if not cadet.is_guidon or cadet.file == target_file:
            out.append(cadet)
            continue
        # Offset between the two slots, applied from wherever the halt leaves the guidon.
        x, y, heading = project_pose(cadet)
        sx, sy = slot_position(state, cadet.rank, cadet.file)
        tx, ty = slot_position(state, cadet.rank, target_file)
        actions = plan_move(x, y, heading, x + tx - sx, y + ty - sy, heading, step_len)
        logger.debug(f"Guidon {cadet.id} shifts {shift.mode.value}: file {cadet.file} -> {target_file}")
        out.append(dataclasses.replace(_append(cadet, actions), file=target_file))
    return tuple(out)


def _facing_shift(
    kind: CommandKind, prev_state: SimulatorState, next_state: SimulatorState
) -> PendingGuidonShift | None:
    files = clamp_count(next_state.composition.element_count)
    entry = FACING_GUIDON_SHIFTS.get((kind, prev_state.formation_type))
    if entry is None or files <= 1:
        return None
    mode, to_last = entry
    return PendingGuidonShift(mode=mode, target_file=files - 1 if to_last else 0)


def _needs_foot_delay(simulation: CadetSimulation, prev_state: SimulatorState, kind: CommandKind) -> bool:
    """True when the foot due next is the wrong one for this turn.

    The left foot is due on even beat counts. Right Flank and To the Rear
    execute on the right foot; Left Flank on the left.
    """
    if not prev_state.is_marching:
        return False
    left_due = simulation.step_count % 2 == 0
    if kind is CommandKind.LEFT_FLANK:
        return not left_due
    return left_due


def apply_command_to_simulation(
    simulation: CadetSimulation,
    prev_state: SimulatorState,
    next_state: SimulatorState,
    command: Command,
    half_step: bool | None = None,
) -> CadetSimulation:
    kind = _command_kind(command)
    step_len = step_length(next_state)
    delta = normalize_delta(next_state.heading_deg - prev_state.heading_deg)
    cadets = simulation.cadets

    if _needs_rebuild(prev_state, next_state, kind):
        return rebuild_formation(simulation, next_state)

    if kind is CommandKind.FORWARD_MARCH and not prev_state.is_marching and next_state.is_marching:
        # One beat of stillness before stepping off.
        cadets = _append_all(cadets, [Wait(), *step_sequence(step_len, step_len)])
        return dataclasses.replace(simulation, cadets=cadets, accumulator_ms=0.0, step_count=0)

    if kind is CommandKind.HALT and prev_state.is_marching and not next_state.is_marching:
        cadets = _append_all(cadets, step_sequence(2 * step_len, step_len))
        shift = simulation.pending_guidon_shift or prev_state.pending_guidon_shift
        if shift is not None:
            cadets = _shift_guidon(cadets, shift, next_state, step_len)
        return dataclasses.replace(simulation, cadets=cadets, pending_guidon_shift=None)

    if kind in _STATIONARY_FACINGS or kind is CommandKind.ROTATE_FALL_IN:
        cadets = _append_all(cadets, rotate_sequence(delta))
        pending = simulation.pending_guidon_shift
        if kind is not CommandKind.ROTATE_FALL_IN and not prev_state.is_marching:
            pending = _facing_shift(kind, prev_state, next_state) or pending
        return dataclasses.replace(simulation, cadets=cadets, pending_guidon_shift=pending)

    if kind in (CommandKind.LEFT_FLANK, CommandKind.RIGHT_FLANK, CommandKind.TO_THE_REAR):
        if _needs_foot_delay(simulation, prev_state, kind):
            foot = "left" if kind is CommandKind.LEFT_FLANK else "right"
            logger.debug(f"{kind.value}: one more step to land on the {foot} foot")
            cadets = _append_all(cadets, step_sequence(step_len, step_len))
        if kind is CommandKind.TO_THE_REAR:
            cadets = _append_all(cadets, moving_turn_sequence(delta, step_len, half_step))
            return dataclasses.replace(simulation, cadets=cadets)
        cadets = _append_all(cadets, flank_turn_sequence(delta, step_len))
        return dataclasses.replace(simulation, cadets=cadets, pending_guidon_shift=next_state.pending_guidon_shift)

    if kind in _COLUMN_TURNS:
        cadets = _append_all(cadets, moving_turn_sequence(delta, step_len, half_step))
        return dataclasses.replace(simulation, cadets=cadets)

    cadets = _append_all(cadets, heading_change_sequence(delta, step_len, half_step))
    return dataclasses.replace(simulation, cadets=cadets)


def snap_cadets_to_formation(simulation: CadetSimulation, state: SimulatorState) -> CadetSimulation:
    """Queue a walk from each cadet's projected pose to its own (rank, file) slot."""
    step_len = step_length(state)
    cadets = []
    for cadet in simulation.cadets:
        x, y, heading = project_pose(cadet)
        tx, ty = slot_position(state, cadet.rank, cadet.file)
        cadets.append(_append(cadet, plan_move(x, y, heading, tx, ty, state.heading_deg, step_len)))
    return dataclasses.replace(simulation, cadets=tuple(cadets))
