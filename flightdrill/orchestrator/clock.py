"""Fixed-beat simulation clock.

Elapsed time is accumulated and drained one beat at a time, so the result
depends only on the total time fed in, never on how it was chunked.
"""

from __future__ import annotations

import dataclasses
from typing import Callable

from ..actions import Step
from ..constants import MIN_CADENCE_SPM, MS_PER_MINUTE
from ..state import SimulatorState
from .cadets import Cadet, CadetSimulation
from .sequences import advance_pose, step_length

BeatCallback = Callable[[CadetSimulation], None]


def beat_interval_ms(state: SimulatorState) -> float:
    return MS_PER_MINUTE / max(MIN_CADENCE_SPM, state.cadence_spm or 0)


def _perform_beat(cadets: tuple[Cadet, ...], state: SimulatorState) -> tuple[tuple[Cadet, ...], bool]:
    default_step = Step(distance_in=step_length(state))
    translated = False
    out: list[Cadet] = []
    for cadet in cadets:
        if cadet.action_queue:
            action, rest = cadet.action_queue[0], cadet.action_queue[1:]
        elif state.is_marching:
            action, rest = default_step, ()
        else:
            out.append(cadet)
            continue
        x, y, heading, moved = advance_pose(cadet.x, cadet.y, cadet.heading_deg, action)
        translated = translated or moved
        out.append(dataclasses.replace(cadet, x=x, y=y, heading_deg=heading, action_queue=rest))
    return tuple(out), translated


def step_beat(simulation: CadetSimulation, state: SimulatorState) -> CadetSimulation:
    """Drain exactly one beat now, leaving the accumulator untouched."""
    cadets, translated = _perform_beat(simulation.cadets, state)
    return dataclasses.replace(
        simulation,
        cadets=cadets,
        step_count=simulation.step_count + (1 if translated else 0),
    )


def advance_simulation(
    simulation: CadetSimulation,
    state: SimulatorState,
    dt_ms: float,
    on_beat: BeatCallback | None = None,
) -> CadetSimulation:
    """Advance by ``dt_ms`` of wall time; zero or more beats may fire.

    ``on_beat`` is called with the simulation after each beat.
    """
    if dt_ms <= 0:
        return simulation

    if _idle_at_halt(simulation, state):
        return _reset_parity(simulation)

    beat_ms = beat_interval_ms(state)
    accumulator = simulation.accumulator_ms + dt_ms
    while accumulator >= beat_ms:
        accumulator -= beat_ms
        simulation = step_beat(simulation, state)
        if on_beat is not None:
            on_beat(simulation)
        # The halt can finish draining mid-call; settle the same way a later call would.
        if _idle_at_halt(simulation, state):
            return _reset_parity(simulation)
    return dataclasses.replace(simulation, accumulator_ms=accumulator)


def _idle_at_halt(simulation: CadetSimulation, state: SimulatorState) -> bool:
    return not state.is_marching and simulation.queues_empty


def _reset_parity(simulation: CadetSimulation) -> CadetSimulation:
    # Idle at the halt: keep footfall parity from drifting between halts.
    if simulation.accumulator_ms == 0 and simulation.step_count == 0:
        return simulation
    return dataclasses.replace(simulation, accumulator_ms=0.0, step_count=0)
