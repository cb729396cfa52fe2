from __future__ import annotations

import math
from dataclasses import dataclass

from .constants import (
    DEFAULT_CADENCE_SPM,
    DEFAULT_COVER_IN,
    DEFAULT_INTERVAL_NORMAL_IN,
    DEFAULT_STEP_LEN_IN,
    MAX_CADETS,
    MAX_FALL_IN_ELEMENTS,
    MAX_SETUP_ELEMENTS,
    MIN_CADETS,
)
from .state import DEFAULT_SPACING, FlightComposition, Motion, SimulatorState, Spacing, create_initial_state


@dataclass(frozen=True)
class DrillConfig:
    # Flanks and To the Rear step off from the halt (True) or require a
    # prior Forward, MARCH (False).
    allow_flank_from_halt: bool = True
    max_fall_in_elements: int = MAX_FALL_IN_ELEMENTS


DEFAULT_DRILL_CONFIG = DrillConfig()


@dataclass(frozen=True)
class CadenceSpec:
    name: str
    spm: float
    step_len_in: float


QUICK_TIME = CadenceSpec(name="quick_time", spm=120, step_len_in=24.0)

DOUBLE_TIME = CadenceSpec(name="double_time", spm=180, step_len_in=30.0)

# In place: keeps the beat but covers no ground.
MARK_TIME = CadenceSpec(name="mark_time", spm=120, step_len_in=0.0)

HALF_STEP = CadenceSpec(name="half_step", spm=120, step_len_in=12.0)

CADENCES: dict[str, CadenceSpec] = {c.name: c for c in (QUICK_TIME, DOUBLE_TIME, MARK_TIME, HALF_STEP)}


def get_cadence(name: str) -> CadenceSpec:
    key = name.strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return CADENCES[key]
    except KeyError:
        raise ValueError(f"Unknown cadence {name!r}; expected one of {sorted(CADENCES)}") from None


@dataclass(frozen=True)
class FlightSetup:
    """Drill pad setup: how many cadets fall in, and how they are spaced."""

    cadet_count: int = 13
    elements: int = 3
    interval_in: float = DEFAULT_INTERVAL_NORMAL_IN
    cover_in: float = DEFAULT_COVER_IN
    cadence_spm: float = DEFAULT_CADENCE_SPM
    step_len_in: float = DEFAULT_STEP_LEN_IN

    @property
    def clamped_cadets(self) -> int:
        return min(MAX_CADETS, max(MIN_CADETS, math.floor(self.cadet_count) or MIN_CADETS))

    @property
    def clamped_elements(self) -> int:
        return min(MAX_SETUP_ELEMENTS, max(1, math.floor(self.elements) or 1))


def create_state_from_setup(setup: FlightSetup) -> SimulatorState:
    """Halted line at normal interval, deep enough to hold every cadet.

    The guide stands alone in the front rank, so the remaining cadets need
    ``ceil((cadets - 1) / elements)`` further ranks.
    """
    elements = setup.clamped_elements
    cadets = setup.clamped_cadets
    rank_count = max(1, 1 + math.ceil(max(0, cadets - 1) / elements))
    spacing = Spacing(
        cover_in=max(1.0, setup.cover_in or DEFAULT_SPACING.cover_in),
        interval_normal_in=max(1.0, setup.interval_in or DEFAULT_SPACING.interval_normal_in),
        interval_close_in=DEFAULT_SPACING.interval_close_in,
    )
    return create_initial_state(
        motion=Motion.HALTED,
        heading_deg=0,
        composition=FlightComposition(element_count=elements, rank_count=rank_count),
        spacing=spacing,
        cadence_spm=setup.cadence_spm,
        step_len_in=setup.step_len_in,
    )
