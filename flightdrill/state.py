"""Formation-level state of a flight.

``SimulatorState`` is an immutable value: the reducer never edits one in
place, it returns a replacement built with ``dataclasses.replace``.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_CADENCE_SPM,
    DEFAULT_COVER_IN,
    DEFAULT_ELEMENT_COUNT,
    DEFAULT_INTERVAL_CLOSE_IN,
    DEFAULT_INTERVAL_NORMAL_IN,
    DEFAULT_RANK_COUNT,
    DEFAULT_STEP_LEN_IN,
)


class FormationType(str, Enum):
    LINE = "line"
    COLUMN = "column"
    INVERTED_LINE = "inverted-line"
    INVERTED_COLUMN = "inverted-column"


class Interval(str, Enum):
    NORMAL = "normal"
    CLOSE = "close"


class Motion(str, Enum):
    HALTED = "halted"
    MARCHING = "marching"


class GuideSide(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class GuidonShiftMode(str, Enum):
    PIVOT_RIGHT = "pivot-right"
    PIVOT_LEFT = "pivot-left"
    STRAIGHT = "straight"
    AUTO = "auto"


@dataclass(frozen=True)
class Spacing:
    cover_in: float = DEFAULT_COVER_IN  # front-to-back
    interval_normal_in: float = DEFAULT_INTERVAL_NORMAL_IN  # lateral, normal interval
    interval_close_in: float = DEFAULT_INTERVAL_CLOSE_IN  # lateral, close interval


DEFAULT_SPACING = Spacing()


@dataclass(frozen=True)
class FlightComposition:
    """Shape of the flight grid.

    An element is one file of the formation; a rank is one row of cadets
    abreast. ``element_count`` is typically 2-4 (1 forms a single file).
    """

    element_count: int = DEFAULT_ELEMENT_COUNT
    rank_count: int = DEFAULT_RANK_COUNT


@dataclass(frozen=True)
class StateMetadata:
    scenario_name: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PendingGuidonShift:
    """Guidon repositioning recorded by a turn and executed on the next HALT."""

    mode: GuidonShiftMode
    target_file: int

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "target_file": self.target_file}


@dataclass(frozen=True)
class SimulatorState:
    formation_type: FormationType = FormationType.LINE
    interval: Interval = Interval.NORMAL
    heading_deg: int = 0  # always in [0, 360)
    motion: Motion = Motion.HALTED
    guide_side: GuideSide = GuideSide.LEFT
    composition: FlightComposition = field(default_factory=FlightComposition)
    cadence_spm: float = DEFAULT_CADENCE_SPM
    step_len_in: float = DEFAULT_STEP_LEN_IN
    spacing: Spacing = DEFAULT_SPACING
    pending_guidon_shift: PendingGuidonShift | None = None
    metadata: StateMetadata | None = None

    @property
    def lateral_in(self) -> float:
        """Distance between adjacent files at the current interval."""
        if self.interval is Interval.CLOSE:
            return self.spacing.interval_close_in
        return self.spacing.interval_normal_in

    @property
    def is_marching(self) -> bool:
        return self.motion is Motion.MARCHING

    def to_dict(self) -> dict[str, Any]:
        return {
            "formation_type": self.formation_type.value,
            "interval": self.interval.value,
            "heading_deg": self.heading_deg,
            "motion": self.motion.value,
            "guide_side": self.guide_side.value,
            "composition": dataclasses.asdict(self.composition),
            "cadence_spm": self.cadence_spm,
            "step_len_in": self.step_len_in,
            "spacing": dataclasses.asdict(self.spacing),
            "pending_guidon_shift": (
                self.pending_guidon_shift.to_dict() if self.pending_guidon_shift is not None else None
            ),
            "metadata": dataclasses.asdict(self.metadata) if self.metadata is not None else None,
        }


def normalize_heading(deg: float) -> int:
    """Round to a whole degree and wrap into [0, 360)."""
    # floor(x + 0.5) rounds halves up, including for negative inputs.
    return int(math.floor(deg + 0.5)) % 360


def normalize_delta(delta: float) -> float:
    """Wrap an angular difference into (-180, 180]."""
    d = (delta + 180.0) % 360.0 - 180.0
    if d == -180.0:
        return 180.0
    return d


def clamp_count(value: float) -> int:
    """Floor a composition count and keep it at least 1."""
    return max(1, math.floor(value))


_ENUM_FIELDS: dict[str, type[Enum]] = {
    "formation_type": FormationType,
    "interval": Interval,
    "motion": Motion,
    "guide_side": GuideSide,
}


def _coerce_override(name: str, value: Any) -> Any:
    enum_cls = _ENUM_FIELDS.get(name)
    if enum_cls is not None and not isinstance(value, enum_cls):
        return enum_cls(value)
    if name == "composition" and isinstance(value, dict):
        return FlightComposition(**value)
    if name == "spacing" and isinstance(value, dict):
        return dataclasses.replace(DEFAULT_SPACING, **value)
    if name == "metadata" and isinstance(value, dict):
        return StateMetadata(**value)
    if name == "pending_guidon_shift" and isinstance(value, dict):
        return PendingGuidonShift(mode=GuidonShiftMode(value["mode"]), target_file=int(value["target_file"]))
    return value


def create_initial_state(**overrides: Any) -> SimulatorState:
    """Build a state from defaults plus keyword overrides.

    Enum fields accept their string values ("marching", "inverted-line")
    and nested values accept plain dicts, so scenario files can be passed
    straight through. The heading is always normalized.
    """
    fields = {f.name for f in dataclasses.fields(SimulatorState)}
    unknown = set(overrides) - fields
    if unknown:
        raise TypeError(f"Unknown SimulatorState field(s): {', '.join(sorted(unknown))}")
    coerced = {name: _coerce_override(name, value) for name, value in overrides.items()}
    state = SimulatorState(**coerced)
    return dataclasses.replace(state, heading_deg=normalize_heading(state.heading_deg))
