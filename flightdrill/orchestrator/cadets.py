from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..actions import CadetAction
from ..geometry import CadetPosition, compute_cadet_positions
from ..state import GuideSide, PendingGuidonShift, SimulatorState, clamp_count


class CadetRole(str, Enum):
    CADET = "cadet"
    GUIDE = "guide"
    GUIDON_BEARER = "guidon-bearer"


@dataclass(frozen=True)
class Cadet:
    id: str
    rank: int
    file: int
    role: CadetRole
    x: float  # inches, world frame
    y: float  # inches, world frame
    heading_deg: int
    action_queue: tuple[CadetAction, ...] = ()

    @property
    def is_guidon(self) -> bool:
        return self.role is CadetRole.GUIDON_BEARER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "rank": self.rank,
            "file": self.file,
            "role": self.role.value,
            "x": self.x,
            "y": self.y,
            "heading_deg": self.heading_deg,
            "action_queue": [a.to_dict() for a in self.action_queue],
        }


@dataclass(frozen=True)
class CadetSimulation:
    cadets: tuple[Cadet, ...]
    accumulator_ms: float = 0.0  # leftover sub-beat time
    step_count: int = 0  # beats on which any cadet translated
    # Facing-table guidon move, executed by the next HALT.
    pending_guidon_shift: PendingGuidonShift | None = None

    @property
    def queues_empty(self) -> bool:
        return all(not c.action_queue for c in self.cadets)

    @property
    def guidon(self) -> Cadet | None:
        return next((c for c in self.cadets if c.is_guidon), None)

    def cadet(self, cadet_id: str) -> Cadet | None:
        return next((c for c in self.cadets if c.id == cadet_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cadets": [c.to_dict() for c in self.cadets],
            "accumulator_ms": self.accumulator_ms,
            "step_count": self.step_count,
            "pending_guidon_shift": (
                self.pending_guidon_shift.to_dict() if self.pending_guidon_shift is not None else None
            ),
        }


@dataclass(frozen=True)
class SceneSnapshot:
    """What a renderer needs for one frame."""

    state: SimulatorState
    cadets: tuple[Cadet, ...]
    t_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"t_ms": self.t_ms, "state": self.state.to_dict(), "cadets": [c.to_dict() for c in self.cadets]}


def base_file(state: SimulatorState) -> int:
    files = clamp_count(state.composition.element_count)
    return files - 1 if state.guide_side is GuideSide.RIGHT else 0


def ranks_needed(state: SimulatorState, cadet_count: int) -> int:
    """Ranks required to hold ``cadet_count`` with the guide alone in rank 0."""
    files = clamp_count(state.composition.element_count)
    return max(clamp_count(state.composition.rank_count), 1 + math.ceil(max(0, cadet_count - 1) / files))


def ordered_positions(state: SimulatorState, limit: int | None = None) -> list[CadetPosition]:
    """Formation slots in fall-in order.

    The guide takes the base file of the front rank and nobody else stands
    in rank 0. Rank 1 then fills first file to last; every deeper rank fills
    last file to first.
    """
    files = clamp_count(state.composition.element_count)
    ranks = clamp_count(state.composition.rank_count)
    by_slot = {(p.rank, p.file): p for p in compute_cadet_positions(state)}

    ordered = [by_slot[(0, base_file(state))]]
    for rank in range(1, ranks):
        file_order = range(files) if rank == 1 else range(files - 1, -1, -1)
        ordered.extend(by_slot[(rank, f)] for f in file_order)

    return ordered if limit is None else ordered[:limit]


def _with_ranks(state: SimulatorState, rank_count: int) -> SimulatorState:
    return dataclasses.replace(state, composition=dataclasses.replace(state.composition, rank_count=rank_count))


def formation_targets(state: SimulatorState, count: int) -> list[CadetPosition]:
    """The first ``count`` fall-in slots, extending the depth if needed."""
    return ordered_positions(_with_ranks(state, ranks_needed(state, count)), limit=count)


def assign_roles(cadets: tuple[Cadet, ...] | list[Cadet], state: SimulatorState) -> tuple[Cadet, ...]:
    """Keep the current guidon bearer if still present, else hand the guidon to the guide slot.

    Whoever stands at the base file of the front rank without carrying the
    guidon is the guide.
    """
    current = next((c.id for c in cadets if c.role is CadetRole.GUIDON_BEARER), None)
    present = {c.id for c in cadets}
    base = base_file(state)
    guide_slot = next((c.id for c in cadets if c.rank == 0 and c.file == base), None)
    bearer = current if current in present else guide_slot
    if bearer is None and cadets:
        # Nobody at the guide slot: the front-most cadet nearest the base file.
        bearer = min(cadets, key=lambda c: (c.rank, abs(c.file - base))).id

    out: list[Cadet] = []
    for c in cadets:
        if c.id == bearer:
            role = CadetRole.GUIDON_BEARER
        elif c.id == guide_slot:
            role = CadetRole.GUIDE
        else:
            role = CadetRole.CADET
        out.append(c if c.role is role else dataclasses.replace(c, role=role))
    return tuple(out)


def create_cadets(state: SimulatorState, cadet_count: int | None = None) -> tuple[Cadet, ...]:
    if cadet_count is None:
        positions = ordered_positions(state)
    else:
        positions = formation_targets(state, max(1, math.floor(cadet_count)))
    cadets = [
        Cadet(
            id=f"c{i}",
            rank=p.rank,
            file=p.file,
            role=CadetRole.CADET,
            x=p.x,
            y=p.y,
            heading_deg=state.heading_deg,
        )
        for i, p in enumerate(positions)
    ]
    return assign_roles(cadets, state)


def create_simulation(state: SimulatorState, cadet_count: int | None = None) -> CadetSimulation:
    return CadetSimulation(cadets=create_cadets(state, cadet_count))


def assign_cadet_roles(simulation: CadetSimulation, state: SimulatorState) -> CadetSimulation:
    return dataclasses.replace(simulation, cadets=assign_roles(simulation.cadets, state))
