"""Discrete per-beat cadet actions.

A cadet's action queue is a FIFO of these records; the beat clock consumes
exactly one per cadet per beat.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union


@dataclass(frozen=True)
class Rotate:
    kind: ClassVar[str] = "rotate"
    delta_deg: float

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "delta_deg": self.delta_deg}


@dataclass(frozen=True)
class Step:
    kind: ClassVar[str] = "step"
    distance_in: float  # negative steps backward

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "distance_in": self.distance_in}


@dataclass(frozen=True)
class StepRotate:
    """Turn and step on the same beat; the step is taken along the old heading."""

    kind: ClassVar[str] = "step-rotate"
    delta_deg: float
    distance_in: float

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "delta_deg": self.delta_deg, "distance_in": self.distance_in}


@dataclass(frozen=True)
class Wait:
    kind: ClassVar[str] = "wait"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind}


CadetAction = Union[Rotate, Step, StepRotate, Wait]
