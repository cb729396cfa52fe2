"""Formation slot geometry.

Local frame: forward = +Y, right = +X. Files are spread along local Y and
centered on 0; ranks stack along -X spaced by the cover distance. The whole
grid is then rotated by the state heading about the origin.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .state import SimulatorState, clamp_count


@dataclass(frozen=True)
class CadetPosition:
    x: float  # inches, world frame
    y: float  # inches, world frame
    rank: int  # 0 = front rank
    file: int  # 0 = first file before rotation


def rotation_matrix(heading_deg: float) -> np.ndarray:
    rad = np.deg2rad(heading_deg)
    c, s = np.cos(rad), np.sin(rad)
    return np.array([[c, -s], [s, c]], dtype=np.float64)


def local_slots(state: SimulatorState) -> np.ndarray:
    """(ranks, files, 2) array of slot offsets in the local frame."""
    files = clamp_count(state.composition.element_count)
    ranks = clamp_count(state.composition.rank_count)
    lateral = state.lateral_in
    y0 = (files - 1) * lateral / 2.0

    rr, ff = np.meshgrid(np.arange(ranks), np.arange(files), indexing="ij")
    lx = -rr * state.spacing.cover_in
    ly = y0 - ff * lateral
    return np.stack([lx, ly], axis=-1).astype(np.float64)


def slot_position(state: SimulatorState, rank: int, file: int) -> tuple[float, float]:
    """World position of a single (rank, file) slot, which may lie outside the grid."""
    files = clamp_count(state.composition.element_count)
    lateral = state.lateral_in
    local = np.array([-rank * state.spacing.cover_in, (files - 1) * lateral / 2.0 - file * lateral])
    x, y = rotation_matrix(state.heading_deg) @ local
    return float(x), float(y)


def compute_cadet_positions(state: SimulatorState) -> list[CadetPosition]:
    """Target world position for every (rank, file) slot, rank-major."""
    slots = local_slots(state)
    _, files, _ = slots.shape
    world = slots.reshape(-1, 2) @ rotation_matrix(state.heading_deg).T

    out: list[CadetPosition] = []
    for idx, (x, y) in enumerate(world):
        out.append(CadetPosition(x=float(x), y=float(y), rank=idx // files, file=idx % files))
    return out
