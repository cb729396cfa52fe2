"""Builders for per-cadet action sequences, and the pose update they drive."""

from __future__ import annotations

import math

from ..actions import CadetAction, Rotate, Step, StepRotate, Wait
from ..constants import DEFAULT_STEP_LEN_IN, EPSILON, ROTATION_INCREMENT_DEG
from ..state import SimulatorState, normalize_delta, normalize_heading
from .cadets import Cadet


def step_length(state: SimulatorState) -> float:
    """Marching stride; zero marks time in place, a missing or negative length falls back to quick time."""
    if state.step_len_in is None or state.step_len_in < 0:
        return DEFAULT_STEP_LEN_IN
    return state.step_len_in


def rotate_sequence(delta_deg: float) -> list[CadetAction]:
    """Split a turn into signed whole-degree chunks no larger than ROTATION_INCREMENT_DEG."""
    total = int(math.floor(delta_deg + 0.5))
    sign = 1 if total >= 0 else -1
    remaining = abs(total)
    seq: list[CadetAction] = []
    while remaining > 0:
        chunk = min(ROTATION_INCREMENT_DEG, remaining)
        seq.append(Rotate(delta_deg=sign * chunk))
        remaining -= chunk
    return seq


def step_sequence(total_in: float, chunk_in: float) -> list[CadetAction]:
    """Full ``chunk_in`` steps covering ``total_in``, remainder last."""
    if abs(total_in) < EPSILON:
        return []
    size = max(EPSILON, abs(chunk_in))
    sign = 1.0 if total_in >= 0 else -1.0
    remaining = abs(total_in)
    seq: list[CadetAction] = []
    while remaining >= size - EPSILON:
        seq.append(Step(distance_in=sign * size))
        remaining -= size
    if remaining > EPSILON:
        seq.append(Step(distance_in=sign * remaining))
    return seq


def moving_turn_sequence(delta_deg: float, step_len: float, half_step: bool | None = None) -> list[CadetAction]:
    """Half step, turn, then finish the stride (a half step again when ``half_step`` is set)."""
    seq: list[CadetAction] = []
    if step_len / 2 > EPSILON:
        seq.extend(step_sequence(step_len / 2, step_len / 2))
    seq.extend(rotate_sequence(delta_deg))
    final = step_len / 2 if half_step else step_len
    if final > EPSILON:
        seq.extend(step_sequence(final, final))
    return seq


def flank_turn_sequence(delta_deg: float, step_len: float) -> list[CadetAction]:
    if step_len <= EPSILON:
        return rotate_sequence(delta_deg)
    return [StepRotate(delta_deg=int(math.floor(delta_deg + 0.5)), distance_in=step_len)]


def heading_change_sequence(delta_deg: float, step_len: float, half_step: bool | None = None) -> list[CadetAction]:
    if abs(delta_deg) < EPSILON:
        return []
    seq: list[CadetAction] = []
    if half_step:
        seq.extend(step_sequence(step_len / 2, step_len / 2))
    seq.extend(rotate_sequence(delta_deg))
    if half_step:
        seq.extend(step_sequence(step_len / 2, step_len / 2))
    return seq


def advance_pose(x: float, y: float, heading_deg: int, action: CadetAction) -> tuple[float, float, int, bool]:
    """Apply one action to a pose. Returns ``(x, y, heading, translated)``.

    Steps move along the heading held at the start of the beat, so a
    step-rotate lands one stride down the old heading before turning.
    """
    if isinstance(action, Wait):
        return x, y, heading_deg, False
    if isinstance(action, Rotate):
        return x, y, normalize_heading(heading_deg + action.delta_deg), False

    rad = math.radians(heading_deg)
    d = action.distance_in
    x += math.sin(rad) * d
    y += math.cos(rad) * d
    if isinstance(action, StepRotate):
        heading_deg = normalize_heading(heading_deg + action.delta_deg)
    return x, y, heading_deg, abs(d) > EPSILON


def project_pose(cadet: Cadet) -> tuple[float, float, int]:
    """Where a cadet will stand, and face, once its queue drains."""
    x, y, heading = cadet.x, cadet.y, cadet.heading_deg
    for action in cadet.action_queue:
        x, y, heading, _ = advance_pose(x, y, heading, action)
    return x, y, heading


def plan_move(
    x: float,
    y: float,
    heading_deg: int,
    target_x: float,
    target_y: float,
    final_heading_deg: int,
    step_len: float,
) -> list[CadetAction]:
    """Face the target, walk to it, then face ``final_heading_deg``.

    Cadets marking time still walk into their slots at quick-time stride.
    """
    stride = step_len if step_len > EPSILON else DEFAULT_STEP_LEN_IN
    dx = target_x - x
    dy = target_y - y
    dist = math.hypot(dx, dy)

    seq: list[CadetAction] = []
    heading = heading_deg
    if dist > EPSILON:
        bearing = normalize_heading(math.degrees(math.atan2(dx, dy)))
        seq.extend(rotate_sequence(normalize_delta(bearing - heading)))
        seq.extend(step_sequence(dist, stride))
        heading = bearing
    seq.extend(rotate_sequence(normalize_delta(final_heading_deg - heading)))
    return seq
