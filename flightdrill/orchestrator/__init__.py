"""Per-cadet motion planning and the beat clock."""

from .cadets import (
    Cadet,
    CadetRole,
    CadetSimulation,
    SceneSnapshot,
    assign_cadet_roles,
    create_cadets,
    create_simulation,
    ordered_positions,
)
from .clock import advance_simulation, beat_interval_ms, step_beat
from .planner import apply_command_to_simulation, rebuild_formation, snap_cadets_to_formation
from .sequences import project_pose, rotate_sequence, step_sequence

__all__ = [
    "Cadet",
    "CadetRole",
    "CadetSimulation",
    "SceneSnapshot",
    "advance_simulation",
    "apply_command_to_simulation",
    "assign_cadet_roles",
    "beat_interval_ms",
    "create_cadets",
    "create_simulation",
    "ordered_positions",
    "project_pose",
    "rebuild_formation",
    "rotate_sequence",
    "snap_cadets_to_formation",
    "step_beat",
    "step_sequence",
]
