from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .constants import FLIGHT_MIN_CADETS
from .state import SimulatorState


class CommandKind(str, Enum):
    FALL_IN = "FALL_IN"
    ROTATE_FALL_IN = "ROTATE_FALL_IN"
    FORWARD_MARCH = "FORWARD_MARCH"
    HALT = "HALT"
    LEFT_FACE = "LEFT_FACE"
    RIGHT_FACE = "RIGHT_FACE"
    ABOUT_FACE = "ABOUT_FACE"
    RIGHT_FLANK = "RIGHT_FLANK"
    LEFT_FLANK = "LEFT_FLANK"
    TO_THE_REAR = "TO_THE_REAR"
    COLUMN_RIGHT = "COLUMN_RIGHT"
    COLUMN_LEFT = "COLUMN_LEFT"
    COLUMN_HALF_RIGHT = "COLUMN_HALF_RIGHT"
    COLUMN_HALF_LEFT = "COLUMN_HALF_LEFT"
    COUNTER_MARCH = "COUNTER_MARCH"
    GUIDE_LEFT = "GUIDE_LEFT"
    GUIDE_RIGHT = "GUIDE_RIGHT"
    AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS = "AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS"
    READY_FRONT = "READY_FRONT"
    OPEN_RANKS = "OPEN_RANKS"
    CLOSE_RANKS = "CLOSE_RANKS"
    NO_OP = "NO_OP"


# Stationary facings (only at the halt).
FACING_COMMANDS = frozenset(
    {CommandKind.LEFT_FACE, CommandKind.RIGHT_FACE, CommandKind.ABOUT_FACE, CommandKind.ROTATE_FALL_IN}
)
FLANK_COMMANDS = frozenset({CommandKind.LEFT_FLANK, CommandKind.RIGHT_FLANK})
COLUMN_COMMANDS = frozenset(
    {
        CommandKind.COLUMN_RIGHT,
        CommandKind.COLUMN_LEFT,
        CommandKind.COLUMN_HALF_RIGHT,
        CommandKind.COLUMN_HALF_LEFT,
        CommandKind.COUNTER_MARCH,
    }
)
# Every command whose formation change is a turn of the existing block.
TURN_COMMANDS = FACING_COMMANDS | FLANK_COMMANDS | COLUMN_COMMANDS | {CommandKind.TO_THE_REAR}


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    elements: int | None = None  # FALL_IN only: number of elements to form

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind.value}
        if self.elements is not None:
            out["params"] = {"elements": self.elements}
        return out


@dataclass(frozen=True)
class AnimationHints:
    use_half_step: bool | None = None
    snap_align_on_halt: bool | None = None


@dataclass(frozen=True)
class Effects:
    animation_hints: AnimationHints | None = None


@dataclass(frozen=True)
class ReduceResult:
    next: SimulatorState
    effects: Effects | None = None
    error: str | None = None  # set when the command was rejected or is a no-op

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def use_half_step(self) -> bool | None:
        if self.effects is None or self.effects.animation_hints is None:
            return None
        return self.effects.animation_hints.use_half_step


@dataclass(frozen=True)
class CommandDescriptor:
    """How a command is called: label, preparatory word(s), command of execution."""

    label: str
    preparatory: str
    execution: str


COMMAND_METADATA: dict[CommandKind, CommandDescriptor] = {
    CommandKind.FALL_IN: CommandDescriptor("FALL-IN", "Flight", "FALL IN"),
    CommandKind.ROTATE_FALL_IN: CommandDescriptor("ROTATE FALL-IN", "Flight", "ROTATE"),
    CommandKind.FORWARD_MARCH: CommandDescriptor("FORWARD MARCH", "Forward", "MARCH"),
    CommandKind.HALT: CommandDescriptor("HALT", "Flight", "HALT"),
    CommandKind.LEFT_FACE: CommandDescriptor("LEFT FACE", "Left", "FACE"),
    CommandKind.RIGHT_FACE: CommandDescriptor("RIGHT FACE", "Right", "FACE"),
    CommandKind.ABOUT_FACE: CommandDescriptor("ABOUT FACE", "About", "FACE"),
    CommandKind.LEFT_FLANK: CommandDescriptor("LEFT FLANK", "Left Flank", "MARCH"),
    CommandKind.RIGHT_FLANK: CommandDescriptor("RIGHT FLANK", "Right Flank", "MARCH"),
    CommandKind.TO_THE_REAR: CommandDescriptor("TO THE REAR", "To the Rear", "MARCH"),
    CommandKind.COLUMN_RIGHT: CommandDescriptor("COLUMN RIGHT", "Column Right", "MARCH"),
    CommandKind.COLUMN_LEFT: CommandDescriptor("COLUMN LEFT", "Column Left", "MARCH"),
    CommandKind.COLUMN_HALF_RIGHT: CommandDescriptor("COLUMN HALF RIGHT", "Column Half Right", "MARCH"),
    CommandKind.COLUMN_HALF_LEFT: CommandDescriptor("COLUMN HALF LEFT", "Column Half Left", "MARCH"),
    CommandKind.COUNTER_MARCH: CommandDescriptor("COUNTER MARCH", "Counter", "MARCH"),
    CommandKind.GUIDE_LEFT: CommandDescriptor("GUIDE LEFT", "Guide", "LEFT"),
    CommandKind.GUIDE_RIGHT: CommandDescriptor("GUIDE RIGHT", "Guide", "RIGHT"),
    CommandKind.AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS: CommandDescriptor(
        "AT CLOSE INTERVAL, DRESS RIGHT, DRESS", "At Close Interval, Dress Right", "DRESS"
    ),
    CommandKind.READY_FRONT: CommandDescriptor("READY, FRONT", "Ready", "FRONT"),
    CommandKind.OPEN_RANKS: CommandDescriptor("OPEN RANKS", "Open Ranks", "MARCH"),
    CommandKind.CLOSE_RANKS: CommandDescriptor("CLOSE RANKS", "Close Ranks", "MARCH"),
}


def describe_command(command: Command, cadet_count: int | None = None) -> CommandDescriptor:
    """Return the spoken form of a command.

    Falling in is called on a "Flight" of five or more, otherwise on a
    "Detail". Kinds without metadata get a title-cased label.
    """
    base = COMMAND_METADATA.get(command.kind)
    if base is None:
        raw = getattr(command.kind, "value", command.kind)
        label = str(raw).replace("_", " ").title()
        base = CommandDescriptor(label, label, "EXECUTE")
    if command.kind in (CommandKind.FALL_IN, CommandKind.ROTATE_FALL_IN) and cadet_count is not None:
        prep = "Flight" if cadet_count >= FLIGHT_MIN_CADETS else "Detail"
        return CommandDescriptor(base.label, prep, base.execution)
    return base
