"""Scripted drill sequences: built-in fixtures and JSON scenario files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, Field

from .commands import Command, CommandKind
from .config import DrillConfig
from .orchestrator import CadetSimulation
from .parser import ParseError, parse_command
from .session import CommandLogEntry, DrillSession
from .state import FlightComposition, FormationType, Motion, SimulatorState, create_initial_state

logger = logging.getLogger(__name__)

DEFAULT_BEATS_PER_COMMAND = 4


class ScenarioError(ValueError):
    """Unknown scenario, or a scenario whose contents cannot be run."""


@dataclass(frozen=True)
class Scenario:
    name: str
    title: str
    initial: SimulatorState
    script: tuple[Command, ...]
    cadet_count: int | None = None
    beats_per_command: int = DEFAULT_BEATS_PER_COMMAND
    description: str = ""


@dataclass
class ScenarioResult:
    scenario: Scenario
    state: SimulatorState
    simulation: CadetSimulation
    log: list[CommandLogEntry] = field(default_factory=list)
    beats: int = 0

    @property
    def errors(self) -> list[CommandLogEntry]:
        return [e for e in self.log if e.status == "error"]

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario.name,
            "beats": self.beats,
            "state": self.state.to_dict(),
            "simulation": self.simulation.to_dict(),
            "log": [e.to_dict() for e in self.log],
        }


# ==============================================================================
# Built-in scenarios
# ==============================================================================

BASIC_FORWARD_HALT = Scenario(
    name="basic-forward-halt",
    title="Basic Forward and Halt",
    initial=create_initial_state(
        motion=Motion.HALTED, heading_deg=0, composition=FlightComposition(element_count=3, rank_count=4)
    ),
    script=(Command(CommandKind.FORWARD_MARCH), Command(CommandKind.HALT)),
)

FLANK_AND_REAR = Scenario(
    name="flank-and-rear",
    title="Flank and To the Rear",
    initial=create_initial_state(motion=Motion.MARCHING, heading_deg=90),
    script=(Command(CommandKind.RIGHT_FLANK), Command(CommandKind.TO_THE_REAR)),
    description="Heading 90 -> 180 after the flank, then 0 after To the Rear.",
)

COLUMN_HALF = Scenario(
    name="column-half",
    title="Column Half Right then Left",
    initial=create_initial_state(motion=Motion.MARCHING, heading_deg=0),
    script=(Command(CommandKind.COLUMN_HALF_RIGHT), Command(CommandKind.COLUMN_HALF_LEFT)),
)

FALL_IN_ELEMENTS = Scenario(
    name="fall-in-4-elements",
    title="Fall In with 4 elements",
    initial=create_initial_state(motion=Motion.MARCHING, formation_type=FormationType.COLUMN),
    script=(Command(CommandKind.FALL_IN, elements=4),),
)

FACING_ROUND_TRIP = Scenario(
    name="facing-round-trip",
    title="Left Face then Right Face",
    initial=create_initial_state(motion=Motion.HALTED),
    script=(Command(CommandKind.LEFT_FACE), Command(CommandKind.RIGHT_FACE)),
)

SCENARIOS: dict[str, Scenario] = {
    s.name: s for s in (BASIC_FORWARD_HALT, FLANK_AND_REAR, COLUMN_HALF, FALL_IN_ELEMENTS, FACING_ROUND_TRIP)
}


def get_scenario(name: str) -> Scenario:
    try:
        return SCENARIOS[name]
    except KeyError:
        raise ScenarioError(f"Unknown scenario {name!r}; expected one of {sorted(SCENARIOS)}") from None


# ==============================================================================
# Scenario files
# ==============================================================================


class ScriptCommand(BaseModel):
    """One scripted command given by kind rather than as a phrase."""

    kind: CommandKind
    elements: int | None = None


class ScenarioFile(BaseModel):
    """JSON scenario file.

    ``script`` entries are either drill phrases ("Forward, MARCH"), bare
    command kinds ("FORWARD_MARCH"), or ``{"kind": ..., "elements": ...}``
    objects.
    """

    name: str
    title: str | None = None
    description: str = ""
    initial: dict[str, Any] = Field(default_factory=dict)
    cadet_count: int | None = Field(default=None, ge=1)
    beats_per_command: int = Field(default=DEFAULT_BEATS_PER_COMMAND, ge=0)
    script: list[Union[ScriptCommand, str]] = Field(default_factory=list)

    def to_scenario(self) -> Scenario:
        try:
            initial = create_initial_state(**self.initial)
        except (TypeError, ValueError) as e:
            raise ScenarioError(f"Scenario {self.name!r}: bad initial state: {e}") from e

        commands: list[Command] = []
        for line_no, entry in enumerate(self.script, start=1):
            commands.append(_script_command(self.name, line_no, entry))

        return Scenario(
            name=self.name,
            title=self.title or self.name,
            initial=initial,
            script=tuple(commands),
            cadet_count=self.cadet_count,
            beats_per_command=self.beats_per_command,
            description=self.description,
        )


def _script_command(name: str, line_no: int, entry: ScriptCommand | str) -> Command:
    if isinstance(entry, ScriptCommand):
        return Command(kind=entry.kind, elements=entry.elements)
    if entry in CommandKind.__members__:
        return Command(kind=CommandKind[entry])
    parsed = parse_command(entry)
    if isinstance(parsed, ParseError):
        raise ScenarioError(f"Scenario {name!r}, script line {line_no}: {parsed.error}")
    return parsed


def load_scenario_file(path: str | Path) -> Scenario:
    """Read and validate a JSON scenario file.

    Raises pydantic ``ValidationError`` for malformed JSON or fields, and
    ``ScenarioError`` for contents that validate but cannot be run.
    """
    text = Path(path).read_text(encoding="utf-8")
    return ScenarioFile.model_validate_json(text).to_scenario()


# ==============================================================================
# Running
# ==============================================================================


def run_scenario(
    scenario: Scenario,
    config: DrillConfig | None = None,
    max_drain_beats: int | None = None,
) -> ScenarioResult:
    """Dispatch every scripted command, giving each ``beats_per_command`` beats, then drain the queues."""
    session = DrillSession(
        scenario.initial,
        cadet_count=scenario.cadet_count,
        config=config,
        max_drain_beats=max_drain_beats,
    )
    for command in scenario.script:
        session.dispatch(command)
        session.run_beats(scenario.beats_per_command)
    session.drain()
    beats = session.beat_count

    logger.info(f"Scenario {scenario.name}: {len(scenario.script)} commands, {beats} beats")
    return ScenarioResult(
        scenario=scenario,
        state=session.state,
        simulation=session.simulation,
        log=list(session.log),
        beats=beats,
    )
