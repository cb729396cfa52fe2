"""Drill session: the paired formation state and cadet simulation, plus a command log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .commands import Command, CommandDescriptor, ReduceResult, describe_command
from .config import DEFAULT_DRILL_CONFIG, DrillConfig, FlightSetup, create_state_from_setup
from .orchestrator import (
    CadetSimulation,
    SceneSnapshot,
    advance_simulation,
    apply_command_to_simulation,
    beat_interval_ms,
    create_simulation,
    step_beat,
)
from .parser import ParseError, is_as_you_were, parse_command
from .reducer import reduce
from .settings import settings
from .state import SimulatorState, create_initial_state

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_AS_YOU_WERE = "as-you-were"


@dataclass(frozen=True)
class CommandLogEntry:
    id: int
    source: str  # "command" | "text"
    raw: str
    status: str
    descriptor: CommandDescriptor | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "raw": self.raw,
            "status": self.status,
            "descriptor": (
                {
                    "label": self.descriptor.label,
                    "preparatory": self.descriptor.preparatory,
                    "execution": self.descriptor.execution,
                }
                if self.descriptor is not None
                else None
            ),
            "error": self.error,
        }


class DrillSession:
    """Owns one flight on the drill pad.

    Every command goes through ``reduce`` and then
    ``apply_command_to_simulation``; the session never edits cadets
    directly. ``on_beat`` (if given) is called with the simulation after
    every beat, whether driven by ``tick`` or ``step_beat``.
    """

    def __init__(
        self,
        state: SimulatorState | None = None,
        cadet_count: int | None = None,
        config: DrillConfig | None = None,
        on_beat: Callable[[CadetSimulation], None] | None = None,
        max_drain_beats: int | None = None,
    ):
        self.initial_state = state if state is not None else create_initial_state()
        self.cadet_count = cadet_count
        self.config = config or DEFAULT_DRILL_CONFIG
        self.on_beat = on_beat
        self.max_drain_beats = max_drain_beats if max_drain_beats is not None else settings.MAX_DRAIN_BEATS
        self.log: list[CommandLogEntry] = []
        self._reset()

    @classmethod
    def from_setup(cls, setup: FlightSetup, **kwargs: Any) -> DrillSession:
        return cls(create_state_from_setup(setup), cadet_count=setup.clamped_cadets, **kwargs)

    def _reset(self) -> None:
        self.state = self.initial_state
        self.simulation = create_simulation(self.initial_state, self.cadet_count)
        self.elapsed_ms = 0.0
        self.beat_count = 0

    def _beat(self, simulation: CadetSimulation) -> None:
        self.beat_count += 1
        if self.on_beat is not None:
            self.on_beat(simulation)

    def _record(self, **fields: Any) -> CommandLogEntry:
        entry = CommandLogEntry(id=len(self.log) + 1, **fields)
        self.log.append(entry)
        return entry

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def dispatch(self, command: Command, source: str = "command", raw: str | None = None) -> ReduceResult:
        descriptor = describe_command(command, len(self.simulation.cadets))
        result = reduce(self.state, command, self.config)
        text = raw if raw is not None else descriptor.label

        if result.ok:
            self.simulation = apply_command_to_simulation(
                self.simulation, self.state, result.next, command, half_step=result.use_half_step
            )
            self.state = result.next
            logger.info(f"{descriptor.preparatory}, {descriptor.execution} -> {self.state.formation_type.value}")
            self._record(source=source, raw=text, status=STATUS_SUCCESS, descriptor=descriptor)
        else:
            logger.info(f"{descriptor.label} rejected: {result.error}")
            self._record(source=source, raw=text, status=STATUS_ERROR, descriptor=descriptor, error=result.error)
        return result

    def dispatch_text(self, text: str) -> CommandLogEntry:
        if is_as_you_were(text):
            return self.as_you_were(raw=text)
        parsed = parse_command(text)
        if isinstance(parsed, ParseError):
            logger.info(parsed.error)
            return self._record(source="text", raw=text, status=STATUS_ERROR, error=parsed.error)
        self.dispatch(parsed, source="text", raw=text)
        return self.log[-1]

    def as_you_were(self, raw: str = "AS YOU WERE") -> CommandLogEntry:
        """Discard the simulation and start again from the initial state."""
        logger.info("As you were")
        self._reset()
        return self._record(source="text", raw=raw, status=STATUS_AS_YOU_WERE)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def tick(self, dt_ms: float) -> CadetSimulation:
        self.simulation = advance_simulation(self.simulation, self.state, dt_ms, on_beat=self._beat)
        if dt_ms > 0:
            self.elapsed_ms += dt_ms
        return self.simulation

    def step_beat(self) -> CadetSimulation:
        """Force one beat now, independent of the frame clock."""
        self.simulation = step_beat(self.simulation, self.state)
        self.elapsed_ms += beat_interval_ms(self.state)
        self._beat(self.simulation)
        return self.simulation

    def run_beats(self, count: int) -> CadetSimulation:
        for _ in range(max(0, count)):
            self.step_beat()
        return self.simulation

    def drain(self, max_beats: int | None = None) -> int:
        """Step beats until every queue is empty; returns the beats taken."""
        limit = self.max_drain_beats if max_beats is None else max_beats
        beats = 0
        while not self.simulation.queues_empty and beats < limit:
            self.step_beat()
            beats += 1
        if not self.simulation.queues_empty:
            logger.warning(f"Queues still busy after {beats} beats")
        return beats

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def is_idle(self) -> bool:
        return not self.state.is_marching and self.simulation.queues_empty

    def snapshot(self, t_ms: float | None = None) -> SceneSnapshot:
        return SceneSnapshot(
            state=self.state,
            cadets=self.simulation.cadets,
            t_ms=self.elapsed_ms if t_ms is None else t_ms,
        )
