"""Entry point: python -m flightdrill"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .config import FlightSetup, get_cadence
from .orchestrator import CadetSimulation
from .scenarios import SCENARIOS, ScenarioError, ScenarioResult, get_scenario, load_scenario_file, run_scenario
from .session import CommandLogEntry, DrillSession
from .settings import settings
from .state import SimulatorState


def format_state(state: SimulatorState) -> str:
    comp = state.composition
    return (
        f"formation={state.formation_type.value} heading={state.heading_deg} motion={state.motion.value} "
        f"interval={state.interval.value} guide={state.guide_side.value} "
        f"elements={comp.element_count} ranks={comp.rank_count}"
    )


def print_report(
    state: SimulatorState, simulation: CadetSimulation, log: list[CommandLogEntry], beats: int
) -> None:
    for entry in log:
        line = f"  [{entry.status}] {entry.raw}"
        if entry.error:
            line += f" ({entry.error})"
        print(line)
    print(f"beats: {beats}  steps: {simulation.step_count}")
    print(format_state(state))
    print(f"{'id':<5}{'rank':>5}{'file':>5}  {'role':<14}{'x':>9}{'y':>9}{'hdg':>5}")
    for c in simulation.cadets:
        print(f"{c.id:<5}{c.rank:>5}{c.file:>5}  {c.role.value:<14}{c.x:>9.1f}{c.y:>9.1f}{c.heading_deg:>5}")


def _cmd_list(args: argparse.Namespace) -> None:
    for name, scenario in SCENARIOS.items():
        print(f"{name:<22}{scenario.title}")


def _cmd_run(args: argparse.Namespace) -> ScenarioResult:
    scenario = load_scenario_file(args.file) if args.file else get_scenario(args.name)
    return run_scenario(scenario)


def _cmd_exec(args: argparse.Namespace) -> DrillSession:
    cadence = get_cadence(args.cadence)
    setup = FlightSetup(
        cadet_count=args.cadets,
        elements=args.elements,
        cadence_spm=cadence.spm,
        step_len_in=cadence.step_len_in,
    )
    session = DrillSession.from_setup(setup)
    for phrase in args.phrases:
        session.dispatch_text(phrase)
        session.run_beats(args.beats)
    session.drain()
    return session


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flightdrill", description="Close-order drill simulator")
    parser.add_argument("--log-level", type=str, default=settings.LOG_LEVEL)
    parser.add_argument("--json", action="store_true", help="Print the final state and cadets as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List built-in scenarios")

    run = sub.add_parser("run", help="Run a built-in or JSON scenario")
    run.add_argument("name", nargs="?", help="Built-in scenario name (see `list`)")
    run.add_argument("--file", type=Path, default=None, help="Path to a JSON scenario file")

    ex = sub.add_parser("exec", help="Run drill phrases against a fresh flight")
    ex.add_argument("phrases", nargs="+", help='Phrases, e.g. "Forward, MARCH" "Flight, HALT"')
    ex.add_argument("--cadets", type=int, default=settings.CADET_COUNT)
    ex.add_argument("--elements", type=int, default=settings.ELEMENTS)
    ex.add_argument("--cadence", type=str, default=settings.CADENCE)
    ex.add_argument("--beats", type=int, default=4, help="Beats to march after each phrase")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "list":
        _cmd_list(args)
        return 0

    if args.command == "run" and not (args.name or args.file):
        parser.error("run: give a scenario name or --file")

    try:
        if args.command == "run":
            result = _cmd_run(args)
            state, simulation, log, beats = result.state, result.simulation, result.log, result.beats
            payload = result.to_dict()
        else:
            session = _cmd_exec(args)
            state, simulation, log = session.state, session.simulation, session.log
            beats = session.beat_count
            payload = {
                "beats": beats,
                "state": state.to_dict(),
                "simulation": simulation.to_dict(),
                "log": [e.to_dict() for e in log],
            }
    except (ScenarioError, ValidationError, ValueError, OSError) as e:
        parser.error(str(e))

    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        print_report(state, simulation, log, beats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
