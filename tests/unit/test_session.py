"""DrillSession: command dispatch, logging, as-you-were and the beat loop."""

import pytest

from flightdrill import Command, CommandKind, DrillSession, create_initial_state
from flightdrill.config import DrillConfig, FlightSetup
from flightdrill.orchestrator import CadetRole
from flightdrill.session import STATUS_AS_YOU_WERE, STATUS_ERROR, STATUS_SUCCESS
from flightdrill.state import FormationType, Motion


@pytest.fixture
def session():
    return DrillSession(create_initial_state(cadence_spm=120, step_len_in=24.0))


def test_dispatch_success_updates_state_and_queues(session):
    result = session.dispatch(Command(CommandKind.RIGHT_FACE))
    assert result.ok
    assert session.state.formation_type is FormationType.COLUMN
    assert not session.simulation.queues_empty

    (entry,) = session.log
    assert entry.id == 1
    assert entry.status == STATUS_SUCCESS
    assert entry.raw == "RIGHT FACE"
    assert entry.descriptor.execution == "FACE"


def test_rejected_command_is_logged_and_changes_nothing(session):
    before = session.simulation
    result = session.dispatch(Command(CommandKind.HALT))
    assert result.error == "Already halted"
    assert session.simulation is before
    assert session.log[-1].status == STATUS_ERROR
    assert session.log[-1].error == "Already halted"


def test_dispatch_text(session):
    entry = session.dispatch_text("Forward, MARCH")
    assert entry.status == STATUS_SUCCESS
    assert entry.source == "text"
    assert entry.raw == "Forward, MARCH"
    assert session.state.motion is Motion.MARCHING


def test_dispatch_text_parse_error(session):
    entry = session.dispatch_text("Parade, REST")
    assert entry.status == STATUS_ERROR
    assert entry.descriptor is None
    assert entry.error.startswith("Unrecognized command")


def test_as_you_were_restarts_from_initial_state(session):
    start = session.simulation
    session.dispatch_text("Forward, MARCH")
    session.run_beats(3)
    entry = session.dispatch_text("As you were")

    assert entry.status == STATUS_AS_YOU_WERE
    assert session.state == session.initial_state
    assert session.simulation == start
    assert session.elapsed_ms == 0.0
    assert session.beat_count == 0
    assert [e.status for e in session.log] == [STATUS_SUCCESS, STATUS_AS_YOU_WERE]


def test_step_beat_advances_elapsed_time(session):
    session.dispatch(Command(CommandKind.FORWARD_MARCH))
    session.run_beats(3)
    assert session.beat_count == 3
    assert session.elapsed_ms == 1500.0
    assert session.simulation.step_count == 2


def test_tick_counts_beats_and_calls_back():
    seen = []
    session = DrillSession(
        create_initial_state(cadence_spm=120, motion="marching"), on_beat=lambda sim: seen.append(sim.step_count)
    )
    session.tick(1100)
    session.tick(-5)
    assert session.beat_count == 2
    assert seen == [1, 2]
    assert session.elapsed_ms == 1100.0


def test_drain_empties_queues(session):
    session.dispatch(Command(CommandKind.ABOUT_FACE))
    assert session.drain() == 2
    assert session.is_idle
    assert {c.heading_deg for c in session.simulation.cadets} == {180}


def test_drain_gives_up_at_the_limit(session, caplog):
    session.dispatch(Command(CommandKind.FALL_IN, elements=1))
    with caplog.at_level("WARNING", logger="flightdrill.session"):
        assert session.drain(max_beats=1) == 1
    assert "still busy" in caplog.text


def test_strict_config_is_honoured():
    session = DrillSession(config=DrillConfig(allow_flank_from_halt=False))
    assert session.dispatch(Command(CommandKind.LEFT_FLANK)).error == "Command only valid while marching"


def test_from_setup_places_every_cadet():
    session = DrillSession.from_setup(FlightSetup(cadet_count=7, elements=2))
    assert len(session.simulation.cadets) == 7
    assert session.state.composition.rank_count == 4
    bearers = [c for c in session.simulation.cadets if c.role is CadetRole.GUIDON_BEARER]
    assert len(bearers) == 1


def test_fall_in_is_called_on_a_detail_for_small_groups():
    session = DrillSession.from_setup(FlightSetup(cadet_count=3, elements=3))
    session.dispatch(Command(CommandKind.FALL_IN))
    assert session.log[-1].descriptor.preparatory == "Detail"


def test_snapshot(session):
    session.dispatch(Command(CommandKind.FORWARD_MARCH))
    session.run_beats(2)
    snap = session.snapshot()
    assert snap.t_ms == 1000.0
    assert snap.cadets == session.simulation.cadets
    d = snap.to_dict()
    assert d["state"]["motion"] == "marching"
    assert len(d["cadets"]) == len(session.simulation.cadets)
    assert session.snapshot(t_ms=5.0).t_ms == 5.0


def test_mark_time_session_does_not_translate():
    session = DrillSession.from_setup(FlightSetup(cadet_count=5, step_len_in=0.0))
    start = [(c.x, c.y) for c in session.simulation.cadets]
    session.dispatch_text("Forward, MARCH")
    session.run_beats(4)
    assert session.state.motion is Motion.MARCHING
    assert [(c.x, c.y) for c in session.simulation.cadets] == start
    session.dispatch_text("Flight, HALT")
    session.drain()
    assert [(c.x, c.y) for c in session.simulation.cadets] == start
