import dataclasses

import pytest

from flightdrill import Command, CommandKind, create_initial_state, reduce
from flightdrill.orchestrator import apply_command_to_simulation, create_simulation, step_beat


@pytest.fixture
def make_state():
    """State factory; cadence 120 (500 ms beats) and 24 in steps unless overridden."""

    def _make(**overrides):
        fields = {"cadence_spm": 120, "step_len_in": 24.0}
        fields.update(overrides)
        return create_initial_state(**fields)

    return _make


@pytest.fixture
def make_sim():
    def _make(state, cadet_count=None, **fields):
        sim = create_simulation(state, cadet_count)
        if fields:
            sim = dataclasses.replace(sim, **fields)
        return sim

    return _make


@pytest.fixture
def issue():
    """Reduce a command and plan it onto the simulation; returns (sim, next_state)."""

    def _issue(sim, state, kind, config=None, **params):
        command = Command(CommandKind(kind), **params)
        result = reduce(state, command, config)
        assert result.ok, result.error
        sim = apply_command_to_simulation(sim, state, result.next, command, half_step=result.use_half_step)
        return sim, result.next

    return _issue


@pytest.fixture
def drain():
    """Step beats at ``state`` until every queue is empty."""

    def _drain(sim, state, limit=500):
        beats = 0
        while not sim.queues_empty:
            assert beats < limit, "queues never drained"
            sim = step_beat(sim, state)
            beats += 1
        return sim

    return _drain
