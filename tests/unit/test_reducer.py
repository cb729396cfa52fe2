"""Drill doctrine: legality of commands and formation transitions."""

import pytest

from flightdrill import Command, CommandKind, reduce
from flightdrill.config import DrillConfig
from flightdrill.reducer import HALTED_ONLY, MARCHING_ONLY, build_flank_guidon_shift
from flightdrill.state import FormationType, GuideSide, GuidonShiftMode, Interval, Motion, PendingGuidonShift

STRICT = DrillConfig(allow_flank_from_halt=False)


def run(state, *kinds, config=None):
    for kind in kinds:
        result = reduce(state, Command(CommandKind(kind)), config)
        assert result.ok, result.error
        state = result.next
    return state


class TestFacings:
    def test_four_right_faces_close_the_cycle(self, make_state):
        state = make_state()
        seen = []
        for _ in range(4):
            state = run(state, "RIGHT_FACE")
            seen.append(state.formation_type)
        assert seen == [
            FormationType.COLUMN,
            FormationType.INVERTED_LINE,
            FormationType.INVERTED_COLUMN,
            FormationType.LINE,
        ]
        assert state.heading_deg % 360 == 0

    def test_left_face_walks_cycle_backwards(self, make_state):
        state = run(make_state(), "LEFT_FACE")
        assert state.formation_type is FormationType.INVERTED_COLUMN
        assert state.heading_deg == 270

    def test_left_then_right_face_round_trip(self, make_state):
        start = make_state()
        end = run(start, "LEFT_FACE", "RIGHT_FACE")
        assert end.heading_deg == start.heading_deg
        assert end.formation_type is start.formation_type

    @pytest.mark.parametrize(
        "before,after",
        [
            (FormationType.LINE, FormationType.INVERTED_LINE),
            (FormationType.INVERTED_LINE, FormationType.LINE),
            (FormationType.COLUMN, FormationType.INVERTED_COLUMN),
            (FormationType.INVERTED_COLUMN, FormationType.COLUMN),
        ],
    )
    def test_about_face_swaps_orientation(self, make_state, before, after):
        state = run(make_state(formation_type=before, heading_deg=90), "ABOUT_FACE")
        assert state.formation_type is after
        assert state.heading_deg == 270

    @pytest.mark.parametrize("kind", ["LEFT_FACE", "RIGHT_FACE", "ABOUT_FACE", "ROTATE_FALL_IN"])
    def test_rejected_while_marching(self, make_state, kind):
        state = make_state(motion="marching")
        result = reduce(state, Command(CommandKind(kind)))
        assert result.error == HALTED_ONLY
        assert result.next is state

    def test_rotate_fall_in_turns_without_changing_formation(self, make_state):
        state = run(make_state(), "ROTATE_FALL_IN")
        assert state.heading_deg == 90
        assert state.formation_type is FormationType.LINE

    def test_facing_clears_pending_guidon_shift(self, make_state):
        shift = PendingGuidonShift(mode=GuidonShiftMode.STRAIGHT, target_file=0)
        state = run(make_state(pending_guidon_shift=shift), "RIGHT_FACE")
        assert state.pending_guidon_shift is None


class TestMarching:
    def test_forward_march_and_halt(self, make_state):
        result = reduce(make_state(), Command(CommandKind.FORWARD_MARCH))
        assert result.next.motion is Motion.MARCHING
        assert result.use_half_step is False

        halted = reduce(result.next, Command(CommandKind.HALT))
        assert halted.next.motion is Motion.HALTED
        assert halted.effects.animation_hints.snap_align_on_halt is True

    def test_forward_march_is_idempotence_guarded(self, make_state):
        state = make_state(motion="marching")
        result = reduce(state, Command(CommandKind.FORWARD_MARCH))
        assert result.error == "Already marching"
        assert result.next is state

    def test_halt_is_idempotence_guarded(self, make_state):
        state = make_state()
        result = reduce(state, Command(CommandKind.HALT))
        assert result.error == "Already halted"
        assert result.next is state

    def test_halt_clears_pending_guidon_shift(self, make_state):
        state = run(make_state(motion="marching"), "RIGHT_FLANK", "HALT")
        assert state.pending_guidon_shift is None

    @pytest.mark.parametrize(
        "kind,heading",
        [("COLUMN_RIGHT", 90), ("COLUMN_LEFT", 270), ("COLUMN_HALF_RIGHT", 45), ("COLUMN_HALF_LEFT", 315)],
    )
    def test_column_turns(self, make_state, kind, heading):
        state = make_state(motion="marching")
        result = reduce(state, Command(CommandKind(kind)))
        assert result.next.heading_deg == heading
        assert result.next.formation_type is FormationType.LINE
        assert result.use_half_step is True

    @pytest.mark.parametrize("kind", ["COLUMN_RIGHT", "COLUMN_HALF_LEFT", "COUNTER_MARCH"])
    def test_column_turns_need_marching(self, make_state, kind):
        result = reduce(make_state(), Command(CommandKind(kind)))
        assert result.error == MARCHING_ONLY

    def test_counter_march_reverses_heading(self, make_state):
        assert run(make_state(motion="marching", heading_deg=30), "COUNTER_MARCH").heading_deg == 210


class TestFlanks:
    def test_right_flank_then_to_the_rear(self, make_state):
        state = make_state(heading_deg=90, motion="marching")
        state = run(state, "RIGHT_FLANK")
        assert state.heading_deg == 180
        state = run(state, "TO_THE_REAR")
        assert state.heading_deg == 0
        assert state.motion is Motion.MARCHING

    def test_to_the_rear_swaps_orientation(self, make_state):
        state = run(make_state(motion="marching", formation_type="column"), "TO_THE_REAR")
        assert state.formation_type is FormationType.INVERTED_COLUMN

    @pytest.mark.parametrize(
        "kind,heading,formation",
        [
            ("RIGHT_FLANK", 90, FormationType.COLUMN),
            ("LEFT_FLANK", 270, FormationType.INVERTED_COLUMN),
            ("TO_THE_REAR", 180, FormationType.INVERTED_LINE),
        ],
    )
    def test_from_the_halt_steps_off(self, make_state, kind, heading, formation):
        state = run(make_state(), kind)
        assert state.motion is Motion.MARCHING
        assert state.heading_deg == heading
        assert state.formation_type is formation

    @pytest.mark.parametrize("kind", ["RIGHT_FLANK", "LEFT_FLANK", "TO_THE_REAR"])
    def test_strict_config_requires_forward_march(self, make_state, kind):
        state = make_state()
        result = reduce(state, Command(CommandKind(kind)), STRICT)
        assert result.error == MARCHING_ONLY
        assert result.next is state

        marching = run(state, "FORWARD_MARCH", config=STRICT)
        assert reduce(marching, Command(CommandKind(kind)), STRICT).ok

    def test_flank_records_guidon_shift(self, make_state):
        state = run(make_state(motion="marching"), "RIGHT_FLANK")
        assert state.pending_guidon_shift == PendingGuidonShift(mode=GuidonShiftMode.AUTO, target_file=2)

    def test_flank_back_into_line_goes_straight_to_base_file(self):
        shift = build_flank_guidon_shift(FormationType.LINE, 3, GuideSide.RIGHT)
        assert shift == PendingGuidonShift(mode=GuidonShiftMode.STRAIGHT, target_file=2)
        shift = build_flank_guidon_shift(FormationType.LINE, 3, GuideSide.LEFT)
        assert shift == PendingGuidonShift(mode=GuidonShiftMode.STRAIGHT, target_file=0)

    def test_single_file_has_no_guidon_shift(self, make_state):
        state = run(make_state(motion="marching", composition={"element_count": 1, "rank_count": 4}), "LEFT_FLANK")
        assert state.pending_guidon_shift is None


class TestFallIn:
    def test_resets_formation_and_sets_elements(self, make_state):
        state = make_state(
            formation_type="column",
            interval="close",
            motion="marching",
            composition={"element_count": 2, "rank_count": 4},
        )
        result = reduce(state, Command(CommandKind.FALL_IN, elements=4))
        nxt = result.next
        assert nxt.formation_type is FormationType.LINE
        assert nxt.interval is Interval.NORMAL
        assert nxt.motion is Motion.HALTED
        assert nxt.composition.element_count == 4
        assert nxt.composition.rank_count == 4

    def test_resets_heading_and_guide(self, make_state):
        state = run(make_state(heading_deg=270, guide_side="right"), "FALL_IN")
        assert state.heading_deg == 0
        assert state.guide_side is GuideSide.LEFT

    @pytest.mark.parametrize("requested,expected", [(9, 4), (0, 1), (-3, 1), (2, 2), (None, 3)])
    def test_elements_are_clamped(self, make_state, requested, expected):
        result = reduce(make_state(), Command(CommandKind.FALL_IN, elements=requested))
        assert result.next.composition.element_count == expected


class TestOtherCommands:
    def test_guide_side(self, make_state):
        assert run(make_state(), "GUIDE_RIGHT").guide_side is GuideSide.RIGHT
        assert run(make_state(guide_side="right"), "GUIDE_LEFT").guide_side is GuideSide.LEFT

    def test_close_interval_only_at_halt(self, make_state):
        assert run(make_state(), "AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS").interval is Interval.CLOSE
        result = reduce(make_state(motion="marching"), Command(CommandKind.AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS))
        assert result.error == HALTED_ONLY

    def test_ready_front_passes_through(self, make_state):
        state = make_state()
        result = reduce(state, Command(CommandKind.READY_FRONT))
        assert result.ok
        assert result.next == state

    @pytest.mark.parametrize("kind", ["OPEN_RANKS", "CLOSE_RANKS"])
    def test_ranks_need_halted_line(self, make_state, kind):
        assert reduce(make_state(), Command(CommandKind(kind))).ok
        result = reduce(make_state(formation_type="column"), Command(CommandKind(kind)))
        assert "valid only in halted line" in result.error

    def test_no_op_reports_error(self, make_state):
        state = make_state()
        result = reduce(state, Command(CommandKind.NO_OP))
        assert result.error == "No operation"
        assert result.next is state

    def test_unknown_kind_never_raises(self, make_state):
        state = make_state()
        result = reduce(state, Command(kind="MOONWALK"))
        assert result.error == "Unknown command"
        assert result.next is state


@pytest.mark.parametrize("elements", [float("nan"), float("inf"), -float("inf"), "four"])
def test_fall_in_with_unusable_element_count_is_rejected(make_state, elements):
    state = make_state(motion="marching")
    result = reduce(state, Command(CommandKind.FALL_IN, elements=elements))
    assert result.error.startswith("Invalid element count")
    assert result.next is state
