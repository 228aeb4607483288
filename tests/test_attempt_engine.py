"""Tests for the attempt state machine."""

import asyncio

import pytest

from conftest import make_metadata, make_questions
from exam_prep.models.session_state import AttemptPhase
from exam_prep.services import attempt_engine as engine
from exam_prep.services.catalog import InMemoryCatalog
from exam_prep.services.errors import EmptyTestError, InvalidTransitionError, UnknownTestError


def _started(correct=(1, 0, 2), duration_minutes=1):
    return engine.start(make_metadata(duration_minutes=duration_minutes), make_questions(list(correct)))


class TestLoad:

    def test_load_sorts_by_order_index_keeping_ties(self):
        qs = make_questions([0, 0, 0, 0])
        qs[0] = qs[0].model_copy(update={"order_index": 5})
        qs[1] = qs[1].model_copy(update={"order_index": 1})
        qs[2] = qs[2].model_copy(update={"order_index": 1})
        qs[3] = qs[3].model_copy(update={"order_index": 0})
        catalog = InMemoryCatalog()
        catalog.add_test(make_metadata(), qs)

        metadata, ordered = asyncio.run(engine.load(catalog, "t1"))

        assert metadata.id == "t1"
        assert [q.id for q in ordered] == ["q4", "q2", "q3", "q1"]

    def test_load_unknown_test(self, catalog):
        with pytest.raises(UnknownTestError):
            asyncio.run(engine.load(catalog, "nope"))

    def test_load_empty_test(self, catalog):
        with pytest.raises(EmptyTestError):
            asyncio.run(engine.load(catalog, "empty"))


class TestStart:

    def test_start_initial_state(self):
        state = engine.start(make_metadata(duration_minutes=30), make_questions([0, 1, 2, 3, 0]))

        assert state.phase == AttemptPhase.IN_PROGRESS
        assert state.current_position == 0
        assert state.remaining_seconds == 30 * 60
        assert state.total_seconds == 30 * 60
        assert state.selected_answers == [None] * 5
        assert state.timed_out is False

    def test_start_refuses_empty_questions(self):
        with pytest.raises(EmptyTestError):
            engine.start(make_metadata(), [])

    def test_begin_twice_is_invalid(self):
        state = _started()
        with pytest.raises(InvalidTransitionError):
            engine.begin(state)


class TestAnswers:

    def test_last_selection_wins(self):
        state = _started()
        state = engine.select_answer(state, 0, 3)
        state = engine.select_answer(state, 0, 2)
        state = engine.select_answer(state, 0, 1)

        assert state.selected_answers == [1, None, None]
        _, score = engine.submit(state)
        assert score.correct_count == 1

    def test_select_does_not_mutate_input(self):
        state = _started()
        new_state = engine.select_answer(state, 1, 0)

        assert state.selected_answers == [None, None, None]
        assert new_state.selected_answers == [None, 0, None]

    def test_select_out_of_range_position(self):
        state = _started()
        with pytest.raises(InvalidTransitionError):
            engine.select_answer(state, 3, 0)
        with pytest.raises(InvalidTransitionError):
            engine.select_answer(state, -1, 0)

    def test_select_after_submit_is_invalid(self):
        state, _ = engine.submit(_started())
        with pytest.raises(InvalidTransitionError):
            engine.select_answer(state, 0, 1)

    def test_clear_answer(self):
        state = engine.select_answer(_started(), 2, 2)
        state = engine.clear_answer(state, 2)
        assert state.selected_answers == [None, None, None]


class TestNavigation:

    def test_navigate_direct_jump(self):
        state = engine.navigate(_started(), 2)
        assert state.current_position == 2

    def test_navigate_out_of_range_is_rejected(self):
        state = _started()
        with pytest.raises(InvalidTransitionError):
            engine.navigate(state, 3)
        with pytest.raises(InvalidTransitionError):
            engine.navigate(state, -1)

    def test_step_is_clamped(self):
        state = _started()
        state = engine.step(state, -1)
        assert state.current_position == 0
        state = engine.step(state, 1)
        state = engine.step(state, 1)
        state = engine.step(state, 1)
        assert state.current_position == 2


class TestTick:

    def test_tick_decrements_once(self):
        state = engine.tick(_started())
        assert state.remaining_seconds == 59
        assert state.phase == AttemptPhase.IN_PROGRESS

    def test_timeout_auto_submits_once(self):
        state = engine.start(make_metadata(duration_minutes=1), make_questions([0, 1, 2, 3, 0]))
        submissions = 0
        for _ in range(60):
            before = state.phase
            state = engine.tick(state)
            if before != AttemptPhase.SUBMITTED and state.phase == AttemptPhase.SUBMITTED:
                submissions += 1

        assert submissions == 1
        assert state.phase == AttemptPhase.SUBMITTED
        assert state.remaining_seconds == 0
        assert state.timed_out is True

        _, score = engine.submit(state)
        assert score.correct_count == 0
        assert score.percentage == 0
        assert score.total_questions == 5

    def test_tick_after_submission_has_no_effect(self):
        state, _ = engine.submit(engine.tick(_started()))
        with pytest.raises(InvalidTransitionError):
            engine.tick(state)
        assert state.remaining_seconds == 59

    def test_never_in_progress_with_zero_time(self):
        state = _started()
        for _ in range(59):
            state = engine.tick(state)
        assert state.phase == AttemptPhase.IN_PROGRESS
        assert state.remaining_seconds == 1
        state = engine.tick(state)
        assert state.phase == AttemptPhase.SUBMITTED


class TestSubmit:

    def test_submit_scores_scenario(self):
        state = _started(correct=(1, 0, 2))
        for position, option in enumerate([1, 1, 2]):
            state = engine.select_answer(state, position, option)

        state, score = engine.submit(state)

        assert state.phase == AttemptPhase.SUBMITTED
        assert state.timed_out is False
        assert score.correct_count == 2
        assert score.wrong_count == 1
        assert score.percentage == 67

    def test_submit_is_idempotent(self):
        state = engine.select_answer(_started(), 0, 1)
        first_state, first = engine.submit(state)
        second_state, second = engine.submit(first_state)

        assert first == second
        assert second_state is first_state

    def test_submit_before_start_is_invalid(self):
        state = engine.prepare(make_metadata(), make_questions([0]))
        with pytest.raises(InvalidTransitionError):
            engine.submit(state)
        assert engine.score(state) is None

    def test_elapsed_seconds(self):
        state = _started()
        for _ in range(10):
            state = engine.tick(state)
        state, _ = engine.submit(state)
        assert engine.elapsed_seconds(state) == 10


class TestRetake:

    def test_retake_resets_answers_and_timer(self):
        state = _started(duration_minutes=2)
        state = engine.select_answer(state, 0, 1)
        state = engine.navigate(state, 2)
        for _ in range(30):
            state = engine.tick(state)
        state, _ = engine.submit(state)

        fresh = engine.retake(state)

        assert fresh.phase == AttemptPhase.NOT_STARTED
        assert fresh.selected_answers == [None, None, None]
        assert fresh.remaining_seconds == 120
        assert fresh.current_position == 0
        assert fresh.timed_out is False
        assert [q.id for q in fresh.questions] == [q.id for q in state.questions]

        started = engine.begin(fresh)
        assert started.phase == AttemptPhase.IN_PROGRESS
        assert started.selected_answers == [None, None, None]
