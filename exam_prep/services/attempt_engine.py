"""
services/attempt_engine.py

Mock test attempt state machine.

    NOT_STARTED --begin--> IN_PROGRESS --submit (manual or timeout)--> SUBMITTED
    IN_PROGRESS --select_answer/navigate/step/tick--> IN_PROGRESS
    SUBMITTED   --retake--> NOT_STARTED (fresh)

Every transition is synchronous and returns a new AttemptState; the input
state is never mutated. Calls that the current phase does not allow raise
InvalidTransitionError. `load` is the only coroutine: it awaits the catalog.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from exam_prep.models.question_model import Question, TestMetadata
from exam_prep.models.session_state import AttemptPhase, AttemptState, ScoreResult
from exam_prep.services.catalog import TestCatalogProvider
from exam_prep.services.errors import EmptyTestError, InvalidTransitionError, UnknownTestError
from exam_prep.services.exam_service import calculate_score

logger = logging.getLogger(__name__)


# ── Loading ──────────────────────────────────────────────────────────────────

async def load(
    catalog: TestCatalogProvider,
    test_id: str,
) -> Tuple[TestMetadata, List[Question]]:
    """
    Fetch test metadata and its questions from the catalog.

    Questions are sorted by order_index; ties keep the provider order.

    Raises:
        UnknownTestError: unknown test id.
        EmptyTestError:    the test has no questions.
    """
    metadata = await catalog.fetch_test(test_id)
    if metadata is None:
        raise UnknownTestError(test_id)

    questions = await catalog.fetch_questions(test_id)
    if not questions:
        raise EmptyTestError(test_id)

    ordered = sorted(questions, key=lambda q: q.order_index)
    logger.info(f"load: test {test_id} - {len(ordered)} questions, {metadata.duration_minutes} min")
    return metadata, ordered


# ── Lifecycle ────────────────────────────────────────────────────────────────

def prepare(metadata: TestMetadata, questions: Sequence[Question]) -> AttemptState:
    """Fresh NOT_STARTED attempt: all unanswered, full time on the clock."""
    if not questions:
        raise EmptyTestError(metadata.id)

    total_seconds = metadata.duration_minutes * 60
    return AttemptState(
        test_id=metadata.id,
        phase=AttemptPhase.NOT_STARTED,
        questions=list(questions),
        selected_answers=[None] * len(questions),
        current_position=0,
        remaining_seconds=total_seconds,
        total_seconds=total_seconds,
    )


def begin(state: AttemptState) -> AttemptState:
    """NOT_STARTED → IN_PROGRESS. The only way into IN_PROGRESS."""
    if state.phase != AttemptPhase.NOT_STARTED:
        raise InvalidTransitionError(f"cannot begin an attempt in phase {state.phase.value}")
    if not state.questions:
        raise EmptyTestError(state.test_id)
    return state.model_copy(update={"phase": AttemptPhase.IN_PROGRESS})


def start(metadata: TestMetadata, questions: Sequence[Question]) -> AttemptState:
    """
    Start a new attempt.

    Returns an IN_PROGRESS state at position 0 with
    remaining_seconds == duration_minutes * 60 and every answer unanswered.

    Raises:
        EmptyTestError: questions is empty.
    """
    return begin(prepare(metadata, questions))


def retake(state: AttemptState) -> AttemptState:
    """
    Throw the attempt away and return a fresh NOT_STARTED one
    with the same questions. Previous answers are never carried over.
    """
    if not state.questions:
        raise EmptyTestError(state.test_id)
    return AttemptState(
        test_id=state.test_id,
        phase=AttemptPhase.NOT_STARTED,
        questions=list(state.questions),
        selected_answers=[None] * len(state.questions),
        current_position=0,
        remaining_seconds=state.total_seconds,
        total_seconds=state.total_seconds,
    )


# ── In-progress transitions ──────────────────────────────────────────────────

def _require_in_progress(state: AttemptState, action: str) -> None:
    if state.phase != AttemptPhase.IN_PROGRESS:
        raise InvalidTransitionError(f"cannot {action} in phase {state.phase.value}")


def _require_position(state: AttemptState, position: int, action: str) -> None:
    if not (0 <= position < len(state.questions)):
        raise InvalidTransitionError(
            f"cannot {action}: position {position} out of range (0-{len(state.questions) - 1})"
        )


def select_answer(state: AttemptState, position: int, option_index: int) -> AttemptState:
    """Record the selected option for a position. Last write wins."""
    _require_in_progress(state, "select an answer")
    _require_position(state, position, "select an answer")

    answers = list(state.selected_answers)
    answers[position] = option_index
    return state.model_copy(update={"selected_answers": answers})


def clear_answer(state: AttemptState, position: int) -> AttemptState:
    """Reset a position to unanswered."""
    _require_in_progress(state, "clear an answer")
    _require_position(state, position, "clear an answer")

    answers = list(state.selected_answers)
    answers[position] = None
    return state.model_copy(update={"selected_answers": answers})


def navigate(state: AttemptState, target_position: int) -> AttemptState:
    """Jump straight to a question. Out-of-range targets are rejected, not clamped."""
    _require_in_progress(state, "navigate")
    _require_position(state, target_position, "navigate")
    return state.model_copy(update={"current_position": target_position})


def step(state: AttemptState, delta: int) -> AttemptState:
    """Previous/next navigation, clamped to the first and last question."""
    _require_in_progress(state, "navigate")
    last = len(state.questions) - 1
    position = max(0, min(state.current_position + delta, last))
    return state.model_copy(update={"current_position": position})


def tick(state: AttemptState) -> AttemptState:
    """
    One elapsed second. Decrements remaining_seconds by exactly 1;
    when it reaches 0 the attempt is submitted (timed_out=True).
    """
    _require_in_progress(state, "tick")

    remaining = max(0, state.remaining_seconds - 1)
    state = state.model_copy(update={"remaining_seconds": remaining})
    if remaining == 0:
        logger.info(f"tick: time is up for test {state.test_id}, forcing submission")
        state, _ = _finalize(state, timed_out=True)
    return state


# ── Submission ───────────────────────────────────────────────────────────────

def _finalize(state: AttemptState, timed_out: bool) -> Tuple[AttemptState, ScoreResult]:
    submitted = state.model_copy(update={
        "phase": AttemptPhase.SUBMITTED,
        "timed_out": timed_out,
    })
    return submitted, calculate_score(submitted.questions, submitted.selected_answers)


def submit(state: AttemptState) -> Tuple[AttemptState, ScoreResult]:
    """
    Submit the attempt and score it.

    Idempotent: an already SUBMITTED state is returned unchanged with the
    same score.

    Raises:
        InvalidTransitionError: the attempt has not started.
    """
    if state.phase == AttemptPhase.SUBMITTED:
        return state, calculate_score(state.questions, state.selected_answers)
    if state.phase != AttemptPhase.IN_PROGRESS:
        raise InvalidTransitionError(f"cannot submit in phase {state.phase.value}")
    return _finalize(state, timed_out=False)


def elapsed_seconds(state: AttemptState) -> int:
    """Seconds used so far, derived from the countdown."""
    return max(0, state.total_seconds - state.remaining_seconds)


def score(state: AttemptState) -> Optional[ScoreResult]:
    """Score of a submitted attempt, None before submission."""
    if state.phase != AttemptPhase.SUBMITTED:
        return None
    return calculate_score(state.questions, state.selected_answers)
