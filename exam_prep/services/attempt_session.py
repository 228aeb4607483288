"""
services/attempt_session.py

Driver for one user's mock test attempt.

Owns the single AttemptState of a session and applies engine transitions in
call order. Out-of-phase calls are logged and ignored. On the first
submission (manual or timeout) the countdown is torn down and, for an
identified user, one AttemptRecord is handed to the recorder. Recorder
failures are logged and never change the score shown to the user.
"""

import asyncio
import logging
from typing import List, Optional, Set

from exam_prep.models.question_model import Question, TestMetadata
from exam_prep.models.session_state import AttemptRecord, AttemptState, QuestionReview, ScoreResult
from exam_prep.services import attempt_engine as engine
from exam_prep.services.catalog import TestCatalogProvider
from exam_prep.services.countdown import Countdown
from exam_prep.services.errors import InvalidTransitionError
from exam_prep.services.exam_service import build_review, effective_answer
from exam_prep.services.recorder import AttemptRecorder

logger = logging.getLogger(__name__)


class MockTestSession:

    def __init__(
        self,
        catalog: TestCatalogProvider,
        recorder: Optional[AttemptRecorder] = None,
        user_id: Optional[str] = None,
        tick_interval: float = 1.0,
    ):
        self.catalog = catalog
        self.recorder = recorder
        self.user_id = user_id
        self.tick_interval = tick_interval

        self.metadata: Optional[TestMetadata] = None
        self.state: Optional[AttemptState] = None
        self.result: Optional[ScoreResult] = None
        self.persisted: Optional[bool] = None
        self.record_task: Optional[asyncio.Task] = None
        self._countdown: Optional[Countdown] = None
        # bumped on every new attempt; a recording only reports back to its own attempt
        self._generation = 0
        self._pending_records: Set[asyncio.Task] = set()

    # ── Loading / starting ────────────────────────────────────────────────

    async def load(self, test_id: str) -> List[Question]:
        """Load a test and prepare a NOT_STARTED attempt for it."""
        self.cancel_countdown()
        metadata, questions = await engine.load(self.catalog, test_id)
        self.metadata = metadata
        self.state = engine.prepare(metadata, questions)
        self._reset_outcome()
        return questions

    def start(self) -> AttemptState:
        """Begin the loaded attempt. Does not start the countdown."""
        if self.state is None:
            raise InvalidTransitionError("no test loaded")
        self.state = self._apply("begin", engine.begin, self.state)
        return self.state

    def start_countdown(self) -> Countdown:
        """Drive tick() from the running event loop until the attempt ends."""
        self.cancel_countdown()
        self._countdown = Countdown(
            on_tick=self.tick,
            is_active=lambda: self.state is not None and self.state.in_progress,
            interval=self.tick_interval,
        )
        self._countdown.start()
        return self._countdown

    def cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    # ── Transitions ───────────────────────────────────────────────────────

    def _apply(self, action: str, fn, *args):
        """Run an engine transition; invalid transitions leave the state unchanged."""
        try:
            return fn(*args)
        except InvalidTransitionError as e:
            logger.warning(f"{action} ignored: {e}")
            return self.state

    def _require_state(self) -> AttemptState:
        if self.state is None:
            raise InvalidTransitionError("no attempt")
        return self.state

    def select_answer(self, position: int, option_index: int) -> AttemptState:
        state = self._require_state()
        self.state = self._apply("select_answer", engine.select_answer, state, position, option_index)
        return self.state

    def clear_answer(self, position: int) -> AttemptState:
        state = self._require_state()
        self.state = self._apply("clear_answer", engine.clear_answer, state, position)
        return self.state

    def navigate(self, position: int) -> bool:
        """Direct jump. Returns False when the jump was rejected."""
        state = self._require_state()
        self.state = self._apply("navigate", engine.navigate, state, position)
        return self.state is not state

    def next(self) -> AttemptState:
        state = self._require_state()
        self.state = self._apply("next", engine.step, state, 1)
        return self.state

    def previous(self) -> AttemptState:
        state = self._require_state()
        self.state = self._apply("previous", engine.step, state, -1)
        return self.state

    def tick(self) -> AttemptState:
        state = self._require_state()
        self.state = self._apply("tick", engine.tick, state)
        if self.state.is_submitted and not state.is_submitted:
            self._on_submitted()
        return self.state

    def submit(self) -> Optional[ScoreResult]:
        """
        Submit the attempt.

        Returns:
            The score, or None when the attempt has not started.
            A second call returns the same score without recording again.
        """
        state = self._require_state()
        try:
            new_state, result = engine.submit(state)
        except InvalidTransitionError as e:
            logger.warning(f"submit ignored: {e}")
            return None

        self.state = new_state
        if not state.is_submitted:
            self._on_submitted()
        return result

    def retake(self) -> AttemptState:
        """Discard the attempt and prepare a fresh one with the same questions."""
        state = self._require_state()
        self.cancel_countdown()
        self.state = engine.retake(state)
        self._reset_outcome()
        return self.state

    def _reset_outcome(self) -> None:
        self._generation += 1
        self.result = None
        self.persisted = None
        self.record_task = None

    # ── Results ───────────────────────────────────────────────────────────

    @property
    def elapsed_seconds(self) -> int:
        return engine.elapsed_seconds(self._require_state())

    def review(self) -> List[QuestionReview]:
        state = self._require_state()
        if not state.is_submitted:
            raise InvalidTransitionError("review is only available after submission")
        return build_review(state.questions, state.selected_answers)

    # ── Submission side effects ───────────────────────────────────────────

    def _on_submitted(self) -> None:
        self.cancel_countdown()
        state = self.state
        self.result = engine.score(state)
        elapsed = engine.elapsed_seconds(state)
        logger.info(
            f"submitted test {state.test_id}: {self.result.correct_count}/{self.result.total_questions} "
            f"({self.result.percentage}%) in {elapsed}s{' [timeout]' if state.timed_out else ''}"
        )

        if self.recorder is None or not self.user_id:
            logger.debug("anonymous attempt, not recorded")
            return

        record = AttemptRecord(
            test_id=state.test_id,
            user_id=self.user_id,
            answers=[effective_answer(q, a) for q, a in zip(state.questions, state.selected_answers)],
            correct_count=self.result.correct_count,
            total_questions=self.result.total_questions,
            elapsed_seconds=elapsed,
        )
        self._dispatch_record(record)

    def _dispatch_record(self, record: AttemptRecord) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            asyncio.run(self._record(record, self._generation))
        else:
            task = loop.create_task(self._record(record, self._generation))
            self._pending_records.add(task)
            task.add_done_callback(self._pending_records.discard)
            self.record_task = task

    async def _record(self, record: AttemptRecord, generation: int) -> None:
        try:
            await self.recorder.record_attempt(record)
        except Exception as e:
            logger.error(f"attempt for test {record.test_id} not recorded: {type(e).__name__}: {e}")
            persisted = False
        else:
            persisted = True

        if generation != self._generation:
            logger.debug(f"recording of a replaced attempt finished (persisted={persisted})")
            return
        self.persisted = persisted
