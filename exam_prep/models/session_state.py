"""
models/session_state.py

Attempt state of one mock test run (the OMR card) and its derived results.
Pydantic BaseModel based for serialization and type safety.
No UI code.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from exam_prep.models.question_model import Question


class AttemptPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class AttemptState(BaseModel):
    """
    Full state of a single attempt.

    Engine transitions return a new AttemptState instead of mutating this one.

    Attributes:
        test_id:          Catalog id of the test being taken.
        phase:            NOT_STARTED → IN_PROGRESS → SUBMITTED.
        questions:        Ordered questions, fixed when the attempt is prepared.
        selected_answers: Option index per position, None = unanswered.
                          Always the same length as questions.
        current_position: Position of the question on screen (0-based).
        remaining_seconds: Countdown value, decremented once per tick.
        total_seconds:    Full duration recorded at start.
        timed_out:        True if submission was forced by the countdown.
    """

    test_id: str
    phase: AttemptPhase = Field(
        default=AttemptPhase.NOT_STARTED,
        description="Lifecycle phase"
    )
    questions: List[Question] = Field(
        default_factory=list,
        description="Ordered questions of this attempt"
    )
    selected_answers: List[Optional[int]] = Field(
        default_factory=list,
        description="Selected option index per position, None if unanswered"
    )
    current_position: int = Field(
        default=0,
        ge=0,
        description="Question on screen (0-based)"
    )
    remaining_seconds: int = Field(
        default=0,
        ge=0,
        description="Seconds left on the countdown"
    )
    total_seconds: int = Field(
        default=0,
        ge=0,
        description="Full test duration in seconds"
    )
    timed_out: bool = False

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.selected_answers if a is not None)

    @property
    def in_progress(self) -> bool:
        return self.phase == AttemptPhase.IN_PROGRESS

    @property
    def is_submitted(self) -> bool:
        return self.phase == AttemptPhase.SUBMITTED


class ScoreResult(BaseModel):
    """Score of a submitted attempt. Unanswered questions count as wrong."""

    correct_count: int
    wrong_count: int
    total_questions: int
    percentage: int
    unanswered_count: int = 0


class QuestionReview(BaseModel):
    """One row of the post-submission answer review."""

    position: int
    question_id: str
    text: str
    options: List[str]
    selected_index: Optional[int] = None
    selected_text: Optional[str] = None
    correct_index: int
    correct_text: Optional[str] = None
    is_correct: bool
    explanation: Optional[str] = None


class AttemptRecord(BaseModel):
    """Completed attempt handed to the attempt recorder."""

    test_id: str
    user_id: str
    answers: List[Optional[int]]
    correct_count: int
    total_questions: int
    elapsed_seconds: int
    completed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Submission time (UTC)"
    )
