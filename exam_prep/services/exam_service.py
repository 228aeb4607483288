"""
services/exam_service.py

Scoring and result analysis for mock test attempts.
Plain Python functions: no UI code, no global state.

Each question is worth one mark. There is no negative marking: an unanswered
or wrong question contributes 0, never a deduction.
"""

from typing import List, Optional, Sequence

from exam_prep.models.question_model import Question
from exam_prep.models.session_state import QuestionReview, ScoreResult


def effective_answer(question: Question, selected: Optional[int]) -> Optional[int]:
    """
    Selected index as used for scoring and review.

    An index outside the question's options is treated as unanswered.
    """
    if question.has_option(selected):
        return selected
    return None


def is_correct(question: Question, selected: Optional[int]) -> bool:
    answer = effective_answer(question, selected)
    return answer is not None and answer == question.correct_option_index


def calculate_percentage(correct_count: int, total_questions: int) -> int:
    """
    correct / total * 100, rounded half up to an integer.

    Returns 0 when total_questions is 0.
    """
    if total_questions <= 0:
        return 0
    # integer arithmetic: floor(correct * 100 / total + 0.5)
    return (correct_count * 200 + total_questions) // (2 * total_questions)


def calculate_score(
    questions: Sequence[Question],
    selected_answers: Sequence[Optional[int]],
) -> ScoreResult:
    """
    Score an answer sheet against its questions in a single pass.

    Args:
        questions:        Ordered questions of the attempt.
        selected_answers: Option index per position (None = unanswered).
                          Missing trailing positions count as unanswered.

    Returns:
        ScoreResult with correct + wrong == total.
    """
    total = len(questions)
    correct = 0
    unanswered = 0

    for position, q in enumerate(questions):
        selected = selected_answers[position] if position < len(selected_answers) else None
        answer = effective_answer(q, selected)
        if answer is None:
            unanswered += 1
        elif answer == q.correct_option_index:
            correct += 1

    return ScoreResult(
        correct_count=correct,
        wrong_count=total - correct,
        total_questions=total,
        percentage=calculate_percentage(correct, total),
        unanswered_count=unanswered,
    )


def get_incorrect_positions(
    questions: Sequence[Question],
    selected_answers: Sequence[Optional[int]],
) -> List[int]:
    """Positions answered wrongly or left unanswered, in question order."""
    incorrect: List[int] = []
    for position, q in enumerate(questions):
        selected = selected_answers[position] if position < len(selected_answers) else None
        if not is_correct(q, selected):
            incorrect.append(position)
    return incorrect


def build_review(
    questions: Sequence[Question],
    selected_answers: Sequence[Optional[int]],
) -> List[QuestionReview]:
    """Per-question answer review shown after submission."""
    review: List[QuestionReview] = []
    for position, q in enumerate(questions):
        selected = selected_answers[position] if position < len(selected_answers) else None
        answer = effective_answer(q, selected)
        review.append(QuestionReview(
            position=position,
            question_id=q.id,
            text=q.text,
            options=list(q.options),
            selected_index=answer,
            selected_text=q.option_text(answer),
            correct_index=q.correct_option_index,
            correct_text=q.option_text(q.correct_option_index),
            is_correct=is_correct(q, answer),
            explanation=q.explanation,
        ))
    return review


def performance_band(percentage: int) -> str:
    """
    Result band used to colour the score.

    Returns:
        "good" for 70 and above, "average" for 40 and above, else "poor".
    """
    if percentage >= 70:
        return "good"
    if percentage >= 40:
        return "average"
    return "poor"


def is_passed(percentage: int, pass_percentage: int = 40) -> bool:
    return percentage >= pass_percentage
