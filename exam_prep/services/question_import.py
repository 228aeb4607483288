"""
services/question_import.py

Bulk question import for the admin panel.
Public API:
  - parse_json_questions(text) -> List[Question] : JSON array of question objects
  - parse_csv_questions(text)  -> List[Question] : CSV with a header row

JSON item:
  {"question_text": "...", "options": ["..", ".."], "correct_answer": 1, "explanation": ".."}
  ("question" is accepted instead of "question_text", correct_answer defaults to 0)

CSV columns:
  question_text, option_a, option_b, option_c, option_d, correct_answer (0-3), explanation

Rows are validated one by one; the first invalid row aborts the import with
ImportFormatError naming the row. order_index follows row order.
"""

import csv
import io
import json
import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from exam_prep.models.question_model import Question
from exam_prep.services.errors import ImportFormatError

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "question_text", "option_a", "option_b", "option_c", "option_d",
    "correct_answer", "explanation",
]


class QuestionImportRow(BaseModel):
    """One imported question before it becomes a catalog Question."""

    question_text: str = Field(..., min_length=1)
    options: List[str]
    correct_answer: int = 0
    explanation: Optional[str] = None

    @field_validator("question_text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("question_text is empty")
        return v

    @field_validator("options")
    @classmethod
    def validate_options_length(cls, v: List[str]) -> List[str]:
        if len(v) < 2:
            raise ValueError("at least 2 options are required")
        return v

    @model_validator(mode="after")
    def validate_correct_answer(self) -> "QuestionImportRow":
        if not (0 <= self.correct_answer < len(self.options)):
            raise ValueError(
                f"correct_answer {self.correct_answer} is not a valid option index (0-{len(self.options) - 1})"
            )
        return self

    def to_question(self, order_index: int) -> Question:
        return Question(
            id=uuid.uuid4().hex,
            text=self.question_text,
            options=self.options,
            correct_option_index=self.correct_answer,
            explanation=self.explanation or None,
            order_index=order_index,
        )


def _build_questions(items: List[dict]) -> List[Question]:
    questions: List[Question] = []
    for idx, item in enumerate(items):
        try:
            row = QuestionImportRow(**item)
        except (ValidationError, TypeError) as e:
            raise ImportFormatError(f"question {idx + 1}: {e}") from e
        questions.append(row.to_question(order_index=idx))
    return questions


# ══════════════════════════════════════════════════════════════════════════════
# JSON
# ══════════════════════════════════════════════════════════════════════════════

def parse_json_questions(text: str) -> List[Question]:
    """JSON question array → Question list."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"invalid JSON: {e.msg}") from e

    if not isinstance(data, list) or not data:
        raise ImportFormatError("expected a non-empty array of questions")

    items: List[dict] = []
    for idx, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise ImportFormatError(f"question {idx + 1}: expected an object")
        item = dict(raw)
        if "question_text" not in item and "question" in item:
            item["question_text"] = item.pop("question")
        if item.get("correct_answer") is None:
            item["correct_answer"] = 0
        items.append(item)

    questions = _build_questions(items)
    logger.info(f"parse_json_questions: {len(questions)} questions parsed")
    return questions


# ══════════════════════════════════════════════════════════════════════════════
# CSV
# ══════════════════════════════════════════════════════════════════════════════

def _parse_correct_answer(value: str) -> int:
    value = (value or "").strip()
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def parse_csv_questions(text: str) -> List[Question]:
    """CSV text (header row + one question per row) → Question list."""
    rows = [row for row in csv.reader(io.StringIO(text.lstrip("\ufeff"))) if any(c.strip() for c in row)]
    if len(rows) < 2:
        raise ImportFormatError("CSV must have a header row and at least one question")

    items: List[dict] = []
    for cols in rows[1:]:
        cols = [c.strip() for c in cols] + [""] * (len(CSV_HEADER) - len(cols))
        items.append({
            "question_text": cols[0],
            "options": [c for c in cols[1:5] if c],
            "correct_answer": _parse_correct_answer(cols[5]),
            "explanation": cols[6] or None,
        })

    questions = _build_questions(items)
    logger.info(f"parse_csv_questions: {len(questions)} questions parsed")
    return questions
