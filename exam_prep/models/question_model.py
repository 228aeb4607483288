from typing import Optional, List
from pydantic import BaseModel, Field, field_validator


def option_label(index: int) -> str:
    """Option index → display letter (0 → "A", 1 → "B", ...)."""
    return chr(ord("A") + index)


class Question(BaseModel):
    """
    Mock test question as supplied by the catalog.

    Neither the option count nor the range of correct_option_index is
    validated here: bad catalog rows must still load and score.
    """
    id: str = Field(
        ...,
        description="Opaque unique identifier"
    )
    text: str = Field(
        ...,
        description="Question prompt"
    )
    options: List[str] = Field(
        default_factory=list,
        description="Ordered option strings, index 0 = A"
    )
    correct_option_index: int = Field(
        ...,
        description="Index of the correct option in options"
    )
    explanation: Optional[str] = Field(
        None,
        description="Shown only after submission"
    )
    order_index: int = Field(
        default=0,
        description="Display order within the test (ascending, ties keep input order)"
    )

    def has_option(self, index: Optional[int]) -> bool:
        return index is not None and 0 <= index < len(self.options)

    def option_text(self, index: Optional[int]) -> Optional[str]:
        if not self.has_option(index):
            return None
        return self.options[index]


class TestMetadata(BaseModel):
    """Mock test header: title, subject and time limit."""

    id: str
    title: str
    subject: str
    duration_minutes: int = Field(
        ...,
        description="Time limit in minutes"
    )
    chapter: Optional[str] = None
    description: Optional[str] = None
    difficulty: str = "Medium"

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("duration_minutes must be a positive integer")
        return v
