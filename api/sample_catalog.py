"""
api/sample_catalog.py — sample tests the server starts with
"""

from exam_prep.models.question_model import Question, TestMetadata
from exam_prep.services.catalog import InMemoryCatalog


SAMPLE_TESTS: list[tuple[TestMetadata, list[Question]]] = [
    (
        TestMetadata(
            id="mt1", title="Calculus Fundamentals", subject="Mathematics",
            chapter="Differential Calculus", duration_minutes=30, difficulty="Medium",
        ),
        [
            Question(
                id="mt1-q1", order_index=0,
                text="What is the derivative of sin(x)?",
                options=["cos(x)", "-cos(x)", "sin(x)", "-sin(x)"],
                correct_option_index=0,
                explanation="d/dx sin(x) = cos(x).",
            ),
            Question(
                id="mt1-q2", order_index=1,
                text="What is the derivative of x^3?",
                options=["x^2", "3x^2", "3x", "x^3 / 3"],
                correct_option_index=1,
                explanation="Power rule: d/dx x^n = n·x^(n-1).",
            ),
            Question(
                id="mt1-q3", order_index=2,
                text="The derivative of a constant is:",
                options=["1", "the constant itself", "0", "undefined"],
                correct_option_index=2,
            ),
        ],
    ),
    (
        TestMetadata(
            id="mt2", title="Mechanics Basics", subject="Physics",
            chapter="Classical Mechanics", duration_minutes=25, difficulty="Easy",
        ),
        [
            Question(
                id="mt2-q1", order_index=0,
                text="Which of the following is Newton's First Law of Motion?",
                options=[
                    "F = ma",
                    "Every action has an equal and opposite reaction",
                    "An object at rest stays at rest unless acted upon by a force",
                    "Energy cannot be created or destroyed",
                ],
                correct_option_index=2,
                explanation="The first law is the law of inertia.",
            ),
            Question(
                id="mt2-q2", order_index=1,
                text="The SI unit of force is:",
                options=["Joule", "Newton", "Watt", "Pascal"],
                correct_option_index=1,
            ),
        ],
    ),
    (
        TestMetadata(
            id="mt6", title="Data Structures", subject="Computer Science",
            chapter="Arrays & Linked Lists", duration_minutes=30, difficulty="Hard",
        ),
        [
            Question(
                id="mt6-q1", order_index=0,
                text="Which data structure follows the LIFO principle?",
                options=["Queue", "Stack", "Array", "Linked List"],
                correct_option_index=1,
                explanation="A stack removes the most recently added element first.",
            ),
            Question(
                id="mt6-q2", order_index=1,
                text="Accessing the i-th element of an array takes:",
                options=["O(1)", "O(log n)", "O(n)", "O(n log n)"],
                correct_option_index=0,
            ),
            Question(
                id="mt6-q3", order_index=2,
                text="Inserting at the head of a singly linked list takes:",
                options=["O(n)", "O(1)", "O(log n)", "O(n^2)"],
                correct_option_index=1,
            ),
        ],
    ),
]


def build_sample_catalog() -> InMemoryCatalog:
    catalog = InMemoryCatalog()
    for metadata, questions in SAMPLE_TESTS:
        catalog.add_test(metadata, questions)
    return catalog
