import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from exam_prep.models.question_model import Question, TestMetadata
from exam_prep.services.catalog import InMemoryCatalog
from exam_prep.services.errors import PersistenceError
from exam_prep.services.recorder import InMemoryAttemptRecorder


def make_questions(correct: list[int], options: int = 4) -> list[Question]:
    return [
        Question(
            id=f"q{i + 1}",
            text=f"Question {i + 1}",
            options=[f"option {chr(65 + j)}" for j in range(options)],
            correct_option_index=c,
            explanation=f"because {c}",
            order_index=i,
        )
        for i, c in enumerate(correct)
    ]


def make_metadata(test_id: str = "t1", duration_minutes: int = 1) -> TestMetadata:
    return TestMetadata(
        id=test_id,
        title="Sample Test",
        subject="Mathematics",
        duration_minutes=duration_minutes,
    )


class FailingRecorder:
    def __init__(self):
        self.calls = 0

    async def record_attempt(self, record):
        self.calls += 1
        raise PersistenceError("recorder unreachable")


@pytest.fixture
def questions():
    return make_questions([1, 0, 2])


@pytest.fixture
def metadata():
    return make_metadata()


@pytest.fixture
def catalog(metadata, questions):
    c = InMemoryCatalog()
    c.add_test(metadata, questions)
    c.add_test(make_metadata("empty"), [])
    return c


@pytest.fixture
def recorder():
    return InMemoryAttemptRecorder()


@pytest.fixture
def client(catalog, recorder):
    app = create_app(catalog=catalog, recorder=recorder, tick_interval=60.0)
    with TestClient(app) as c:
        yield c
