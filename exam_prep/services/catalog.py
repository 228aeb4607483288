"""
services/catalog.py

Test catalog provider: where test metadata and questions come from.

The engine only depends on the TestCatalogProvider protocol. InMemoryCatalog
is the implementation the API runs on (seeded with the sample catalog).
"""

import logging
import threading
from typing import Dict, List, Optional, Protocol

from exam_prep.models.question_model import Question, TestMetadata

logger = logging.getLogger(__name__)


class TestCatalogProvider(Protocol):
    async def fetch_test(self, test_id: str) -> Optional[TestMetadata]:
        ...

    async def fetch_questions(self, test_id: str) -> List[Question]:
        ...


class InMemoryCatalog:
    """Thread-safe in-memory catalog keyed by test id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tests: Dict[str, TestMetadata] = {}
        self._questions: Dict[str, List[Question]] = {}

    def add_test(self, metadata: TestMetadata, questions: Optional[List[Question]] = None) -> None:
        with self._lock:
            self._tests[metadata.id] = metadata
            self._questions[metadata.id] = list(questions or [])

    def list_tests(self) -> List[TestMetadata]:
        with self._lock:
            return list(self._tests.values())

    def question_count(self, test_id: str) -> int:
        with self._lock:
            return len(self._questions.get(test_id, []))

    def add_questions(self, test_id: str, questions: List[Question]) -> List[Question]:
        """
        Append questions to an existing test.

        order_index is shifted past the current questions so imported
        questions are displayed after the existing ones.

        Raises:
            KeyError: unknown test id.
        """
        with self._lock:
            if test_id not in self._tests:
                raise KeyError(test_id)
            existing = self._questions.setdefault(test_id, [])
            offset = max((q.order_index for q in existing), default=-1) + 1
            added = [
                q.model_copy(update={"order_index": offset + q.order_index})
                for q in questions
            ]
            existing.extend(added)

        logger.info(f"add_questions: {len(added)} questions added to test {test_id}")
        return added

    async def fetch_test(self, test_id: str) -> Optional[TestMetadata]:
        with self._lock:
            return self._tests.get(test_id)

    async def fetch_questions(self, test_id: str) -> List[Question]:
        with self._lock:
            return list(self._questions.get(test_id, []))
