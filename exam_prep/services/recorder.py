"""
services/recorder.py

Attempt recorder: sink for completed attempts of identified users.
"""

import logging
import threading
from typing import List, Protocol

from exam_prep.models.session_state import AttemptRecord

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


class AttemptRecorder(Protocol):
    async def record_attempt(self, record: AttemptRecord) -> None:
        """Persist one completed attempt. May raise on failure."""
        ...


class InMemoryAttemptRecorder:
    """Keeps recorded attempts in process memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[AttemptRecord] = []

    async def record_attempt(self, record: AttemptRecord) -> None:
        with self._lock:
            self._records.append(record)
        logger.info(
            f"record_attempt: user {record.user_id} test {record.test_id} "
            f"{record.correct_count}/{record.total_questions} in {record.elapsed_seconds}s"
        )

    def list_attempts(self, user_id: str, limit: int = HISTORY_LIMIT) -> List[AttemptRecord]:
        """Attempts of one user, newest first."""
        with self._lock:
            mine = [r for r in self._records if r.user_id == user_id]
        mine.sort(key=lambda r: r.completed_at, reverse=True)
        return mine[:limit]
