"""
services/errors.py

Typed failures raised by the exam services.
"""


class ExamPrepError(Exception):
    """Base class for mock test errors."""


class UnknownTestError(ExamPrepError):
    """The requested test id does not exist in the catalog."""

    def __init__(self, test_id: str):
        super().__init__(f"test not found: {test_id}")
        self.test_id = test_id


class EmptyTestError(ExamPrepError):
    """The test exists but has no questions."""

    def __init__(self, test_id: str):
        super().__init__(f"no questions available for test {test_id}")
        self.test_id = test_id


class InvalidTransitionError(ExamPrepError):
    """An attempt operation was called in a phase that does not allow it."""


class PersistenceError(ExamPrepError):
    """The attempt recorder failed to store a completed attempt."""


class ImportFormatError(ValueError):
    """Bulk question import input could not be parsed or validated."""
