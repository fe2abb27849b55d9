"""Enrollment gate for a signed-in student.

Lesson content and progress writes are only offered for courses the student
has joined. The data service's row-level policies remain the real enforcement;
this gate keeps the UI from offering actions that would be refused.
"""

import logging

from elearning.database.store import DuplicateRowError, RowStore
from elearning.exceptions import EnrollmentRequiredError


logger = logging.getLogger(__name__)

ENROLLMENTS_TABLE = "enrollments"


class EnrollmentGate:
    """Tracks which courses one student is enrolled in."""

    def __init__(self, store: RowStore, user_id: str) -> None:
        self._store = store
        self.user_id = user_id
        self._course_ids: set[str] = set()

    @property
    def course_ids(self) -> frozenset[str]:
        return frozenset(self._course_ids)

    async def load(self) -> frozenset[str]:
        rows = await self._store.select(ENROLLMENTS_TABLE, filters={"user_id": self.user_id}, columns="course_id")
        self._course_ids = {str(row["course_id"]) for row in rows}
        return self.course_ids

    def is_enrolled(self, course_id: str) -> bool:
        return course_id in self._course_ids

    def require(self, course_id: str) -> None:
        if course_id not in self._course_ids:
            raise EnrollmentRequiredError(course_id)

    async def enroll(self, course_id: str) -> bool:
        """Enroll in `course_id`. Returns False when already enrolled."""
        if course_id in self._course_ids:
            return False
        try:
            await self._store.insert(ENROLLMENTS_TABLE, {"user_id": self.user_id, "course_id": course_id})
        except DuplicateRowError:
            logger.info(f"User {self.user_id} was already enrolled in {course_id}")
            self._course_ids.add(course_id)
            return False
        self._course_ids.add(course_id)
        logger.info(f"User {self.user_id} enrolled in {course_id}")
        return True
