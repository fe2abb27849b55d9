"""Optimistic lesson progress with background persistence.

Local state is updated synchronously so the UI reflects a completion or quiz
score at once. The matching `student_progress` row is written afterwards as an
atomic upsert on (user_id, course_id, lesson_id). Writes for one key never
overlap, and a write whose version has been superseded is dropped.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import UTC, datetime

from elearning.courses.models import Course, Lesson, LessonType
from elearning.database.store import PolicyRejectedError, RowStore, StoreError
from elearning.enrollments.service import EnrollmentGate
from elearning.exceptions import ValidationError

from .models import LessonProgress, ProgressKey
from .scoring import QuizResult, completion_percentage, score_quiz


logger = logging.getLogger(__name__)

PROGRESS_TABLE = "student_progress"
PROGRESS_CONFLICT_KEY = ("user_id", "course_id", "lesson_id")


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


class ProgressSynchronizer:
    """Progress map for one student, mirrored to the row store."""

    def __init__(
        self,
        store: RowStore,
        user_id: str,
        enrollments: EnrollmentGate,
        *,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._enrollments = enrollments
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay

        self._progress: dict[str, dict[str, LessonProgress]] = {}
        self._locks: dict[ProgressKey, asyncio.Lock] = {}
        self._synced_versions: dict[ProgressKey, int] = {}
        self._unsynced: set[ProgressKey] = set()
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    # --- reads -----------------------------------------------------------------

    async def load(self) -> None:
        """Replace the local map with the student's stored rows."""
        rows = await self._store.select(PROGRESS_TABLE, filters={"user_id": self.user_id})
        progress: dict[str, dict[str, LessonProgress]] = {}
        for row in rows:
            progress.setdefault(str(row["course_id"]), {})[str(row["lesson_id"])] = LessonProgress(
                completed=bool(row.get("completed")),
                score=int(row.get("score") or 0),
                updated_at=_parse_timestamp(row.get("updated_at")),
            )
        self._progress = progress
        self._synced_versions.clear()
        self._unsynced.clear()
        logger.info(f"Loaded {len(rows)} progress records for user {self.user_id}")

    def snapshot(self) -> dict[str, dict[str, LessonProgress]]:
        return {
            course_id: {lesson_id: LessonProgress(**vars(entry)) for lesson_id, entry in lessons.items()}
            for course_id, lessons in self._progress.items()
        }

    def lesson_progress(self, course_id: str, lesson_id: str) -> LessonProgress | None:
        return self._progress.get(course_id, {}).get(lesson_id)

    def course_completion(self, course: Course) -> int:
        """Percentage of the course's lessons marked completed."""
        return completion_percentage(course.lessons, self._progress.get(course.id, {}))

    @property
    def unsynced(self) -> frozenset[ProgressKey]:
        return frozenset(self._unsynced)

    # --- mutations -------------------------------------------------------------

    def mark_lesson_complete(self, course_id: str, lesson_id: str, completed: bool = True) -> LessonProgress:
        """Set the completion flag; an earlier quiz score is kept."""
        self._enrollments.require(course_id)
        current = self.lesson_progress(course_id, lesson_id)
        score = current.score if current else 0
        return self._apply(course_id, lesson_id, completed=completed, score=score)

    def submit_quiz(self, course_id: str, lesson: Lesson, answers: Mapping[str, int]) -> QuizResult:
        """Score a quiz attempt and record the lesson as completed."""
        self._enrollments.require(course_id)
        if lesson.type != LessonType.QUIZ or lesson.quiz_data is None:
            msg = f"Lesson {lesson.id} is not a quiz"
            raise ValidationError(msg)
        result = score_quiz(lesson.quiz_data, answers)
        self._apply(course_id, lesson.id, completed=True, score=result.score)
        return result

    def _apply(self, course_id: str, lesson_id: str, *, completed: bool, score: int) -> LessonProgress:
        if self._closed:
            msg = "Progress synchronizer is closed"
            raise RuntimeError(msg)
        lessons = self._progress.setdefault(course_id, {})
        current = lessons.get(lesson_id)
        entry = LessonProgress(
            completed=completed,
            score=score,
            version=(current.version if current else 0) + 1,
            updated_at=datetime.now(UTC),
        )
        lessons[lesson_id] = entry
        self._schedule_write((course_id, lesson_id))
        return entry

    # --- remote writes ---------------------------------------------------------

    def _schedule_write(self, key: ProgressKey) -> None:
        task = asyncio.get_running_loop().create_task(self._write(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _write(self, key: ProgressKey) -> None:
        course_id, lesson_id = key
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self.lesson_progress(course_id, lesson_id)
            if entry is None:
                return
            if entry.version <= self._synced_versions.get(key, 0):
                # a later write already carried this state
                return

            version = entry.version
            row = {
                "user_id": self.user_id,
                "course_id": course_id,
                "lesson_id": lesson_id,
                "completed": entry.completed,
                "score": entry.score,
                "updated_at": (entry.updated_at or datetime.now(UTC)).isoformat(),
            }

            for attempt in range(1, self._max_attempts + 1):
                try:
                    await self._store.upsert(PROGRESS_TABLE, row, on_conflict=PROGRESS_CONFLICT_KEY)
                except PolicyRejectedError as e:
                    logger.error(f"Progress write for {key} rejected by policy: {e}")
                    self._unsynced.add(key)
                    return
                except StoreError as e:
                    logger.warning(f"Progress write for {key} failed (attempt {attempt}/{self._max_attempts}): {e}")
                    if attempt < self._max_attempts and not self._closed:
                        await asyncio.sleep(self._retry_delay * attempt)
                        continue
                    self._unsynced.add(key)
                    return
                else:
                    self._synced_versions[key] = version
                    self._unsynced.discard(key)
                    return

    async def retry_unsynced(self) -> int:
        """Re-queue writes that previously failed; returns how many were queued."""
        pending = list(self._unsynced)
        for key in pending:
            self._schedule_write(key)
        await self.wait_for_writes()
        return len(pending)

    async def wait_for_writes(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Stop accepting mutations and let in-flight writes finish."""
        self._closed = True
        await self.wait_for_writes()
