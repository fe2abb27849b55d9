"""Course catalog with teacher-side management.

The catalog keeps a local list of published courses and reconciles it with
the remote rows after every create, update and delete: the local copy changes
only once the data service has accepted the write.
"""

import logging
import secrets
import time
import uuid
from pathlib import PurePosixPath
from typing import Any

from elearning.auth.exceptions import AuthorizationError, RoleRequiredError
from elearning.auth.models import CurrentUser, Role
from elearning.database.store import RowStore
from elearning.exceptions import ResourceNotFoundError, ValidationError
from elearning.storage.base import AbstractStorage

from .models import Course, CourseStatus, Lesson, LessonType, QuizData, QuizQuestion, course_from_row, lesson_from_row
from .schemas import CourseCreate, CourseUpdate, LessonWrite, QuestionDraft


logger = logging.getLogger(__name__)

COURSES_TABLE = "courses"
LESSONS_TABLE = "lessons"
COVER_PREFIX = "course-covers"
ALLOWED_COVER_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})


def build_quiz_data(title: str, drafts: list[QuestionDraft]) -> QuizData:
    """Turn authored question drafts into the stored quiz payload."""
    batch = uuid.uuid4().hex[:12]
    return QuizData(
        id=batch,
        title=title,
        questions=[
            QuizQuestion(
                id=f"q-{batch}-{index}",
                text=draft.text,
                options=list(draft.options),
                correct_option_index=draft.correct,
            )
            for index, draft in enumerate(drafts)
        ],
    )


def _lesson_payload(data: LessonWrite) -> dict[str, Any]:
    is_quiz = data.type == LessonType.QUIZ
    quiz = build_quiz_data(data.title, data.questions) if is_quiz else None
    return {
        "title": data.title,
        "description": data.description,
        "type": data.type.value,
        "video_url": None if is_quiz else data.video_url,
        "quiz_data": quiz.model_dump(by_alias=True) if quiz else None,
        "duration": data.duration,
    }


def cover_key(filename: str) -> str:
    """Unique object key for an uploaded cover image."""
    extension = PurePosixPath(filename).suffix.lstrip(".").lower()
    if extension not in ALLOWED_COVER_EXTENSIONS:
        msg = f"Unsupported image type: {extension or 'none'}"
        raise ValidationError(msg)
    return f"{COVER_PREFIX}/{int(time.time() * 1000)}-{secrets.token_hex(6)}.{extension}"


class CourseCatalog:
    """Locally held course list kept in step with the remote rows."""

    def __init__(self, store: RowStore, storage: AbstractStorage, *, default_thumbnail: str) -> None:
        self._store = store
        self._storage = storage
        self._default_thumbnail = default_thumbnail
        self._courses: list[Course] = []
        self.loaded = False

    @property
    def courses(self) -> list[Course]:
        return list(self._courses)

    async def load(self) -> list[Course]:
        """Fetch published courses and their lessons, ordered by lesson index."""
        course_rows = await self._store.select(
            COURSES_TABLE,
            filters={"status": CourseStatus.PUBLISHED.value},
            order_by="created_at",
        )
        course_rows = [row for row in course_rows if not row.get("is_deleted")]

        lessons_by_course: dict[str, list[Lesson]] = {str(row["id"]): [] for row in course_rows}
        if lessons_by_course:
            lesson_rows = await self._store.select(
                LESSONS_TABLE,
                in_filters={"course_id": list(lessons_by_course)},
                order_by="order_index",
            )
            for row in lesson_rows:
                if row.get("is_deleted"):
                    continue
                lessons_by_course[str(row["course_id"])].append(lesson_from_row(row))

        self._courses = [course_from_row(row, lessons_by_course[str(row["id"])]) for row in course_rows]
        self.loaded = True
        logger.info(f"Loaded {len(self._courses)} courses")
        return self.courses

    def clear(self) -> None:
        self._courses = []
        self.loaded = False

    def get(self, course_id: str) -> Course:
        for course in self._courses:
            if course.id == course_id:
                return course
        raise ResourceNotFoundError("Course", course_id)

    def get_lesson(self, course_id: str, lesson_id: str) -> Lesson:
        lesson = self.get(course_id).find_lesson(lesson_id)
        if lesson is None:
            raise ResourceNotFoundError("Lesson", lesson_id)
        return lesson

    def _replace(self, course: Course) -> None:
        self._courses = [course if existing.id == course.id else existing for existing in self._courses]

    def _owned(self, user: CurrentUser, course_id: str) -> Course:
        if user.role != Role.TEACHER:
            raise RoleRequiredError(Role.TEACHER)
        course = self.get(course_id)
        if course.instructor_id != user.id:
            raise AuthorizationError("Only the course instructor can change this course")
        return course

    # --- course management --------------------------------------------------

    async def create_course(self, user: CurrentUser, data: CourseCreate) -> Course:
        if user.role != Role.TEACHER:
            raise RoleRequiredError(Role.TEACHER)
        row = await self._store.insert(
            COURSES_TABLE,
            {
                "title": data.title,
                "description": data.description,
                "thumbnail": data.thumbnail or self._default_thumbnail,
                "instructor_id": user.id,
                "instructor_name": user.name,
            },
        )
        course = course_from_row(row)
        self._courses.append(course)
        logger.info(f"Course {course.id} created by {user.id}")
        return course

    async def update_course(self, user: CurrentUser, course_id: str, data: CourseUpdate) -> Course:
        course = self._owned(user, course_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return course
        await self._store.update(COURSES_TABLE, changes, filters={"id": course_id})
        updated = course.model_copy(update=changes)
        self._replace(updated)
        return updated

    async def delete_course(self, user: CurrentUser, course_id: str) -> None:
        self._owned(user, course_id)
        await self._store.delete(COURSES_TABLE, filters={"id": course_id})
        self._courses = [course for course in self._courses if course.id != course_id]
        logger.info(f"Course {course_id} deleted by {user.id}")

    async def upload_cover(self, user: CurrentUser, filename: str, content: bytes, content_type: str | None) -> str:
        """Store a cover image and return its public URL."""
        if user.role != Role.TEACHER:
            raise RoleRequiredError(Role.TEACHER)
        if not content:
            msg = "Uploaded image is empty"
            raise ValidationError(msg)
        return await self._storage.upload(content, cover_key(filename), content_type)

    # --- lesson management --------------------------------------------------

    async def add_lesson(self, user: CurrentUser, course_id: str, data: LessonWrite) -> Lesson:
        course = self._owned(user, course_id)
        # (course_id, order_index) is unique among live lessons
        next_index = max((lesson.order_index for lesson in course.lessons), default=-1) + 1
        row = await self._store.insert(
            LESSONS_TABLE,
            {**_lesson_payload(data), "course_id": course_id, "order_index": next_index},
        )
        lesson = lesson_from_row(row)
        self._replace(course.model_copy(update={"lessons": [*course.lessons, lesson]}))
        return lesson

    async def update_lesson(self, user: CurrentUser, course_id: str, lesson_id: str, data: LessonWrite) -> Lesson:
        course = self._owned(user, course_id)
        current = self.get_lesson(course_id, lesson_id)
        payload = _lesson_payload(data)
        await self._store.update(LESSONS_TABLE, payload, filters={"id": lesson_id})

        lesson = lesson_from_row({**payload, "id": lesson_id, "course_id": course_id, "order_index": current.order_index})
        lessons = [lesson if existing.id == lesson_id else existing for existing in course.lessons]
        self._replace(course.model_copy(update={"lessons": lessons}))
        return lesson

    async def delete_lesson(self, user: CurrentUser, course_id: str, lesson_id: str) -> None:
        course = self._owned(user, course_id)
        self.get_lesson(course_id, lesson_id)
        await self._store.delete(LESSONS_TABLE, filters={"id": lesson_id})
        lessons = [lesson for lesson in course.lessons if lesson.id != lesson_id]
        self._replace(course.model_copy(update={"lessons": lessons}))
