"""Catalog models for courses, lessons and quizzes."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LessonType(StrEnum):
    VIDEO = "video"
    QUIZ = "quiz"


class CourseStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class QuizQuestion(BaseModel):
    """One multiple-choice question; `correctOptionIndex` is the stored key."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    options: list[str]
    correct_option_index: int = Field(alias="correctOptionIndex")


class QuizData(BaseModel):
    id: str
    title: str
    questions: list[QuizQuestion] = Field(default_factory=list)


class Lesson(BaseModel):
    """A video or quiz lesson. The type decides which payload is present."""

    id: str
    course_id: str
    title: str
    description: str = ""
    type: LessonType = LessonType.VIDEO
    video_url: str | None = None
    quiz_data: QuizData | None = None
    duration: int | None = None
    order_index: int = 0

    @model_validator(mode="after")
    def check_payload_matches_type(self) -> "Lesson":
        if self.type == LessonType.VIDEO and self.quiz_data is not None:
            msg = "video lessons cannot carry quiz data"
            raise ValueError(msg)
        if self.type == LessonType.QUIZ:
            if self.video_url is not None:
                msg = "quiz lessons cannot carry a video URL"
                raise ValueError(msg)
            if self.quiz_data is None:
                msg = "quiz lessons require quiz data"
                raise ValueError(msg)
        return self


class Course(BaseModel):
    id: str
    title: str
    description: str = ""
    thumbnail: str = ""
    instructor_id: str
    instructor_name: str | None = None
    status: CourseStatus = CourseStatus.PUBLISHED
    lessons: list[Lesson] = Field(default_factory=list)

    def find_lesson(self, lesson_id: str) -> Lesson | None:
        return next((lesson for lesson in self.lessons if lesson.id == lesson_id), None)


def lesson_from_row(row: dict[str, Any]) -> Lesson:
    """Build a `Lesson` from a `lessons` row, dropping the payload its type does not use."""
    lesson_type = LessonType(row.get("type") or LessonType.VIDEO)
    is_quiz = lesson_type == LessonType.QUIZ
    quiz_data = row.get("quiz_data") if is_quiz else None
    if is_quiz and quiz_data is None:
        quiz_data = {"id": str(row["id"]), "title": row.get("title") or "", "questions": []}
    return Lesson(
        id=str(row["id"]),
        course_id=str(row["course_id"]),
        title=row.get("title") or "",
        description=row.get("description") or "",
        type=lesson_type,
        video_url=None if is_quiz else row.get("video_url"),
        quiz_data=quiz_data,
        duration=row.get("duration"),
        order_index=row.get("order_index") or 0,
    )


def course_from_row(row: dict[str, Any], lessons: list[Lesson] | None = None) -> Course:
    return Course(
        id=str(row["id"]),
        title=row.get("title") or "",
        description=row.get("description") or "",
        thumbnail=row.get("thumbnail") or "",
        instructor_id=str(row["instructor_id"]),
        instructor_name=row.get("instructor_name"),
        status=CourseStatus(row.get("status") or CourseStatus.PUBLISHED),
        lessons=sorted(lessons or [], key=lambda lesson: lesson.order_index),
    )
