"""Progress API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from .models import LessonProgress


class LessonProgressResponse(BaseModel):
    course_id: str
    lesson_id: str
    completed: bool
    score: int
    updated_at: datetime | None = None

    @classmethod
    def from_entry(cls, course_id: str, lesson_id: str, entry: LessonProgress) -> "LessonProgressResponse":
        return cls(
            course_id=course_id,
            lesson_id=lesson_id,
            completed=entry.completed,
            score=entry.score,
            updated_at=entry.updated_at,
        )


class MarkCompleteRequest(BaseModel):
    completed: bool = True


class QuizSubmission(BaseModel):
    """Chosen option index keyed by question id."""

    answers: dict[str, int] = Field(default_factory=dict)


class QuizResultResponse(BaseModel):
    correct: int
    total: int
    score: int


class CourseProgressResponse(BaseModel):
    course_id: str
    total_lessons: int
    completed_lessons: int
    progress_percentage: int


class ProgressSnapshotResponse(BaseModel):
    records: list[LessonProgressResponse]
    unsynced: int = 0


class SyncResponse(BaseModel):
    retried: int
    unsynced: int
