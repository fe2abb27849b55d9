"""Request and response schemas for course management."""

from pydantic import BaseModel, Field, model_validator

from .models import LessonType


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    thumbnail: str | None = None


class CourseUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    thumbnail: str | None = None


class QuestionDraft(BaseModel):
    """A quiz question as authored in the lesson form."""

    text: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_options(self) -> "QuestionDraft":
        if any(not option.strip() for option in self.options):
            msg = "options must not be empty"
            raise ValueError(msg)
        if self.correct >= len(self.options):
            msg = f"correct option {self.correct} is out of range"
            raise ValueError(msg)
        return self


class LessonWrite(BaseModel):
    """Full lesson payload; used for both creating and replacing a lesson."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    type: LessonType = LessonType.VIDEO
    video_url: str | None = None
    questions: list[QuestionDraft] = Field(default_factory=list)
    duration: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def check_type_payload(self) -> "LessonWrite":
        if self.type == LessonType.VIDEO and not (self.video_url or "").strip():
            msg = "video lessons require a video_url"
            raise ValueError(msg)
        if self.type == LessonType.QUIZ and not self.questions:
            msg = "quiz lessons require at least one question"
            raise ValueError(msg)
        return self


class CoverUploadResponse(BaseModel):
    url: str
