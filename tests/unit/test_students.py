"""Teacher roster aggregation."""

import pytest

from elearning.courses.models import Course, Lesson, LessonType
from elearning.students.service import StudentStatus, list_student_summaries, student_status, summarize_student


def _course(course_id: str, lesson_count: int) -> Course:
    return Course(
        id=course_id,
        title=course_id,
        instructor_id="teacher-1",
        lessons=[
            Lesson(id=f"{course_id}-l{i}", course_id=course_id, title="L", type=LessonType.VIDEO, video_url="v")
            for i in range(lesson_count)
        ],
    )


PROFILE = {"id": "s1", "full_name": "Ada", "email": "ada@example.com"}


def _progress(course_id: str, lesson_id: str, completed: bool, score: int = 0) -> dict:
    return {"user_id": "s1", "course_id": course_id, "lesson_id": lesson_id, "completed": completed, "score": score}


@pytest.mark.parametrize(
    ("progress", "courses", "expected"),
    [
        (0, 0, StudentStatus.INACTIVE),
        (0, 2, StudentStatus.INACTIVE),
        (10, 1, StudentStatus.WARNING),
        (19, 1, StudentStatus.WARNING),
        (20, 1, StudentStatus.ACTIVE),
        (100, 3, StudentStatus.ACTIVE),
    ],
)
def test_student_status(progress: int, courses: int, expected: StudentStatus) -> None:
    assert student_status(progress, courses) == expected


class TestSummarizeStudent:
    def test_no_progress(self) -> None:
        summary = summarize_student(PROFILE, [], [_course("c1", 4)])
        assert summary.courses_enrolled == 0
        assert summary.progress == 0
        assert summary.quiz_avg == 0
        assert summary.status == StudentStatus.INACTIVE

    def test_progress_over_lessons_of_touched_courses(self) -> None:
        rows = [
            _progress("c1", "c1-l0", True),
            _progress("c1", "c1-l1", True, score=90),
            _progress("c2", "c2-l0", False, score=75),
        ]
        summary = summarize_student(PROFILE, rows, [_course("c1", 4), _course("c2", 4), _course("c3", 10)])

        assert summary.courses_enrolled == 2
        assert summary.progress == 25  # 2 of 8 lessons
        assert summary.quiz_avg == 83  # (90 + 75) / 2 rounded half up
        assert summary.status == StudentStatus.ACTIVE

    def test_missing_profile_fields_use_placeholders(self) -> None:
        summary = summarize_student({"id": "s9"}, [], [])
        assert summary.name == "Unknown Student"
        assert summary.email == "No Email"


@pytest.mark.asyncio
async def test_roster_lists_only_students(store) -> None:
    store.rows("student_progress").append(
        {"user_id": "student-1", "course_id": "course-1", "lesson_id": "lesson-video", "completed": True, "score": 0}
    )
    summaries = await list_student_summaries(store, [_course("course-1", 2)])

    assert [summary.id for summary in summaries] == ["student-1"]
    assert summaries[0].progress == 50
