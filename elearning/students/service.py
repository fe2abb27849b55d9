"""Teacher-facing student roster."""

import logging
from collections import defaultdict
from enum import StrEnum

from pydantic import BaseModel

from elearning.auth.models import Role
from elearning.courses.models import Course
from elearning.database.store import Row, RowStore
from elearning.progress.scoring import round_percentage, round_ratio


logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
PROGRESS_TABLE = "student_progress"

# Below this overall progress an active student is flagged
WARNING_THRESHOLD = 20


class StudentStatus(StrEnum):
    ACTIVE = "Active"
    WARNING = "Warning"
    INACTIVE = "Inactive"


class StudentSummary(BaseModel):
    id: str
    name: str
    email: str
    avatar: str | None = None
    courses_enrolled: int
    progress: int
    quiz_avg: int
    status: StudentStatus


def student_status(progress: int, courses_enrolled: int) -> StudentStatus:
    if courses_enrolled == 0 or progress == 0:
        return StudentStatus.INACTIVE
    if progress < WARNING_THRESHOLD:
        return StudentStatus.WARNING
    return StudentStatus.ACTIVE


def summarize_student(profile: Row, progress_rows: list[Row], courses: list[Course]) -> StudentSummary:
    """Aggregate one student's progress rows against the catalog.

    A course counts as enrolled once the student has any progress in it; overall
    progress is completed lessons over all lessons of those courses.
    """
    course_ids = {str(row["course_id"]) for row in progress_rows}

    scores = [int(row["score"]) for row in progress_rows if (row.get("score") or 0) > 0]
    quiz_avg = round_ratio(sum(scores), len(scores))

    total_lessons = 0
    completed_lessons = 0
    for course in courses:
        if course.id not in course_ids:
            continue
        total_lessons += len(course.lessons)
        completed_lessons += sum(
            1 for row in progress_rows if str(row["course_id"]) == course.id and row.get("completed")
        )
    progress = round_percentage(completed_lessons, total_lessons)

    return StudentSummary(
        id=str(profile["id"]),
        name=profile.get("full_name") or "Unknown Student",
        email=profile.get("email") or "No Email",
        avatar=profile.get("avatar_url"),
        courses_enrolled=len(course_ids),
        progress=progress,
        quiz_avg=quiz_avg,
        status=student_status(progress, len(course_ids)),
    )


async def list_student_summaries(store: RowStore, courses: list[Course]) -> list[StudentSummary]:
    """Build the roster of every student profile visible to the teacher."""
    profiles = await store.select(PROFILES_TABLE, filters={"role": Role.STUDENT.value})
    progress_rows = await store.select(PROGRESS_TABLE)

    by_user: dict[str, list[Row]] = defaultdict(list)
    for row in progress_rows:
        by_user[str(row["user_id"])].append(row)

    summaries = [summarize_student(profile, by_user.get(str(profile["id"]), []), courses) for profile in profiles]
    logger.info(f"Built roster for {len(summaries)} students")
    return summaries
