"""In-memory progress state for one student."""

from dataclasses import dataclass
from datetime import datetime

# (course_id, lesson_id); the user is fixed per synchronizer
ProgressKey = tuple[str, str]


@dataclass
class LessonProgress:
    """Local view of one `student_progress` row.

    `version` counts local edits since load; the remote write for a version is
    skipped once a later write has already carried it.
    """

    completed: bool = False
    score: int = 0
    version: int = 0
    updated_at: datetime | None = None
