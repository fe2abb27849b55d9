"""Progress tracking API endpoints for the signed-in student."""

import logging

from fastapi import APIRouter

from elearning.core.dependencies import ShellDep, WorkspaceDep

from .schemas import (
    CourseProgressResponse,
    LessonProgressResponse,
    MarkCompleteRequest,
    ProgressSnapshotResponse,
    QuizResultResponse,
    QuizSubmission,
    SyncResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/progress", tags=["progress"])


@router.get("")
async def get_progress(workspace: WorkspaceDep) -> ProgressSnapshotResponse:
    """All progress records of the student as held locally."""
    records = [
        LessonProgressResponse.from_entry(course_id, lesson_id, entry)
        for course_id, lessons in workspace.progress.snapshot().items()
        for lesson_id, entry in lessons.items()
    ]
    return ProgressSnapshotResponse(records=records, unsynced=len(workspace.progress.unsynced))


@router.post("/sync")
async def sync_progress(workspace: WorkspaceDep) -> SyncResponse:
    """Retry progress writes that could not be delivered."""
    retried = await workspace.progress.retry_unsynced()
    return SyncResponse(retried=retried, unsynced=len(workspace.progress.unsynced))


@router.get("/{course_id}")
async def get_course_progress(course_id: str, shell: ShellDep, workspace: WorkspaceDep) -> CourseProgressResponse:
    catalog = await shell.ready_catalog()
    course = catalog.get(course_id)
    course_progress = workspace.progress.snapshot().get(course_id, {})
    completed = sum(
        1 for lesson in course.lessons if (entry := course_progress.get(lesson.id)) and entry.completed
    )
    return CourseProgressResponse(
        course_id=course_id,
        total_lessons=len(course.lessons),
        completed_lessons=completed,
        progress_percentage=workspace.progress.course_completion(course),
    )


@router.put("/{course_id}/lessons/{lesson_id}")
async def mark_lesson(
    course_id: str,
    lesson_id: str,
    data: MarkCompleteRequest,
    shell: ShellDep,
    workspace: WorkspaceDep,
) -> LessonProgressResponse:
    """Mark a lesson complete or incomplete; persisted in the background."""
    catalog = await shell.ready_catalog()
    catalog.get_lesson(course_id, lesson_id)
    entry = workspace.progress.mark_lesson_complete(course_id, lesson_id, data.completed)
    return LessonProgressResponse.from_entry(course_id, lesson_id, entry)


@router.post("/{course_id}/lessons/{lesson_id}/quiz")
async def submit_quiz(
    course_id: str,
    lesson_id: str,
    data: QuizSubmission,
    shell: ShellDep,
    workspace: WorkspaceDep,
) -> QuizResultResponse:
    catalog = await shell.ready_catalog()
    lesson = catalog.get_lesson(course_id, lesson_id)
    result = workspace.progress.submit_quiz(course_id, lesson, data.answers)
    logger.info(f"Quiz {lesson_id} scored {result.score}% for {workspace.user.id}")
    return QuizResultResponse(correct=result.correct, total=result.total, score=result.score)
