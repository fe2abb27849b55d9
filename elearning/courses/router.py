"""Course catalog and teacher course management endpoints."""

import logging

from fastapi import APIRouter, Request, UploadFile, status

from elearning.auth.exceptions import AuthorizationError
from elearning.auth.models import Role
from elearning.core.dependencies import CurrentUserDep, ShellDep, TeacherDep
from elearning.middleware.security import upload_rate_limit

from .models import Course, Lesson
from .schemas import CourseCreate, CourseUpdate, CoverUploadResponse, LessonWrite


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/courses", tags=["courses"])


@router.get("")
async def list_courses(shell: ShellDep, _user: CurrentUserDep) -> list[Course]:
    """List published courses with their lessons."""
    catalog = await shell.ready_catalog()
    return catalog.courses


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(data: CourseCreate, shell: ShellDep, user: TeacherDep) -> Course:
    catalog = await shell.ready_catalog()
    return await catalog.create_course(user, data)


@router.post("/covers", status_code=status.HTTP_201_CREATED)
@upload_rate_limit
async def upload_cover(request: Request, file: UploadFile, shell: ShellDep, user: TeacherDep) -> CoverUploadResponse:  # noqa: ARG001
    """Upload a course cover image and return its public URL."""
    content = await file.read()
    url = await shell.catalog.upload_cover(user, file.filename or "", content, file.content_type)
    logger.info(f"Cover uploaded by {user.id}: {url}")
    return CoverUploadResponse(url=url)


@router.get("/{course_id}")
async def get_course(course_id: str, shell: ShellDep, _user: CurrentUserDep) -> Course:
    catalog = await shell.ready_catalog()
    return catalog.get(course_id)


@router.patch("/{course_id}")
async def update_course(course_id: str, data: CourseUpdate, shell: ShellDep, user: TeacherDep) -> Course:
    catalog = await shell.ready_catalog()
    return await catalog.update_course(user, course_id, data)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: str, shell: ShellDep, user: TeacherDep) -> None:
    catalog = await shell.ready_catalog()
    await catalog.delete_course(user, course_id)


@router.get("/{course_id}/lessons/{lesson_id}")
async def get_lesson(course_id: str, lesson_id: str, shell: ShellDep, user: CurrentUserDep) -> Lesson:
    """Lesson content; students need an enrollment, teachers must own the course."""
    catalog = await shell.ready_catalog()
    course = catalog.get(course_id)
    if user.role == Role.STUDENT:
        workspace = await shell.student_workspace()
        workspace.enrollments.require(course_id)
    elif course.instructor_id != user.id:
        raise AuthorizationError("Only the course instructor can preview this lesson")
    return catalog.get_lesson(course_id, lesson_id)


@router.post("/{course_id}/lessons", status_code=status.HTTP_201_CREATED)
async def add_lesson(course_id: str, data: LessonWrite, shell: ShellDep, user: TeacherDep) -> Lesson:
    catalog = await shell.ready_catalog()
    return await catalog.add_lesson(user, course_id, data)


@router.put("/{course_id}/lessons/{lesson_id}")
async def update_lesson(
    course_id: str, lesson_id: str, data: LessonWrite, shell: ShellDep, user: TeacherDep
) -> Lesson:
    catalog = await shell.ready_catalog()
    return await catalog.update_lesson(user, course_id, lesson_id, data)


@router.delete("/{course_id}/lessons/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(course_id: str, lesson_id: str, shell: ShellDep, user: TeacherDep) -> None:
    catalog = await shell.ready_catalog()
    await catalog.delete_lesson(user, course_id, lesson_id)
