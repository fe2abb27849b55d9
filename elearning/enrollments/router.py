"""Enrollment endpoints for the signed-in student."""

from fastapi import APIRouter

from elearning.core.dependencies import ShellDep, WorkspaceDep

from .schemas import EnrollmentListResponse, EnrollmentResponse


router = APIRouter(prefix="/api/v1/enrollments", tags=["enrollments"])


@router.get("")
async def list_enrollments(workspace: WorkspaceDep) -> EnrollmentListResponse:
    return EnrollmentListResponse(course_ids=sorted(workspace.enrollments.course_ids))


@router.post("/{course_id}")
async def enroll(course_id: str, shell: ShellDep, workspace: WorkspaceDep) -> EnrollmentResponse:
    """Join a course; enrolling twice is not an error."""
    catalog = await shell.ready_catalog()
    catalog.get(course_id)
    created = await workspace.enrollments.enroll(course_id)
    return EnrollmentResponse(course_id=course_id, enrolled=True, created=created)
