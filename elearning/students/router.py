"""Student roster for teachers."""

from fastapi import APIRouter

from elearning.core.dependencies import ShellDep, TeacherDep

from .service import StudentSummary, list_student_summaries


router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.get("")
async def list_students(shell: ShellDep, _teacher: TeacherDep) -> list[StudentSummary]:
    """Progress overview of every student."""
    catalog = await shell.ready_catalog()
    return await list_student_summaries(shell.store, catalog.courses)
