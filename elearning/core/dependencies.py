"""FastAPI dependencies resolving the process-wide application shell."""

from typing import Annotated

from fastapi import Depends, Request

from elearning.auth.models import CurrentUser, Role

from .shell import AppShell, StudentWorkspace


def get_shell(request: Request) -> AppShell:
    """Return the shell built by the lifespan handler."""
    return request.app.state.shell


ShellDep = Annotated[AppShell, Depends(get_shell)]


def _current_user(shell: ShellDep) -> CurrentUser:
    return shell.require_user()


def _current_teacher(shell: ShellDep) -> CurrentUser:
    return shell.require_user(Role.TEACHER)


async def _student_workspace(shell: ShellDep) -> StudentWorkspace:
    return await shell.student_workspace()


# Usage: async def my_route(user: CurrentUserDep) -> ...
CurrentUserDep = Annotated[CurrentUser, Depends(_current_user)]
TeacherDep = Annotated[CurrentUser, Depends(_current_teacher)]
WorkspaceDep = Annotated[StudentWorkspace, Depends(_student_workspace)]
