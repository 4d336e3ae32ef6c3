"""
Directory types (``fieldflow_kernel.domain.directory``).

Employees and actors as the approval engine sees them, and the directory
interface it consumes.  Directory management itself lives outside the
engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

# App access roles (login permissions)
SUPER_ADMIN_ROLE = "super-admin"
APP_ROLES: tuple[str, ...] = (SUPER_ADMIN_ROLE, "pm", "supervisor", "lead")

# Job titles (employee position)
ADMIN_TITLE = "Admin"
JOB_TITLES: tuple[str, ...] = (ADMIN_TITLE, "PM", "Supervisor", "Lead", "Worker")


@dataclass(frozen=True)
class Employee:
    """Directory entry. ``app_role`` is None for employees without app access."""

    employee_id: str
    display_name: str
    job_title: str = ""
    app_role: str | None = None
    is_active: bool = True

    @property
    def role_names(self) -> tuple[str, ...]:
        return tuple(r for r in (self.app_role, self.job_title) if r)


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an approval action."""

    actor_id: str
    display_name: str
    app_role: str | None = None
    job_title: str = ""

    @property
    def role_names(self) -> tuple[str, ...]:
        return tuple(r for r in (self.app_role, self.job_title) if r)

    @classmethod
    def from_employee(cls, employee: Employee) -> Actor:
        return cls(
            actor_id=employee.employee_id,
            display_name=employee.display_name,
            app_role=employee.app_role,
            job_title=employee.job_title,
        )


class DirectoryService(Protocol):
    """Read access to the current employee directory."""

    def list_active_employees(self) -> Sequence[Employee]:
        ...
