"""
Module: fieldflow_kernel.models.employee
Responsibility: ORM persistence for the employee directory consulted by role
    resolution.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ (for DTO conversion) only.

Invariants enforced:
    - employee_id is unique (uq_employee_id).
    - Inactive employees stay in the table; resolution filters them out.

Failure modes:
    - IntegrityError on duplicate employee_id.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldflow_kernel.db.base import Base
from fieldflow_kernel.domain.directory import Employee


class EmployeeModel(Base):
    """
    Directory entry.

    Guarantees:
        - app_role is NULL for employees without app access.
        - to_dto() returns a frozen Employee.
    """

    __tablename__ = "employees"

    __table_args__ = (
        UniqueConstraint("employee_id", name="uq_employee_id"),
        Index("idx_employee_active", "is_active"),
    )

    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    job_title: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    app_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Employee {self.employee_id} '{self.display_name}' {self.job_title}>"

    def to_dto(self) -> Employee:
        return Employee(
            employee_id=self.employee_id,
            display_name=self.display_name,
            job_title=self.job_title or "",
            app_role=self.app_role,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto: Employee) -> "EmployeeModel":
        return cls(
            employee_id=dto.employee_id,
            display_name=dto.display_name,
            job_title=dto.job_title,
            app_role=dto.app_role,
            is_active=dto.is_active,
        )
