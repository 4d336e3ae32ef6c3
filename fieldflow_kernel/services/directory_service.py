"""
SqlDirectoryService -- employee directory read by role resolution.

The approval engine only needs ``list_active_employees``; ``upsert`` and
``deactivate`` exist so deployments and fixtures can maintain the table
without a separate directory application.
"""

from __future__ import annotations

from sqlalchemy import select

from fieldflow_kernel.domain.directory import Employee
from fieldflow_kernel.logging_config import get_logger
from fieldflow_kernel.models.employee import EmployeeModel
from fieldflow_kernel.services.base import BaseService

logger = get_logger("services.directory")


class SqlDirectoryService(BaseService[EmployeeModel]):
    """SQLAlchemy implementation of ``DirectoryService``."""

    def list_active_employees(self) -> list[Employee]:
        stmt = (
            select(EmployeeModel)
            .where(EmployeeModel.is_active.is_(True))
            .order_by(EmployeeModel.display_name, EmployeeModel.employee_id)
        )
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def get(self, employee_id: str) -> Employee | None:
        model = self._get(employee_id)
        return model.to_dto() if model is not None else None

    def upsert(self, employee: Employee) -> Employee:
        model = self._get(employee.employee_id)
        if model is None:
            model = EmployeeModel.from_dto(employee)
            self.session.add(model)
        else:
            model.display_name = employee.display_name
            model.job_title = employee.job_title
            model.app_role = employee.app_role
            model.is_active = employee.is_active
        self.session.flush()
        logger.debug("employee_upserted", extra={"employee_id": employee.employee_id})
        return model.to_dto()

    def deactivate(self, employee_id: str) -> bool:
        model = self._get(employee_id)
        if model is None:
            return False
        model.is_active = False
        self.session.flush()
        logger.info("employee_deactivated", extra={"employee_id": employee_id})
        return True

    def _get(self, employee_id: str) -> EmployeeModel | None:
        stmt = select(EmployeeModel).where(EmployeeModel.employee_id == employee_id)
        return self.session.execute(stmt).scalar_one_or_none()
