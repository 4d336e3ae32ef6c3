"""
Workflow repositories -- storage behind the workflow registry.

Responsibility:
    Load, save and delete workflow definitions.  The registry never talks to
    storage directly; it reads a snapshot through ``load_all`` and writes
    through ``save`` / ``delete``.

Architecture position:
    Kernel > Services.  ``InMemoryWorkflowRepository`` backs fixtures and
    YAML-seeded deployments; ``SqlWorkflowRepository`` persists to the
    ``approval_workflows`` tables.

Invariants enforced:
    - Storage order is preserved: ``load_all`` returns workflows in the
      order they were first saved, which is the order first-match lookup
      walks.
    - ``save`` replaces a workflow's levels wholesale.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, select

from fieldflow_kernel.domain.workflow import Workflow
from fieldflow_kernel.logging_config import get_logger
from fieldflow_kernel.models.workflow import WorkflowModel
from fieldflow_kernel.services.base import BaseService

logger = get_logger("services.workflow_repository")


class InMemoryWorkflowRepository:
    """Dict-backed repository; insertion order is storage order."""

    def __init__(self, workflows: Iterable[Workflow] = ()):
        self._workflows: dict[str, Workflow] = {}
        for workflow in workflows:
            self._workflows[workflow.workflow_id] = workflow

    def load_all(self) -> tuple[Workflow, ...]:
        return tuple(self._workflows.values())

    def save(self, workflow: Workflow) -> None:
        self._workflows[workflow.workflow_id] = workflow

    def delete(self, workflow_id: str) -> bool:
        return self._workflows.pop(workflow_id, None) is not None


class SqlWorkflowRepository(BaseService[WorkflowModel]):
    """SQLAlchemy-backed repository.  Flushes, never commits."""

    def load_all(self) -> tuple[Workflow, ...]:
        stmt = select(WorkflowModel).order_by(WorkflowModel.position, WorkflowModel.created_at)
        return tuple(model.to_dto() for model in self.session.execute(stmt).scalars())

    def save(self, workflow: Workflow) -> None:
        model = self._get(workflow.workflow_id)
        if model is None:
            position = self.session.execute(
                select(func.coalesce(func.max(WorkflowModel.position), -1)),
            ).scalar_one() + 1
            model = WorkflowModel.from_dto(workflow, position=position)
            self.session.add(model)
            action = "inserted"
        else:
            # Flush the orphaned levels first so renumbered levels do not
            # collide with uq_workflow_level_number.
            model.levels = []
            self.session.flush()
            model.apply_dto(workflow)
            action = "updated"
        self.session.flush()
        logger.info(
            "workflow_saved",
            extra={
                "workflow_id": workflow.workflow_id,
                "action": action,
                "level_count": len(workflow.levels),
                "is_active": workflow.is_active,
            },
        )

    def delete(self, workflow_id: str) -> bool:
        model = self._get(workflow_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.flush()
        logger.info("workflow_deleted", extra={"workflow_id": workflow_id})
        return True

    def _get(self, workflow_id: str) -> WorkflowModel | None:
        stmt = select(WorkflowModel).where(WorkflowModel.workflow_id == workflow_id)
        return self.session.execute(stmt).scalar_one_or_none()
