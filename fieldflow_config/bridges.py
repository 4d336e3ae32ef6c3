"""
Bridges from configuration artifacts to kernel inputs.

Converts a validated ``WorkflowConfigurationSet`` into domain Workflows, a
seeded ``InMemoryWorkflowRepository``, the policy enums the record adapter
takes and the notification dispatcher's ``deduplicate`` flag.  The
kernel never imports this package.
"""

from __future__ import annotations

from datetime import datetime

from fieldflow_config.schema import WorkflowConfigurationSet, WorkflowDef
from fieldflow_kernel.domain.record import RejectionPolicy, UngatedPolicy
from fieldflow_kernel.domain.workflow import (
    ApprovalType,
    FormType,
    Level,
    LevelType,
    Workflow,
    WorkflowRepository,
    approvers_for,
)
from fieldflow_kernel.services.workflow_repository import InMemoryWorkflowRepository


def build_workflow(definition: WorkflowDef, loaded_at: datetime | None = None) -> Workflow:
    """Domain workflow for one definition.  Level ids default to ``<id>-L<n>``."""
    levels = tuple(
        Level(
            level_id=level.level_id or f"{definition.workflow_id}-L{number}",
            level_number=number,
            approvers=approvers_for(LevelType(level.level_type), level.approvers),
            approval_type=ApprovalType(level.approval_type),
        )
        for number, level in enumerate(definition.levels, start=1)
    )
    return Workflow(
        workflow_id=definition.workflow_id,
        name=definition.name,
        levels=levels,
        assigned_forms=frozenset(FormType(f) for f in definition.assigned_forms),
        is_active=definition.is_active,
        created_at=loaded_at,
        updated_at=loaded_at,
    )


def build_workflows(
    config: WorkflowConfigurationSet, loaded_at: datetime | None = None,
) -> tuple[Workflow, ...]:
    return tuple(build_workflow(w, loaded_at) for w in config.workflows)


def build_repository(
    config: WorkflowConfigurationSet, loaded_at: datetime | None = None,
) -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository(build_workflows(config, loaded_at))


def seed_repository(
    config: WorkflowConfigurationSet,
    repository: WorkflowRepository,
    loaded_at: datetime | None = None,
) -> int:
    """Write every configured workflow into ``repository``; returns the count."""
    workflows = build_workflows(config, loaded_at)
    for workflow in workflows:
        repository.save(workflow)
    return len(workflows)


def ungated_policy(config: WorkflowConfigurationSet) -> UngatedPolicy:
    return UngatedPolicy(config.policies.ungated_policy)


def rejection_policy(config: WorkflowConfigurationSet) -> RejectionPolicy:
    return RejectionPolicy(config.policies.rejection_policy)


def deduplicate_notifications(config: WorkflowConfigurationSet) -> bool:
    """The ``deduplicate`` flag for ``NotificationDispatcher``."""
    return config.policies.deduplicate_notifications
