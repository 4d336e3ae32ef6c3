"""
WorkflowRegistry -- named approval pipelines and their form assignments.

Responsibility:
    Holds the snapshot of workflow definitions the approval engine evaluates
    against, answers "which workflow governs this form type", and performs
    the administrative edits of the workflow settings page: create, update,
    delete, activate, and level add / remove / reorder / retype / approver
    toggling.

Architecture position:
    Kernel > Services.  Reads and writes through an injected
    ``WorkflowRepository``; never touches storage directly.

Invariants enforced:
    - Level numbers are contiguous from 1 after every level edit.
    - At most one active workflow claims a form type; a save that would
      create an overlap raises ``OverlappingFormAssignmentError``.
    - An active workflow has at least one level and every level has at
      least one approver reference.  Inactive workflows are drafts and may
      be incomplete.
    - Every successful edit is written through the repository and the
      snapshot is refreshed, so readers never see a rejected edit.

Failure modes:
    - WorkflowNotFoundError: unknown workflow_id.
    - LevelNotFoundError: level_number outside the workflow's levels.
    - InvalidWorkflowError: save-time validation failed.
    - OverlappingFormAssignmentError: form type already claimed.

Usage:
    registry = WorkflowRegistry(SqlWorkflowRepository(session), clock)
    workflow = registry.create_workflow(
        "Field Approvals",
        assigned_forms={FormType.TIMESHEET},
        levels=[new_level(LevelType.USERS, references=("u1",))],
    )
    registry.find_workflow_for_form(FormType.TIMESHEET)
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Literal
from uuid import uuid4

from fieldflow_kernel.domain.clock import Clock, SystemClock
from fieldflow_kernel.domain.workflow import (
    ApprovalType,
    FormType,
    Level,
    LevelType,
    Workflow,
    WorkflowRepository,
    find_level,
    new_level,
    renumber_levels,
)
from fieldflow_kernel.exceptions import (
    InvalidWorkflowError,
    LevelNotFoundError,
    OverlappingFormAssignmentError,
    WorkflowNotFoundError,
)
from fieldflow_kernel.logging_config import get_logger

logger = get_logger("services.workflow_registry")

Direction = Literal["up", "down"]


def validate_workflow(workflow: Workflow) -> list[str]:
    """Structural problems of a single workflow, empty when valid."""
    errors: list[str] = []
    if not workflow.name.strip():
        errors.append("Workflow name must not be empty")
    if not workflow.has_contiguous_levels():
        numbers = [level.level_number for level in workflow.levels]
        errors.append(f"Level numbers must run 1..{len(workflow.levels)}, got {numbers}")
    if workflow.is_active:
        if not workflow.levels:
            errors.append("An active workflow needs at least one level")
        for level in workflow.levels:
            if not level.approver_ids:
                errors.append(f"Level {level.level_number} has no approvers")
    return errors


class WorkflowRegistry:
    """
    Snapshot of workflow definitions plus the administrative edits on them.

    Contract:
        ``load()`` reads the repository once; lookups are served from that
        snapshot until ``reload()`` or an edit made through this registry.
    """

    def __init__(self, repository: WorkflowRepository, clock: Clock | None = None):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._workflows: tuple[Workflow, ...] | None = None

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def load(self) -> tuple[Workflow, ...]:
        self._workflows = tuple(self._repository.load_all())
        logger.info(
            "workflow_registry_loaded",
            extra={
                "workflow_count": len(self._workflows),
                "active_count": sum(1 for w in self._workflows if w.is_active),
            },
        )
        return self._workflows

    def reload(self) -> tuple[Workflow, ...]:
        return self.load()

    @property
    def workflows(self) -> tuple[Workflow, ...]:
        if self._workflows is None:
            return self.load()
        return self._workflows

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_workflow_for_form(self, form_type: FormType | str) -> Workflow | None:
        """First active workflow whose assignments include ``form_type``."""
        form_type = FormType(form_type)
        for workflow in self.workflows:
            if workflow.is_active and workflow.governs(form_type):
                return workflow
        return None

    def find_level(self, workflow: Workflow, level_number: int) -> Level | None:
        return find_level(workflow, level_number)

    def get_workflow(self, workflow_id: str) -> Workflow:
        """Workflow by id, active or not."""
        for workflow in self.workflows:
            if workflow.workflow_id == workflow_id:
                return workflow
        raise WorkflowNotFoundError(workflow_id)

    def list_workflows(self) -> tuple[Workflow, ...]:
        return self.workflows

    def list_active_workflows(self) -> tuple[Workflow, ...]:
        return tuple(w for w in self.workflows if w.is_active)

    # ------------------------------------------------------------------
    # Workflow edits
    # ------------------------------------------------------------------

    def create_workflow(
        self,
        name: str,
        *,
        assigned_forms: Iterable[FormType | str] = (),
        levels: Iterable[Level] = (),
        is_active: bool = True,
        workflow_id: str | None = None,
    ) -> Workflow:
        now = self._clock.now()
        workflow = Workflow(
            workflow_id=workflow_id or str(uuid4()),
            name=name.strip(),
            levels=renumber_levels(list(levels)),
            assigned_forms=frozenset(FormType(f) for f in assigned_forms),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        if any(w.workflow_id == workflow.workflow_id for w in self.workflows):
            raise InvalidWorkflowError(
                workflow.workflow_id, ["A workflow with this id already exists"],
            )
        return self._save(workflow, action="create")

    def update_workflow(
        self,
        workflow_id: str,
        *,
        name: str | None = None,
        assigned_forms: Iterable[FormType | str] | None = None,
        levels: Iterable[Level] | None = None,
        is_active: bool | None = None,
    ) -> Workflow:
        """Replace the given fields; omitted fields keep their values."""
        workflow = self.get_workflow(workflow_id)
        changes: dict = {}
        if name is not None:
            changes["name"] = name.strip()
        if assigned_forms is not None:
            changes["assigned_forms"] = frozenset(FormType(f) for f in assigned_forms)
        if levels is not None:
            changes["levels"] = renumber_levels(list(levels))
        if is_active is not None:
            changes["is_active"] = is_active
        return self._save(replace(workflow, **changes), action="update")

    def delete_workflow(self, workflow_id: str) -> None:
        self.get_workflow(workflow_id)
        self._repository.delete(workflow_id)
        logger.info("workflow_deleted", extra={"workflow_id": workflow_id})
        self.load()

    def set_active(self, workflow_id: str, active: bool) -> Workflow:
        return self.update_workflow(workflow_id, is_active=active)

    # ------------------------------------------------------------------
    # Level edits
    # ------------------------------------------------------------------

    def add_level(
        self,
        workflow_id: str,
        level_type: LevelType = LevelType.USERS,
        approval_type: ApprovalType = ApprovalType.ANY,
        references: Iterable[str] = (),
    ) -> Workflow:
        """Append a level at the end of the escalation order."""
        workflow = self.get_workflow(workflow_id)
        level = new_level(level_type, approval_type, tuple(references))
        return self._save_levels(workflow, workflow.levels + (level,))

    def remove_level(self, workflow_id: str, level_number: int) -> Workflow:
        workflow = self.get_workflow(workflow_id)
        index = self._index_of(workflow, level_number)
        levels = workflow.levels[:index] + workflow.levels[index + 1:]
        return self._save_levels(workflow, levels)

    def move_level(self, workflow_id: str, level_number: int, direction: Direction) -> Workflow:
        """Swap a level with its neighbour.  Moving past either end is a no-op."""
        if direction not in ("up", "down"):
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")
        workflow = self.get_workflow(workflow_id)
        index = self._index_of(workflow, level_number)
        swap = index - 1 if direction == "up" else index + 1
        if swap < 0 or swap >= len(workflow.levels):
            return workflow
        levels = list(workflow.levels)
        levels[index], levels[swap] = levels[swap], levels[index]
        return self._save_levels(workflow, levels)

    def change_level_type(
        self,
        workflow_id: str,
        level_number: int,
        level_type: LevelType,
        references: Iterable[str] = (),
    ) -> Workflow:
        """Switch how a level's references are read.

        A changed type drops the old references; ``references`` seeds the
        new approver set (required while the workflow is active).
        """
        def edit(level: Level) -> Level:
            changed = level.with_level_type(level_type)
            if changed is level:
                return level
            for reference in references:
                changed = changed.toggle_approver(reference)
            return changed

        return self._edit_level(workflow_id, level_number, edit)

    def set_approval_type(
        self, workflow_id: str, level_number: int, approval_type: ApprovalType,
    ) -> Workflow:
        return self._edit_level(
            workflow_id, level_number, lambda level: level.with_approval_type(approval_type),
        )

    def toggle_approver(self, workflow_id: str, level_number: int, reference: str) -> Workflow:
        return self._edit_level(
            workflow_id, level_number, lambda level: level.toggle_approver(reference),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_of(self, workflow: Workflow, level_number: int) -> int:
        for i, level in enumerate(workflow.levels):
            if level.level_number == level_number:
                return i
        raise LevelNotFoundError(workflow.workflow_id, level_number)

    def _edit_level(self, workflow_id: str, level_number: int, edit) -> Workflow:
        workflow = self.get_workflow(workflow_id)
        index = self._index_of(workflow, level_number)
        levels = list(workflow.levels)
        levels[index] = edit(levels[index])
        return self._save_levels(workflow, levels)

    def _save_levels(self, workflow: Workflow, levels) -> Workflow:
        return self._save(
            replace(workflow, levels=renumber_levels(levels)), action="edit_levels",
        )

    def _check_overlap(self, workflow: Workflow) -> None:
        if not workflow.is_active:
            return
        for other in self.workflows:
            if other.workflow_id == workflow.workflow_id or not other.is_active:
                continue
            for form_type in sorted(workflow.assigned_forms & other.assigned_forms):
                raise OverlappingFormAssignmentError(
                    form_type.value, workflow.workflow_id, other.workflow_id,
                )

    def _save(self, workflow: Workflow, action: str) -> Workflow:
        if action != "create":
            workflow = replace(workflow, updated_at=self._clock.now())
        errors = validate_workflow(workflow)
        if errors:
            logger.warning(
                "workflow_rejected",
                extra={"workflow_id": workflow.workflow_id, "action": action, "errors": errors},
            )
            raise InvalidWorkflowError(workflow.workflow_id, errors)
        self._check_overlap(workflow)

        self._repository.save(workflow)
        logger.info(
            "workflow_changed",
            extra={
                "workflow_id": workflow.workflow_id,
                "action": action,
                "is_active": workflow.is_active,
                "level_count": len(workflow.levels),
                "assigned_forms": sorted(f.value for f in workflow.assigned_forms),
            },
        )
        self.load()
        return workflow
