"""
Workflow definition types (``fieldflow_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects describing approval pipelines: form types, levels, the
discriminated approver union and the workflow itself, plus the pure level
editing helpers the registry builds on.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``db/``, ``models/``, ``services/`` or outer layers.

Invariants enforced
-------------------
* Level order is escalation order; ``level_number`` equals index + 1 after
  every edit (``renumber_levels``).
* A level's type is derived from its approver union, so a reference list can
  never be read under the wrong interpretation.  Switching the type always
  produces an empty approver set of the new kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import uuid4


class FormType(str, Enum):
    """Submittable paperwork kinds a workflow can govern."""

    TIMESHEET = "timesheet"
    MATERIAL_USAGE = "material_usage"
    ISSUES_LOG = "issues_log"
    SAFETY_JHA = "safety_jha"
    PRE_CONSTRUCTION = "pre_construction"
    BILL_OF_LADING = "bill_of_lading"

    @property
    def label(self) -> str:
        return FORM_TYPE_LABELS[self]

    @property
    def route(self) -> str:
        """URL path segment of the form's detail page."""
        return FORM_TYPE_ROUTES[self]


FORM_TYPE_LABELS: dict[FormType, str] = {
    FormType.TIMESHEET: "Timesheet",
    FormType.MATERIAL_USAGE: "Material Usage Log",
    FormType.ISSUES_LOG: "Issues Log",
    FormType.SAFETY_JHA: "Safety Form (JHA)",
    FormType.PRE_CONSTRUCTION: "Pre-Construction Checklist",
    FormType.BILL_OF_LADING: "Bill of Lading",
}

FORM_TYPE_ROUTES: dict[FormType, str] = {
    FormType.TIMESHEET: "forms/timesheet",
    FormType.MATERIAL_USAGE: "forms/material-usage",
    FormType.ISSUES_LOG: "forms/issues",
    FormType.SAFETY_JHA: "forms/safety",
    FormType.PRE_CONSTRUCTION: "forms/pre-construction",
    FormType.BILL_OF_LADING: "bill-of-lading",
}

# Role names offered when configuring a Roles level
ROLE_OPTIONS: tuple[str, ...] = ("Admin", "PM", "Supervisor")


class LevelType(str, Enum):
    """How a level's approver references are interpreted."""

    USERS = "users"
    ROLES = "roles"


class ApprovalType(str, Enum):
    """Whether one approver or every resolved approver must act."""

    ANY = "any"
    ALL = "all"


# =========================================================================
# Approver references (discriminated union keyed by level type)
# =========================================================================


@dataclass(frozen=True)
class UserApprovers:
    """Direct user identifiers."""

    user_ids: tuple[str, ...] = ()

    @property
    def kind(self) -> LevelType:
        return LevelType.USERS

    @property
    def references(self) -> tuple[str, ...]:
        return self.user_ids

    def toggled(self, user_id: str) -> UserApprovers:
        if user_id in self.user_ids:
            return UserApprovers(tuple(u for u in self.user_ids if u != user_id))
        return UserApprovers(self.user_ids + (user_id,))


@dataclass(frozen=True)
class RoleApprovers:
    """Role names, matched against app roles and job titles at evaluation time."""

    role_names: tuple[str, ...] = ()

    @property
    def kind(self) -> LevelType:
        return LevelType.ROLES

    @property
    def references(self) -> tuple[str, ...]:
        return self.role_names

    def toggled(self, role_name: str) -> RoleApprovers:
        if role_name in self.role_names:
            return RoleApprovers(tuple(r for r in self.role_names if r != role_name))
        return RoleApprovers(self.role_names + (role_name,))


ApproverSet = UserApprovers | RoleApprovers


def approvers_for(level_type: LevelType, references: tuple[str, ...] = ()) -> ApproverSet:
    """Build the approver union member for ``level_type``."""
    if LevelType(level_type) == LevelType.USERS:
        return UserApprovers(tuple(references))
    return RoleApprovers(tuple(references))


# =========================================================================
# Level and Workflow
# =========================================================================


@dataclass(frozen=True)
class Level:
    """One escalation rung within a workflow."""

    level_id: str
    level_number: int
    approvers: ApproverSet = field(default_factory=UserApprovers)
    approval_type: ApprovalType = ApprovalType.ANY

    @property
    def level_type(self) -> LevelType:
        return self.approvers.kind

    @property
    def approver_ids(self) -> tuple[str, ...]:
        """Raw references, interpreted according to ``level_type``."""
        return self.approvers.references

    def with_level_type(self, level_type: LevelType) -> Level:
        """Switch interpretation; a changed type always clears the references."""
        level_type = LevelType(level_type)
        if level_type == self.level_type:
            return self
        return replace(self, approvers=approvers_for(level_type))

    def with_approval_type(self, approval_type: ApprovalType) -> Level:
        return replace(self, approval_type=ApprovalType(approval_type))

    def toggle_approver(self, reference: str) -> Level:
        return replace(self, approvers=self.approvers.toggled(reference))


def new_level(
    level_type: LevelType = LevelType.USERS,
    approval_type: ApprovalType = ApprovalType.ANY,
    references: tuple[str, ...] = (),
    level_number: int = 0,
) -> Level:
    """Create a level with a fresh id; numbering is fixed up by the caller."""
    return Level(
        level_id=str(uuid4()),
        level_number=level_number,
        approvers=approvers_for(level_type, references),
        approval_type=ApprovalType(approval_type),
    )


def renumber_levels(levels: tuple[Level, ...] | list[Level]) -> tuple[Level, ...]:
    """Return ``levels`` with ``level_number`` equal to position + 1."""
    return tuple(
        level if level.level_number == i else replace(level, level_number=i)
        for i, level in enumerate(levels, start=1)
    )


@dataclass(frozen=True)
class Workflow:
    """
    A named, independently enable/disable-able approval pipeline.

    Contract: frozen; ``levels`` are ordered by escalation.
    Non-goals: does not evaluate anything -- the approval engine does.
    """

    workflow_id: str
    name: str
    levels: tuple[Level, ...] = ()
    assigned_forms: frozenset[FormType] = frozenset()
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def governs(self, form_type: FormType | str) -> bool:
        return FormType(form_type) in self.assigned_forms

    def has_contiguous_levels(self) -> bool:
        return all(
            level.level_number == i for i, level in enumerate(self.levels, start=1)
        )


def find_level(workflow: Workflow, level_number: int) -> Level | None:
    """Look up the level with ``level_number``; None when absent."""
    for level in workflow.levels:
        if level.level_number == level_number:
            return level
    return None


class WorkflowRepository(Protocol):
    """Storage for workflow definitions, consumed by the workflow registry."""

    def load_all(self) -> tuple[Workflow, ...]:
        """Return every stored workflow, in storage order."""
        ...

    def save(self, workflow: Workflow) -> None:
        """Insert or replace a workflow by id."""
        ...

    def delete(self, workflow_id: str) -> bool:
        """Delete a workflow; False when it did not exist."""
        ...
