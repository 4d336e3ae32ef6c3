"""
Approvable record types (``fieldflow_kernel.domain.record``).

Responsibility
--------------
The generic approval projection every form-specific record exposes to the
engine, the status lifecycle, history entries, and the transition outcome
returned by the approval state machine.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``STATUS_TRANSITIONS`` defines the only valid status changes.
  ``APPROVED`` has no outgoing edges.
* ``approval_history`` is append-only: the engine only ever builds a new
  tuple with one more entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from fieldflow_kernel.domain.workflow import FormType

if TYPE_CHECKING:
    from fieldflow_kernel.domain.notification import NotificationDirective


# =========================================================================
# Status lifecycle
# =========================================================================


class ApprovalStatus(str, Enum):
    """Approval lifecycle of a submittable record."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


STATUS_TRANSITIONS: dict[ApprovalStatus, frozenset[ApprovalStatus]] = {
    ApprovalStatus.DRAFT: frozenset({ApprovalStatus.PENDING_APPROVAL}),
    ApprovalStatus.PENDING_APPROVAL: frozenset({
        ApprovalStatus.PENDING_APPROVAL,
        ApprovalStatus.APPROVED,
        ApprovalStatus.REJECTED,
    }),
    ApprovalStatus.REJECTED: frozenset({ApprovalStatus.PENDING_APPROVAL}),
    ApprovalStatus.APPROVED: frozenset(),
}

TERMINAL_STATUSES: frozenset[ApprovalStatus] = frozenset({
    ApprovalStatus.APPROVED,
    ApprovalStatus.REJECTED,
})

SUBMITTABLE_STATUSES: frozenset[ApprovalStatus] = frozenset({
    ApprovalStatus.DRAFT,
    ApprovalStatus.REJECTED,
})


class Decision(str, Enum):
    """Decision recorded in the approval history."""

    APPROVED = "approved"
    REJECTED = "rejected"


class RejectionPolicy(str, Enum):
    """Who may reject a pending record."""

    APPROVERS_ONLY = "approvers_only"
    ANY_ACTOR = "any_actor"


class UngatedPolicy(str, Enum):
    """What submit does when no active workflow governs the form type."""

    AUTO_APPROVE = "auto_approve"
    MANUAL = "manual"


# =========================================================================
# Records
# =========================================================================


@dataclass(frozen=True)
class HistoryEntry:
    """One approve/reject action. Immutable."""

    level: int
    decision: Decision
    actor_id: str
    actor_display_name: str
    timestamp: datetime
    comment: str | None = None


@dataclass(frozen=True)
class ApprovableRecord:
    """
    Approval projection of a stored form record.

    ``workflow_id`` is the workflow the record was submitted under; in-flight
    records keep resolving against it.  ``version`` is the compare-and-swap
    token the form store checks on save.
    """

    record_id: str
    form_type: FormType
    status: ApprovalStatus = ApprovalStatus.DRAFT
    approval_level: int = 1
    approval_history: tuple[HistoryEntry, ...] = ()
    workflow_id: str | None = None
    version: int = 0
    subject: str = ""
    submitted_by: str | None = None


def current_cycle(history: tuple[HistoryEntry, ...]) -> tuple[HistoryEntry, ...]:
    """Entries recorded since the latest rejection (the live submission)."""
    for i in range(len(history) - 1, -1, -1):
        if history[i].decision == Decision.REJECTED:
            return history[i + 1:]
    return history


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of a state machine transition."""

    record: ApprovableRecord
    directives: tuple[NotificationDirective, ...] = ()
    governed: bool = True
    reason: str = ""


class FormStore(Protocol):
    """Per-form-type storage of the approval projection."""

    def load(self, record_id: str) -> ApprovableRecord:
        """Load a record; raises RecordNotFoundError when absent."""
        ...

    def save(self, record: ApprovableRecord, expected_version: int) -> ApprovableRecord:
        """Persist ``record`` iff the stored version equals ``expected_version``.

        Returns the record with its new version; raises OptimisticLockError
        when the stored version moved on.
        """
        ...
