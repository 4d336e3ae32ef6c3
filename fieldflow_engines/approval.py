"""
fieldflow_engines.approval -- Multi-level approval state machine.

Responsibility:
    Given a record's status, current level and history, decide whether an
    actor may act, compute the record's next state after submit / approve /
    reject, and describe the notification fan-out for the transition.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fieldflow_kernel/domain/ types and sibling engines.
    No clock access: timestamps are passed in.  No directory access: the
    caller passes the directory snapshot needed to resolve All levels.

State machine:
    DRAFT --submit--> PENDING_APPROVAL(L1)
    PENDING_APPROVAL(Ln) --approve, level satisfied, not last--> PENDING_APPROVAL(Ln+1)
    PENDING_APPROVAL(Ln) --approve, level satisfied, last--> APPROVED
    PENDING_APPROVAL(Ln) --reject--> REJECTED
    REJECTED --submit--> PENDING_APPROVAL(L1)

Level satisfaction:
    - ANY: the first approval satisfies the level.
    - ALL: every approver resolved at call time must have approved this
      level in the current submission cycle (entries since the latest
      rejection).  One actor approving twice is a DuplicateDecisionError.
      Users references are narrowed to active directory members when a
      directory snapshot is supplied, so a departed user never blocks the
      level.

Failure modes:
    - InvalidTransitionError -- action not allowed from the current status.
    - WorkflowNotFoundError -- a pending record's workflow no longer exists.
    - MissingLevelError -- the record's level has no Level (data corruption).
    - UnauthorizedActorError -- actor fails the identity check.
    - DuplicateDecisionError -- repeated approval on an ALL level.
    - MissingRejectionReasonError -- reject called with a blank reason.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Sequence

from fieldflow_engines.identity import actor_matches, resolve_approvers
from fieldflow_engines.tracer import traced_engine
from fieldflow_kernel.domain.directory import Actor, Employee
from fieldflow_kernel.domain.notification import NotificationDirective, NotificationKind
from fieldflow_kernel.domain.record import (
    STATUS_TRANSITIONS,
    SUBMITTABLE_STATUSES,
    ApprovableRecord,
    ApprovalStatus,
    Decision,
    HistoryEntry,
    RejectionPolicy,
    TransitionOutcome,
    current_cycle,
)
from fieldflow_kernel.domain.workflow import (
    ApprovalType,
    ApproverSet,
    Level,
    UserApprovers,
    Workflow,
    find_level,
)
from fieldflow_kernel.exceptions import (
    DuplicateDecisionError,
    InvalidTransitionError,
    MissingLevelError,
    MissingRejectionReasonError,
    UnauthorizedActorError,
    WorkflowNotFoundError,
)


@dataclass(frozen=True)
class LevelProgress:
    """Approvals collected at one level in the current submission cycle."""

    level_number: int
    approval_type: ApprovalType
    approved_by: frozenset[str]
    remaining: frozenset[str]

    @property
    def is_satisfied(self) -> bool:
        if self.approval_type == ApprovalType.ANY:
            return bool(self.approved_by)
        return bool(self.approved_by) and not self.remaining


# =========================================================================
# Queries
# =========================================================================


def can_act(
    record: ApprovableRecord,
    workflow: Workflow | None,
    actor: Actor,
) -> bool:
    """True iff ``actor`` is an approver at the record's current level.

    Always False unless the record is pending, and False when the workflow
    or the level is missing.
    """
    if record.status != ApprovalStatus.PENDING_APPROVAL:
        return False
    if workflow is None:
        return False
    level = find_level(workflow, record.approval_level)
    if level is None:
        return False
    return actor_matches(level.approvers, actor)


def level_progress(
    record: ApprovableRecord,
    level: Level,
    employees: Sequence[Employee] = (),
) -> LevelProgress:
    """Who has approved ``level`` in the current cycle, and who is still owed.

    With a directory snapshot, Users ids missing from it or inactive are not
    owed an approval.  Without one, Users ids are taken as listed.
    """
    approved_by = frozenset(
        entry.actor_id
        for entry in current_cycle(record.approval_history)
        if entry.level == level.level_number and entry.decision == Decision.APPROVED
    )
    required = resolve_approvers(level.approvers, employees)
    if employees and isinstance(level.approvers, UserApprovers):
        required &= {e.employee_id for e in employees if e.is_active}
    return LevelProgress(
        level_number=level.level_number,
        approval_type=level.approval_type,
        approved_by=approved_by,
        remaining=required - approved_by,
    )


# =========================================================================
# Transitions
# =========================================================================


@traced_engine("approval.submit", "1.0")
def submit(
    record: ApprovableRecord,
    workflow: Workflow | None,
) -> TransitionOutcome:
    """Send a draft or rejected record into approval at Level 1.

    With no governing workflow, or an inactive one, the record is returned
    untouched and ``governed`` is False; the caller decides what an ungated
    submit means.
    """
    if record.status not in SUBMITTABLE_STATUSES:
        raise InvalidTransitionError(record.record_id, "submit", record.status.value)

    if workflow is None or not workflow.is_active:
        return TransitionOutcome(
            record=record,
            governed=False,
            reason=f"No active workflow governs {record.form_type.value}",
        )

    first = find_level(workflow, 1)
    if first is None:
        raise MissingLevelError(record.record_id, workflow.workflow_id, 1)

    updated = _with_status(
        record,
        ApprovalStatus.PENDING_APPROVAL,
        approval_level=first.level_number,
        workflow_id=workflow.workflow_id,
    )
    label = record.form_type.label
    directive = NotificationDirective(
        approvers=first.approvers,
        title=f"New {label} Pending Approval",
        body=f"A new {label}{_subject(record)} has been submitted.",
        link=record_link(record),
    )
    return TransitionOutcome(
        record=updated,
        directives=(directive,),
        reason=f"Submitted to workflow '{workflow.name}' at level 1",
    )


@traced_engine("approval.approve", "1.0", fingerprint_fields=("comment",))
def approve(
    record: ApprovableRecord,
    workflow: Workflow | None,
    actor: Actor,
    *,
    at: datetime,
    comment: str | None = None,
    employees: Sequence[Employee] = (),
    interested_parties: ApproverSet | None = None,
) -> TransitionOutcome:
    """Record an approval at the current level and escalate or finish.

    Args:
        record: The pending record.
        workflow: The workflow the record was submitted under.
        actor: Who approves.
        at: Timestamp for the history entry.
        comment: Optional approval comment.
        employees: Directory snapshot, used to resolve ALL levels.
        interested_parties: Recipients of the fully-approved notice.
    """
    level = _current_level(record, workflow, "approve")
    if not actor_matches(level.approvers, actor):
        raise UnauthorizedActorError(record.record_id, actor.actor_id, level.level_number)

    if level.approval_type == ApprovalType.ALL:
        before = level_progress(record, level, employees)
        if actor.actor_id in before.approved_by:
            raise DuplicateDecisionError(
                record.record_id, actor.actor_id, level.level_number,
            )

    history = record.approval_history + (
        HistoryEntry(
            level=level.level_number,
            decision=Decision.APPROVED,
            actor_id=actor.actor_id,
            actor_display_name=actor.display_name,
            timestamp=at,
            comment=comment or None,
        ),
    )
    recorded = replace(record, approval_history=history)

    progress = level_progress(recorded, level, employees)
    if not progress.is_satisfied:
        return TransitionOutcome(
            record=recorded,
            reason=(
                f"Level {level.level_number}: {len(progress.approved_by)}/"
                f"{len(progress.approved_by) + len(progress.remaining)} approvals"
            ),
        )

    label = record.form_type.label
    next_level = find_level(workflow, level.level_number + 1)
    if next_level is not None:
        escalated = _with_status(
            recorded,
            ApprovalStatus.PENDING_APPROVAL,
            approval_level=next_level.level_number,
        )
        directive = NotificationDirective(
            approvers=next_level.approvers,
            title=f"Action Required: {label} Approval",
            body=(
                f"{label}{_subject(record)} is ready for Level "
                f"{next_level.level_number} approval."
            ),
            link=record_link(record),
        )
        return TransitionOutcome(
            record=escalated,
            directives=(directive,),
            reason=f"Escalated to level {next_level.level_number}",
        )

    approved = _with_status(recorded, ApprovalStatus.APPROVED)
    directives: tuple[NotificationDirective, ...] = ()
    if interested_parties is not None and interested_parties.references:
        directives = (
            NotificationDirective(
                approvers=interested_parties,
                title=f"{label} Approved",
                body=f"{label}{_subject(record)} has been fully approved.",
                link=record_link(record),
                kind=NotificationKind.SUCCESS,
            ),
        )
    return TransitionOutcome(
        record=approved,
        directives=directives,
        reason=f"Approved at final level {level.level_number}",
    )


@traced_engine("approval.reject", "1.0", fingerprint_fields=("reason",))
def reject(
    record: ApprovableRecord,
    workflow: Workflow | None,
    actor: Actor,
    *,
    at: datetime,
    reason: str,
    interested_parties: ApproverSet | None = None,
    policy: RejectionPolicy = RejectionPolicy.APPROVERS_ONLY,
) -> TransitionOutcome:
    """Reject a pending record at its current level.

    Under ``RejectionPolicy.APPROVERS_ONLY`` the actor must pass the same
    identity check as for approval; ``ANY_ACTOR`` only requires the record
    to be pending.  Resubmission restarts at Level 1.  A blank ``reason``
    raises MissingRejectionReasonError.
    """
    if not reason or not reason.strip():
        raise MissingRejectionReasonError(record.record_id)

    if policy == RejectionPolicy.APPROVERS_ONLY:
        level = _current_level(record, workflow, "reject")
        if not actor_matches(level.approvers, actor):
            raise UnauthorizedActorError(
                record.record_id, actor.actor_id, level.level_number,
            )
    elif record.status != ApprovalStatus.PENDING_APPROVAL:
        raise InvalidTransitionError(record.record_id, "reject", record.status.value)

    history = record.approval_history + (
        HistoryEntry(
            level=record.approval_level,
            decision=Decision.REJECTED,
            actor_id=actor.actor_id,
            actor_display_name=actor.display_name,
            timestamp=at,
            comment=reason,
        ),
    )
    rejected = _with_status(
        replace(record, approval_history=history),
        ApprovalStatus.REJECTED,
    )

    label = record.form_type.label
    directives: tuple[NotificationDirective, ...] = ()
    if interested_parties is not None and interested_parties.references:
        directives = (
            NotificationDirective(
                approvers=interested_parties,
                title=f"{label} Rejected",
                body=f"{label}{_subject(record)} was rejected. Reason: {reason}",
                link=record_link(record),
                kind=NotificationKind.WARNING,
            ),
        )
    return TransitionOutcome(
        record=rejected,
        directives=directives,
        reason=f"Rejected at level {record.approval_level}",
    )


# =========================================================================
# Helpers
# =========================================================================


def record_link(record: ApprovableRecord) -> str:
    """In-app link to the record's detail page."""
    return f"/{record.form_type.route}/{record.record_id}"


def _subject(record: ApprovableRecord) -> str:
    return f" for {record.subject}" if record.subject else ""


def _current_level(
    record: ApprovableRecord,
    workflow: Workflow | None,
    action: str,
) -> Level:
    if record.status != ApprovalStatus.PENDING_APPROVAL:
        raise InvalidTransitionError(record.record_id, action, record.status.value)
    if workflow is None:
        raise WorkflowNotFoundError(record.workflow_id or "<none>")
    level = find_level(workflow, record.approval_level)
    if level is None:
        raise MissingLevelError(
            record.record_id, workflow.workflow_id, record.approval_level,
        )
    return level


def _with_status(
    record: ApprovableRecord,
    status: ApprovalStatus,
    **changes: object,
) -> ApprovableRecord:
    allowed = STATUS_TRANSITIONS.get(record.status, frozenset())
    if status not in allowed:
        raise InvalidTransitionError(record.record_id, status.value, record.status.value)
    return replace(record, status=status, **changes)
