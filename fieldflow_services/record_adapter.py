"""
fieldflow_services.record_adapter -- Binds the approval engine to one form type.

Responsibility:
    Thin coordinator.  For each action it loads the record from the form
    store, picks the workflow, calls the pure state machine, saves the new
    record with a version compare-and-swap and only then dispatches the
    notification directives.

Architecture position:
    Services layer.  May import from fieldflow_engines (pure engines) and
    fieldflow_kernel (domain, services, logging).

Invariants enforced:
    - In-flight records resolve against the workflow id they were
      submitted under, never against a fresh first-match lookup.
    - Nothing is dispatched unless the save succeeded; a stale version
      raises OptimisticLockError and leaves no trace in any inbox.
    - A dispatch failure never undoes a saved transition.
    - Every action emits one ``approval_transition`` log record with the
      outcome, status and level before/after, and duration.

Usage:
    adapter = RecordAdapter(
        FormType.TIMESHEET,
        store=SqlFormStore(session, FormType.TIMESHEET),
        registry=registry,
        dispatcher=dispatcher,
        directory=SqlDirectoryService(session),
        clock=SystemClock(),
    )
    adapter.submit("ts-1001", submitter)
    adapter.approve("ts-1001", actor, "hours verified")
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any, Callable, Union

from fieldflow_engines import approval as engine
from fieldflow_kernel.domain.clock import Clock, SystemClock
from fieldflow_kernel.domain.directory import Actor, DirectoryService
from fieldflow_kernel.domain.record import (
    ApprovableRecord,
    ApprovalStatus,
    FormStore,
    RejectionPolicy,
    TransitionOutcome,
    UngatedPolicy,
)
from fieldflow_kernel.domain.workflow import ApproverSet, FormType, UserApprovers, Workflow
from fieldflow_kernel.exceptions import FieldFlowError, WorkflowNotFoundError
from fieldflow_kernel.logging_config import LogContext, get_logger
from fieldflow_kernel.services.workflow_registry import WorkflowRegistry
from fieldflow_services.identity_resolver import IdentityResolver
from fieldflow_services.notification_dispatcher import NotificationDispatcher

logger = get_logger("services.record_adapter")

# Outcome codes of the approval_transition log record
OUTCOME_SUBMITTED = "submitted"
OUTCOME_ESCALATED = "escalated"
OUTCOME_APPROVED = "approved"
OUTCOME_PARTIAL = "partial_approval"
OUTCOME_REJECTED = "rejected"
OUTCOME_UNGATED_APPROVED = "ungated_auto_approved"
OUTCOME_UNGATED_UNCHANGED = "ungated_unchanged"
OUTCOME_REFUSED = "refused"

InterestedParties = Union[ApproverSet, Callable[[ApprovableRecord], "ApproverSet | None"]]


def _emit_transition_trace(
    action: str,
    before: ApprovableRecord,
    after: ApprovableRecord | None,
    outcome: str,
    reason: str,
    duration_ms: float,
    error_code: str | None = None,
) -> None:
    """Structured record of one adapter action."""
    record: dict[str, Any] = {
        "action": action,
        "outcome": outcome,
        "reason": reason,
        "from_status": before.status.value,
        "from_level": before.approval_level,
        "duration_ms": round(duration_ms, 3),
    }
    if after is not None:
        record["to_status"] = after.status.value
        record["to_level"] = after.approval_level
        record["version"] = after.version
    if error_code is not None:
        record["error_code"] = error_code
    logger.info("approval_transition", extra=record)


class RecordAdapter:
    """Approval actions for the records of one form type."""

    def __init__(
        self,
        form_type: FormType | str,
        store: FormStore,
        registry: WorkflowRegistry,
        dispatcher: NotificationDispatcher,
        directory: DirectoryService,
        clock: Clock | None = None,
        ungated_policy: UngatedPolicy = UngatedPolicy.AUTO_APPROVE,
        rejection_policy: RejectionPolicy = RejectionPolicy.APPROVERS_ONLY,
        interested_parties: InterestedParties | None = None,
    ):
        self.form_type = FormType(form_type)
        self._store = store
        self._registry = registry
        self._dispatcher = dispatcher
        self._resolver = IdentityResolver(directory)
        self._clock = clock or SystemClock()
        self._ungated_policy = UngatedPolicy(ungated_policy)
        self._rejection_policy = RejectionPolicy(rejection_policy)
        self._interested_parties = interested_parties

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def submit(self, record_id: str, submitter: Actor | None = None) -> TransitionOutcome:
        """Send a draft or rejected record into approval.

        With no governing workflow the ungated policy decides: AUTO_APPROVE
        marks the record approved, MANUAL leaves it as it is.
        """
        with self._context(record_id, submitter):
            t0 = time.monotonic()
            record = self._store.load(record_id)
            if submitter is not None:
                record = replace(record, submitted_by=submitter.actor_id)
            workflow = self._registry.find_workflow_for_form(self.form_type)

            with LogContext.bind(workflow_id=workflow.workflow_id if workflow else None):
                outcome = self._run("submit", record, t0, lambda: engine.submit(record, workflow))
                if not outcome.governed:
                    return self._submit_ungated(record, outcome, t0)
                return self._commit("submit", record, outcome, OUTCOME_SUBMITTED, t0)

    def can_act(self, record_id: str, actor: Actor) -> bool:
        record = self._store.load(record_id)
        if record.status != ApprovalStatus.PENDING_APPROVAL:
            return False
        try:
            workflow = self._workflow_for(record)
        except WorkflowNotFoundError:
            return False
        return engine.can_act(record, workflow, actor)

    def approve(
        self, record_id: str, actor: Actor, comment: str | None = None,
    ) -> TransitionOutcome:
        with self._context(record_id, actor):
            t0 = time.monotonic()
            record = self._store.load(record_id)

            def transition() -> TransitionOutcome:
                return engine.approve(
                    record,
                    self._workflow_for(record),
                    actor,
                    at=self._clock.now(),
                    comment=comment,
                    employees=self._resolver.employees(),
                    interested_parties=self._interested(record),
                )

            with LogContext.bind(workflow_id=record.workflow_id):
                outcome = self._run("approve", record, t0, transition)
                after = outcome.record
                if after.status == ApprovalStatus.APPROVED:
                    code = OUTCOME_APPROVED
                elif after.approval_level != record.approval_level:
                    code = OUTCOME_ESCALATED
                else:
                    code = OUTCOME_PARTIAL
                return self._commit("approve", record, outcome, code, t0)

    def reject(self, record_id: str, actor: Actor, reason: str) -> TransitionOutcome:
        with self._context(record_id, actor):
            t0 = time.monotonic()
            record = self._store.load(record_id)

            def transition() -> TransitionOutcome:
                workflow = (
                    self._workflow_for(record)
                    if self._rejection_policy == RejectionPolicy.APPROVERS_ONLY
                    else None
                )
                return engine.reject(
                    record,
                    workflow,
                    actor,
                    at=self._clock.now(),
                    reason=reason,
                    interested_parties=self._interested(record),
                    policy=self._rejection_policy,
                )

            with LogContext.bind(workflow_id=record.workflow_id):
                outcome = self._run("reject", record, t0, transition)
                return self._commit("reject", record, outcome, OUTCOME_REJECTED, t0)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _context(self, record_id: str, actor: Actor | None):
        return LogContext.bind(
            record_id=record_id,
            form_type=self.form_type.value,
            actor_id=actor.actor_id if actor is not None else None,
        )

    def _workflow_for(self, record: ApprovableRecord) -> Workflow | None:
        if record.workflow_id is None:
            # Pending rows written before workflow snapshots existed
            if record.status == ApprovalStatus.PENDING_APPROVAL:
                return self._registry.find_workflow_for_form(self.form_type)
            return None
        return self._registry.get_workflow(record.workflow_id)

    def _interested(self, record: ApprovableRecord) -> ApproverSet | None:
        parties = self._interested_parties
        if parties is None:
            if record.submitted_by:
                return UserApprovers((record.submitted_by,))
            return None
        if callable(parties):
            return parties(record)
        return parties

    def _run(
        self,
        action: str,
        record: ApprovableRecord,
        t0: float,
        transition: Callable[[], TransitionOutcome],
    ) -> TransitionOutcome:
        try:
            return transition()
        except FieldFlowError as exc:
            _emit_transition_trace(
                action,
                record,
                None,
                OUTCOME_REFUSED,
                str(exc),
                (time.monotonic() - t0) * 1000,
                error_code=exc.code,
            )
            raise

    def _commit(
        self,
        action: str,
        before: ApprovableRecord,
        outcome: TransitionOutcome,
        code: str,
        t0: float,
    ) -> TransitionOutcome:
        saved = self._store.save(outcome.record, before.version)
        _emit_transition_trace(
            action, before, saved, code, outcome.reason, (time.monotonic() - t0) * 1000,
        )
        if outcome.directives:
            self._dispatcher.dispatch(outcome.directives)
        return replace(outcome, record=saved)

    def _submit_ungated(
        self,
        record: ApprovableRecord,
        outcome: TransitionOutcome,
        t0: float,
    ) -> TransitionOutcome:
        if self._ungated_policy == UngatedPolicy.MANUAL:
            _emit_transition_trace(
                "submit",
                record,
                record,
                OUTCOME_UNGATED_UNCHANGED,
                outcome.reason,
                (time.monotonic() - t0) * 1000,
            )
            return outcome

        # No workflow gates this form: approval is immediate, outside the
        # gated state machine.
        approved = replace(
            record, status=ApprovalStatus.APPROVED, approval_level=1, workflow_id=None,
        )
        saved = self._store.save(approved, record.version)
        _emit_transition_trace(
            "submit",
            record,
            saved,
            OUTCOME_UNGATED_APPROVED,
            outcome.reason,
            (time.monotonic() - t0) * 1000,
        )
        return replace(outcome, record=saved)
