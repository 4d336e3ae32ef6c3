"""
Typed Exception Hierarchy for the FieldFlow approval kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Form handlers must react to approval failures precisely: a record that is
no longer pending needs a page refresh, an unauthorized actor needs a
"not your turn" message, a missing level is data corruption that must block
the user.  Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        adapter.approve(record_id, actor, comment)
    except UnauthorizedActorError as e:
        flash(f"You are not an approver for level {e.level_number}")
    except OptimisticLockError:
        reload_and_retry_prompt()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from FieldFlowError:

    FieldFlowError (base)
    |
    +-- WorkflowError
    |   +-- WorkflowNotFoundError
    |   +-- InvalidWorkflowError
    |   +-- OverlappingFormAssignmentError
    |   +-- LevelNotFoundError
    |
    +-- TransitionError
    |   +-- InvalidTransitionError
    |   +-- UnauthorizedActorError
    |   +-- MissingLevelError
    |   +-- DuplicateDecisionError
    |   +-- MissingRejectionReasonError
    |
    +-- RecordError
    |   +-- RecordNotFoundError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- NotificationError
        +-- NotificationNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                         | When Raised
--------------|------------------------------|-----------------------------------------
Workflow      | WORKFLOW_NOT_FOUND           | Workflow id doesn't exist (deleted mid-flight)
              | INVALID_WORKFLOW             | Save-time validation failed
              | OVERLAPPING_FORM_ASSIGNMENT  | Two active workflows claim one form type
              | LEVEL_NOT_FOUND              | Editing a level index that doesn't exist
--------------|------------------------------|-----------------------------------------
Transition    | INVALID_TRANSITION           | Action not allowed from current status
              | UNAUTHORIZED_ACTOR           | Actor is not an approver at current level
              | MISSING_LEVEL                | approval_level has no Level (corruption)
              | DUPLICATE_DECISION           | Same actor approved an All level twice
              | MISSING_REJECTION_REASON     | Rejection submitted without a reason
--------------|------------------------------|-----------------------------------------
Record        | RECORD_NOT_FOUND             | Form record id doesn't exist
--------------|------------------------------|-----------------------------------------
Concurrency   | OPTIMISTIC_LOCK_CONFLICT     | Record changed since it was loaded
--------------|------------------------------|-----------------------------------------
Notification  | NOTIFICATION_NOT_FOUND       | Notification id doesn't exist

"No governing workflow" is NOT an error.  The state machine reports it as
``TransitionOutcome.governed == False`` and the caller decides the policy.

===============================================================================
"""


class FieldFlowError(Exception):
    """
    Base exception for all FieldFlow errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FIELDFLOW_ERROR"


# Workflow configuration exceptions


class WorkflowError(FieldFlowError):
    """Base exception for workflow configuration errors."""

    code: str = "WORKFLOW_ERROR"


class WorkflowNotFoundError(WorkflowError):
    """Workflow with given ID was not found."""

    code: str = "WORKFLOW_NOT_FOUND"

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class InvalidWorkflowError(WorkflowError):
    """Workflow definition failed save-time validation."""

    code: str = "INVALID_WORKFLOW"

    def __init__(self, workflow_id: str, errors: list[str]):
        self.workflow_id = workflow_id
        self.errors = list(errors)
        super().__init__(
            f"Workflow {workflow_id} is invalid: " + "; ".join(self.errors)
        )


class OverlappingFormAssignmentError(WorkflowError):
    """Two active workflows claim the same form type."""

    code: str = "OVERLAPPING_FORM_ASSIGNMENT"

    def __init__(self, form_type: str, workflow_id: str, conflicting_workflow_id: str):
        self.form_type = form_type
        self.workflow_id = workflow_id
        self.conflicting_workflow_id = conflicting_workflow_id
        super().__init__(
            f"Form type '{form_type}' is already governed by active workflow "
            f"{conflicting_workflow_id}; cannot assign it to {workflow_id}"
        )


class LevelNotFoundError(WorkflowError):
    """Level number referenced by an editing operation does not exist."""

    code: str = "LEVEL_NOT_FOUND"

    def __init__(self, workflow_id: str, level_number: int):
        self.workflow_id = workflow_id
        self.level_number = level_number
        super().__init__(f"Workflow {workflow_id} has no level {level_number}")


# Transition exceptions


class TransitionError(FieldFlowError):
    """Base exception for approval transition errors."""

    code: str = "TRANSITION_ERROR"


class InvalidTransitionError(TransitionError):
    """Action attempted from a status that forbids it."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, record_id: str, action: str, current_status: str):
        self.record_id = record_id
        self.action = action
        self.current_status = current_status
        super().__init__(
            f"Cannot {action} record {record_id} in status '{current_status}'"
        )


class UnauthorizedActorError(TransitionError):
    """Actor is not an approver at the record's current level."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(self, record_id: str, actor_id: str, level_number: int):
        self.record_id = record_id
        self.actor_id = actor_id
        self.level_number = level_number
        super().__init__(
            f"Actor {actor_id} may not act on record {record_id} "
            f"at level {level_number}"
        )


class MissingLevelError(TransitionError):
    """
    Record's approval level has no corresponding Level in its workflow.

    Treated as data corruption: surfaced to the user as a blocking error,
    never silently defaulted.
    """

    code: str = "MISSING_LEVEL"

    def __init__(self, record_id: str, workflow_id: str, level_number: int):
        self.record_id = record_id
        self.workflow_id = workflow_id
        self.level_number = level_number
        super().__init__(
            f"Workflow {workflow_id} has no level {level_number} "
            f"(record {record_id})"
        )


class DuplicateDecisionError(TransitionError):
    """Actor already approved this level in the current submission cycle."""

    code: str = "DUPLICATE_DECISION"

    def __init__(self, record_id: str, actor_id: str, level_number: int):
        self.record_id = record_id
        self.actor_id = actor_id
        self.level_number = level_number
        super().__init__(
            f"Actor {actor_id} already approved level {level_number} "
            f"of record {record_id}"
        )


class MissingRejectionReasonError(TransitionError):
    """Rejection attempted with an empty or whitespace-only reason."""

    code: str = "MISSING_REJECTION_REASON"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Rejecting record {record_id} requires a reason")


# Record exceptions


class RecordError(FieldFlowError):
    """Base exception for form record errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """Form record with given ID was not found."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str, form_type: str | None = None):
        self.record_id = record_id
        self.form_type = form_type
        suffix = f" ({form_type})" if form_type else ""
        super().__init__(f"Record not found: {record_id}{suffix}")


# Concurrency exceptions


class ConcurrencyError(FieldFlowError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, record_id: str, expected_version: int, actual_version: int | None):
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on record {record_id}: expected "
            f"version {expected_version}, found {actual_version}"
        )


# Notification exceptions


class NotificationError(FieldFlowError):
    """Base exception for notification inbox errors."""

    code: str = "NOTIFICATION_ERROR"


class NotificationNotFoundError(NotificationError):
    """Notification with given ID was not found."""

    code: str = "NOTIFICATION_NOT_FOUND"

    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Notification not found: {notification_id}")
