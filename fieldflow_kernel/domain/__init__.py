"""
Pure domain layer.

This module contains pure value objects and interfaces with NO dependencies
on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable and deterministic.
"""

from fieldflow_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fieldflow_kernel.domain.directory import (
    ADMIN_TITLE,
    APP_ROLES,
    JOB_TITLES,
    SUPER_ADMIN_ROLE,
    Actor,
    DirectoryService,
    Employee,
)
from fieldflow_kernel.domain.notification import (
    Notification,
    NotificationDirective,
    NotificationInbox,
    NotificationKind,
)
from fieldflow_kernel.domain.record import (
    STATUS_TRANSITIONS,
    SUBMITTABLE_STATUSES,
    TERMINAL_STATUSES,
    ApprovableRecord,
    ApprovalStatus,
    Decision,
    FormStore,
    HistoryEntry,
    RejectionPolicy,
    TransitionOutcome,
    UngatedPolicy,
    current_cycle,
)
from fieldflow_kernel.domain.workflow import (
    FORM_TYPE_LABELS,
    ROLE_OPTIONS,
    ApprovalType,
    ApproverSet,
    FormType,
    Level,
    LevelType,
    RoleApprovers,
    UserApprovers,
    Workflow,
    WorkflowRepository,
    approvers_for,
    find_level,
    new_level,
    renumber_levels,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ADMIN_TITLE",
    "APP_ROLES",
    "JOB_TITLES",
    "SUPER_ADMIN_ROLE",
    "Actor",
    "DirectoryService",
    "Employee",
    "Notification",
    "NotificationDirective",
    "NotificationInbox",
    "NotificationKind",
    "STATUS_TRANSITIONS",
    "SUBMITTABLE_STATUSES",
    "TERMINAL_STATUSES",
    "ApprovableRecord",
    "ApprovalStatus",
    "Decision",
    "FormStore",
    "HistoryEntry",
    "RejectionPolicy",
    "TransitionOutcome",
    "UngatedPolicy",
    "current_cycle",
    "FORM_TYPE_LABELS",
    "ROLE_OPTIONS",
    "ApprovalType",
    "ApproverSet",
    "FormType",
    "Level",
    "LevelType",
    "RoleApprovers",
    "UserApprovers",
    "Workflow",
    "WorkflowRepository",
    "approvers_for",
    "find_level",
    "new_level",
    "renumber_levels",
]
