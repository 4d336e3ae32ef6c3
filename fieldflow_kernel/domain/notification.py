"""
Notification types (``fieldflow_kernel.domain.notification``).

A ``NotificationDirective`` is what the approval state machine asks to be
delivered; it still carries approver references.  A ``Notification`` is one
stored inbox row for exactly one resolved recipient and never references a
role.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol, Sequence

from fieldflow_kernel.domain.workflow import ApproverSet


class NotificationKind(str, Enum):
    APPROVAL = "approval"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class NotificationDirective:
    """Deliver ``title``/``body`` to everyone ``approvers`` resolves to."""

    approvers: ApproverSet
    title: str
    body: str
    link: str
    kind: NotificationKind = NotificationKind.APPROVAL


@dataclass(frozen=True)
class Notification:
    """One inbox row for one concrete recipient."""

    notification_id: str
    recipient_id: str
    kind: NotificationKind
    title: str
    body: str
    link: str
    is_read: bool = False
    created_at: datetime | None = None


class NotificationInbox(Protocol):
    """Per-user inbox the dispatcher appends to."""

    def append(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        body: str,
        link: str,
    ) -> Notification:
        ...

    def list_unread(self, user_id: str) -> Sequence[Notification]:
        ...

    def mark_read(self, notification_id: str) -> None:
        ...
