"""
fieldflow_services.notification_dispatcher -- Directive fan-out to inboxes.

Responsibility:
    Expand notification directives from the approval state machine into one
    inbox entry per concrete recipient.

Architecture position:
    Services layer.  Uses IdentityResolver for resolution and a
    ``NotificationInbox`` for delivery.

Delivery semantics:
    - ``deduplicate=True`` (default): one notification per user per
      directive, in first-seen order.
    - ``deduplicate=False``: one notification per matching reference, so a
      user matched by two role names receives two copies.
    - Fire-and-forget: a failure while resolving or appending is logged with
      the exception attached and never propagates.  The record transition
      that produced the directive is already saved and stays saved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from fieldflow_kernel.domain.notification import (
    NotificationDirective,
    NotificationInbox,
    NotificationKind,
)
from fieldflow_kernel.domain.workflow import ApproverSet
from fieldflow_kernel.logging_config import get_logger
from fieldflow_services.identity_resolver import IdentityResolver

logger = get_logger("services.notification_dispatcher")


@dataclass(frozen=True)
class DispatchReport:
    """What one ``notify`` call delivered."""

    title: str
    recipients: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    resolution_failed: bool = False

    @property
    def delivered(self) -> int:
        return len(self.recipients)


class NotificationDispatcher:
    """Deliver directives to the inbox of every resolved recipient."""

    def __init__(
        self,
        resolver: IdentityResolver,
        inbox: NotificationInbox,
        deduplicate: bool = True,
    ):
        self._resolver = resolver
        self._inbox = inbox
        self._deduplicate = deduplicate

    def dispatch(self, directives: Iterable[NotificationDirective]) -> list[DispatchReport]:
        return [
            self.notify(d.approvers, d.title, d.body, d.link, d.kind)
            for d in directives
        ]

    def notify(
        self,
        approvers: ApproverSet,
        title: str,
        body: str,
        link: str,
        kind: NotificationKind = NotificationKind.APPROVAL,
    ) -> DispatchReport:
        try:
            recipients = self._recipients(approvers)
        except Exception:
            logger.error(
                "notification_resolution_failed",
                extra={"title": title, "references": list(approvers.references)},
                exc_info=True,
            )
            return DispatchReport(title=title, resolution_failed=True)

        delivered: list[str] = []
        failed: list[str] = []
        for recipient_id in recipients:
            try:
                self._inbox.append(recipient_id, kind, title, body, link)
            except Exception:
                logger.error(
                    "notification_delivery_failed",
                    extra={"recipient_id": recipient_id, "title": title},
                    exc_info=True,
                )
                failed.append(recipient_id)
            else:
                delivered.append(recipient_id)

        logger.info(
            "notification_dispatched",
            extra={
                "title": title,
                "kind": NotificationKind(kind).value,
                "recipient_count": len(delivered),
                "failed_count": len(failed),
            },
        )
        return DispatchReport(title=title, recipients=tuple(delivered), failed=tuple(failed))

    def _recipients(self, approvers: ApproverSet) -> list[str]:
        recipients: list[str] = []
        seen: set[str] = set()
        for _reference, user_ids in self._resolver.resolve_each(approvers):
            for user_id in user_ids:
                if self._deduplicate:
                    if user_id in seen:
                        continue
                    seen.add(user_id)
                recipients.append(user_id)
        return recipients
