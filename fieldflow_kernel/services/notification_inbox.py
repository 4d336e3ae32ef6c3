"""
SqlNotificationInbox -- per-user inbox backed by the ``notifications`` table.

Responsibility:
    Append notifications for concrete recipients and serve the inbox
    queries of the header bell: unread list, full list (newest first),
    unread count, mark read, mark all read and delete.

Architecture position:
    Kernel > Services.  Implements the ``NotificationInbox`` protocol the
    notification dispatcher writes to.

Invariants enforced:
    - ``append`` runs inside a SAVEPOINT.  A failed insert rolls back only
      that savepoint, so the caller's transaction (which already holds the
      record transition) stays usable.
    - Services flush, never commit.

Failure modes:
    - NotificationNotFoundError from ``mark_read`` / ``delete`` on an
      unknown id.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from fieldflow_kernel.domain.clock import Clock, SystemClock
from fieldflow_kernel.domain.notification import Notification, NotificationKind
from fieldflow_kernel.exceptions import NotificationNotFoundError
from fieldflow_kernel.logging_config import get_logger
from fieldflow_kernel.models.notification import NotificationModel
from fieldflow_kernel.services.base import BaseService

logger = get_logger("services.notification_inbox")


class SqlNotificationInbox(BaseService[NotificationModel]):
    """SQLAlchemy implementation of the notification inbox."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def append(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        body: str,
        link: str,
    ) -> Notification:
        savepoint = self.session.begin_nested()
        try:
            model = NotificationModel(
                recipient_id=recipient_id,
                kind=NotificationKind(kind).value,
                title=title,
                body=body,
                link=link,
                is_read=False,
                created_at=self._clock.now(),
            )
            self.session.add(model)
            self.session.flush()
            savepoint.commit()
        except Exception:
            savepoint.rollback()
            raise
        logger.debug(
            "notification_appended",
            extra={"recipient_id": recipient_id, "kind": model.kind, "title": title},
        )
        return model.to_dto()

    def list_unread(self, user_id: str) -> list[Notification]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.recipient_id == user_id)
            .where(NotificationModel.is_read.is_(False))
            .order_by(NotificationModel.created_at.desc())
        )
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[Notification]:
        """All notifications of ``user_id``, newest first."""
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.recipient_id == user_id)
            .order_by(NotificationModel.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def unread_count(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(NotificationModel)
            .where(NotificationModel.recipient_id == user_id)
            .where(NotificationModel.is_read.is_(False))
        )
        return self.session.execute(stmt).scalar_one()

    def mark_read(self, notification_id: str) -> None:
        model = self._get(notification_id)
        model.is_read = True
        self.session.flush()

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of ``user_id`` read; returns the count."""
        result = self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.recipient_id == user_id)
            .where(NotificationModel.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        self.session.flush()
        return result.rowcount

    def delete(self, notification_id: str) -> None:
        self.session.delete(self._get(notification_id))
        self.session.flush()

    def _get(self, notification_id: str) -> NotificationModel:
        try:
            key = UUID(str(notification_id))
        except ValueError:
            raise NotificationNotFoundError(notification_id) from None
        model = self.session.get(NotificationModel, key)
        if model is None:
            raise NotificationNotFoundError(notification_id)
        return model
