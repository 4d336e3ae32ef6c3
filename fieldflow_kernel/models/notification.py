"""
Module: fieldflow_kernel.models.notification
Responsibility: ORM persistence for per-user inbox notifications.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ (for DTO conversion) only.

Invariants enforced:
    - One row per concrete recipient; rows never reference a role.
    - kind is limited to the NotificationKind values.

Audit relevance:
    Notifications are informational.  Losing one never changes the state of
    a record, so rows may be deleted by their recipient.
"""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldflow_kernel.db.base import Base
from fieldflow_kernel.domain.notification import Notification, NotificationKind


class NotificationModel(Base):
    """Stored inbox row."""

    __tablename__ = "notifications"

    __table_args__ = (
        Index("idx_notification_recipient_read", "recipient_id", "is_read"),
        Index("idx_notification_recipient_created", "recipient_id", "created_at"),
        CheckConstraint(
            "kind IN ('approval', 'info', 'success', 'warning', 'error')",
            name="ck_notifications_kind",
        ),
    )

    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    link: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Notification {self.id} to={self.recipient_id} read={self.is_read}>"

    def to_dto(self) -> Notification:
        return Notification(
            notification_id=str(self.id),
            recipient_id=self.recipient_id,
            kind=NotificationKind(self.kind),
            title=self.title,
            body=self.body,
            link=self.link,
            is_read=self.is_read,
            created_at=self.created_at,
        )
