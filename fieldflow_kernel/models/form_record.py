"""
Module: fieldflow_kernel.models.form_record
Responsibility: ORM persistence for the approval projection of form records.
    Form fields (hours, materials, hazards, ...) are stored by each form's
    own tables; this table holds only what the approval engine reads and
    writes.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ (for DTO conversion) only.

Invariants enforced:
    - (form_type, record_id) is unique (uq_form_record).
    - status is one of the ApprovalStatus values (ck_form_records_status).
    - approval_history is append-only; entries are stored in action order.
    - version increases by exactly one on every successful save.  The form
      store updates with ``WHERE version = :expected``.

Failure modes:
    - IntegrityError on a duplicate (form_type, record_id).
    - OptimisticLockError (raised by the form store) when version moved on.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, Index, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldflow_kernel.db.base import Base
from fieldflow_kernel.domain.record import (
    ApprovableRecord,
    ApprovalStatus,
    Decision,
    HistoryEntry,
)
from fieldflow_kernel.domain.workflow import FormType


def history_to_json(history: tuple[HistoryEntry, ...]) -> list[dict]:
    """Serialize history entries for the JSON column."""
    return [
        {
            "level": entry.level,
            "decision": entry.decision.value,
            "actor_id": entry.actor_id,
            "actor_display_name": entry.actor_display_name,
            "timestamp": entry.timestamp.isoformat(),
            "comment": entry.comment,
        }
        for entry in history
    ]


def history_from_json(data: list[dict] | None) -> tuple[HistoryEntry, ...]:
    return tuple(
        HistoryEntry(
            level=int(item["level"]),
            decision=Decision(item["decision"]),
            actor_id=item["actor_id"],
            actor_display_name=item.get("actor_display_name", ""),
            timestamp=datetime.fromisoformat(item["timestamp"]),
            comment=item.get("comment"),
        )
        for item in data or ()
    )


class FormRecordModel(Base):
    """
    Approval state of one submittable record.

    Contract:
        workflow_id is written on submission and never rewritten while the
        record is pending, so in-flight records keep resolving against the
        workflow they entered.
    """

    __tablename__ = "form_records"

    __table_args__ = (
        UniqueConstraint("form_type", "record_id", name="uq_form_record"),
        CheckConstraint(
            "status IN ('draft', 'pending_approval', 'approved', 'rejected')",
            name="ck_form_records_status",
        ),
        CheckConstraint("approval_level >= 1", name="ck_form_records_level"),
        Index("idx_form_record_status", "form_type", "status"),
    )

    record_id: Mapped[str] = mapped_column(String(64), nullable=False)
    form_type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApprovalStatus.DRAFT.value,
    )
    approval_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    approval_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    workflow_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subject: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    submitted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<FormRecord {self.form_type}/{self.record_id} "
            f"{self.status} L{self.approval_level} v{self.version}>"
        )

    def to_dto(self) -> ApprovableRecord:
        return ApprovableRecord(
            record_id=self.record_id,
            form_type=FormType(self.form_type),
            status=ApprovalStatus(self.status),
            approval_level=self.approval_level,
            approval_history=history_from_json(self.approval_history),
            workflow_id=self.workflow_id,
            version=self.version,
            subject=self.subject or "",
            submitted_by=self.submitted_by,
        )

    @classmethod
    def from_dto(cls, dto: ApprovableRecord) -> "FormRecordModel":
        return cls(
            record_id=dto.record_id,
            form_type=dto.form_type.value,
            status=dto.status.value,
            approval_level=dto.approval_level,
            approval_history=history_to_json(dto.approval_history),
            workflow_id=dto.workflow_id,
            version=dto.version,
            subject=dto.subject,
            submitted_by=dto.submitted_by,
        )
