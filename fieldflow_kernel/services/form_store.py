"""
SqlFormStore -- approval projection storage for one form type.

Responsibility:
    Load and save the approval state (status, level, history, workflow
    snapshot) of records of a single form type.  The record adapter wraps
    every action in load -> engine -> save.

Architecture position:
    Kernel > Services.  Implements the ``FormStore`` protocol.

Invariants enforced:
    - Compare-and-swap on ``version``: ``save`` issues
      ``UPDATE ... WHERE version = :expected`` and bumps the version by one.
      A concurrent writer makes the update match zero rows and the save
      raises ``OptimisticLockError``; nothing is written.
    - On PostgreSQL ``load`` additionally takes a row lock (FOR UPDATE), so
      two actors in overlapping transactions serialize instead of failing.
    - Services flush, never commit.

Failure modes:
    - RecordNotFoundError: unknown record_id for this form type.
    - OptimisticLockError: stored version differs from ``expected_version``.
"""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fieldflow_kernel.domain.record import ApprovableRecord
from fieldflow_kernel.domain.workflow import FormType
from fieldflow_kernel.exceptions import OptimisticLockError, RecordNotFoundError
from fieldflow_kernel.logging_config import get_logger
from fieldflow_kernel.models.form_record import FormRecordModel, history_to_json
from fieldflow_kernel.services.base import BaseService

logger = get_logger("services.form_store")


class SqlFormStore(BaseService[FormRecordModel]):
    """SQLAlchemy ``FormStore`` bound to one form type."""

    def __init__(self, session: Session, form_type: FormType | str):
        super().__init__(session)
        self.form_type = FormType(form_type)

    def create(self, record: ApprovableRecord) -> ApprovableRecord:
        """Insert a new record (version 0)."""
        if record.form_type != self.form_type:
            raise ValueError(
                f"Store for {self.form_type.value} cannot hold {record.form_type.value}"
            )
        model = FormRecordModel.from_dto(replace(record, version=0))
        self.session.add(model)
        self.session.flush()
        logger.debug(
            "form_record_created",
            extra={"record_id": record.record_id, "form_type": self.form_type.value},
        )
        return model.to_dto()

    def load(self, record_id: str) -> ApprovableRecord:
        stmt = self._select(record_id).execution_options(populate_existing=True)
        if self._locks_rows():
            stmt = stmt.with_for_update()
        model = self.session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise RecordNotFoundError(record_id, self.form_type.value)
        return model.to_dto()

    def save(self, record: ApprovableRecord, expected_version: int) -> ApprovableRecord:
        new_version = expected_version + 1
        result = self.session.execute(
            update(FormRecordModel)
            .where(FormRecordModel.form_type == self.form_type.value)
            .where(FormRecordModel.record_id == record.record_id)
            .where(FormRecordModel.version == expected_version)
            .values(
                status=record.status.value,
                approval_level=record.approval_level,
                approval_history=history_to_json(record.approval_history),
                workflow_id=record.workflow_id,
                subject=record.subject,
                submitted_by=record.submitted_by,
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            actual = self.session.execute(
                select(FormRecordModel.version)
                .where(FormRecordModel.form_type == self.form_type.value)
                .where(FormRecordModel.record_id == record.record_id)
            ).scalar_one_or_none()
            if actual is None:
                raise RecordNotFoundError(record.record_id, self.form_type.value)
            logger.warning(
                "form_record_version_conflict",
                extra={
                    "record_id": record.record_id,
                    "form_type": self.form_type.value,
                    "expected_version": expected_version,
                    "actual_version": actual,
                },
            )
            raise OptimisticLockError(record.record_id, expected_version, actual)

        self.session.flush()
        return replace(record, version=new_version)

    def _select(self, record_id: str):
        return (
            select(FormRecordModel)
            .where(FormRecordModel.form_type == self.form_type.value)
            .where(FormRecordModel.record_id == record_id)
        )

    def _locks_rows(self) -> bool:
        return self.session.get_bind().dialect.name == "postgresql"
