"""
Module: fieldflow_kernel.models.workflow
Responsibility: ORM persistence for workflow definitions and their levels.

Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ (for DTO conversion) only.

Invariants enforced:
    - workflow_id is unique; a workflow owns its levels (delete-orphan).
    - (workflow_id, level_number) is unique, so numbering cannot collide.
    - level_type and approval_type are limited by check constraints.

Audit relevance:
    Workflows are administrator configuration.  Records snapshot the
    workflow_id they were submitted under, so a workflow row must not be
    reused for a different pipeline.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldflow_kernel.db.base import Base
from fieldflow_kernel.domain.workflow import (
    ApprovalType,
    FormType,
    Level,
    LevelType,
    Workflow,
    approvers_for,
)


class WorkflowModel(Base):
    """Persistent approval workflow."""

    __tablename__ = "approval_workflows"

    workflow_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Form type values, in assignment order
    assigned_forms: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    levels: Mapped[list["LevelModel"]] = relationship(
        "LevelModel",
        back_populates="workflow",
        primaryjoin="WorkflowModel.workflow_id == LevelModel.workflow_id",
        order_by="LevelModel.level_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Workflow {self.workflow_id} '{self.name}' "
            f"active={self.is_active} levels={len(self.levels)}>"
        )

    def to_dto(self) -> Workflow:
        """Convert ORM model to frozen domain DTO."""
        return Workflow(
            workflow_id=self.workflow_id,
            name=self.name,
            levels=tuple(level.to_dto() for level in self.levels),
            assigned_forms=frozenset(FormType(f) for f in self.assigned_forms or ()),
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def apply_dto(self, dto: Workflow) -> None:
        """Overwrite this row (and its levels) from a domain DTO."""
        self.name = dto.name
        self.is_active = dto.is_active
        self.assigned_forms = sorted(f.value for f in dto.assigned_forms)
        self.created_at = dto.created_at
        self.updated_at = dto.updated_at
        self.levels = [LevelModel.from_dto(dto.workflow_id, level) for level in dto.levels]

    @classmethod
    def from_dto(cls, dto: Workflow, position: int = 0) -> WorkflowModel:
        model = cls(workflow_id=dto.workflow_id, position=position)
        model.apply_dto(dto)
        return model


class LevelModel(Base):
    """Persistent escalation level of a workflow."""

    __tablename__ = "approval_workflow_levels"

    __table_args__ = (
        UniqueConstraint(
            "workflow_id", "level_number", name="uq_workflow_level_number",
        ),
        CheckConstraint(
            "level_type IN ('users', 'roles')",
            name="ck_workflow_levels_level_type",
        ),
        CheckConstraint(
            "approval_type IN ('any', 'all')",
            name="ck_workflow_levels_approval_type",
        ),
        CheckConstraint("level_number >= 1", name="ck_workflow_levels_number"),
    )

    level_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    workflow_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("approval_workflows.workflow_id", ondelete="CASCADE"),
        nullable=False,
    )
    level_number: Mapped[int] = mapped_column(Integer, nullable=False)
    level_type: Mapped[str] = mapped_column(String(10), nullable=False)
    approval_type: Mapped[str] = mapped_column(String(10), nullable=False)
    approver_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    workflow: Mapped[WorkflowModel] = relationship(
        "WorkflowModel",
        back_populates="levels",
        primaryjoin="WorkflowModel.workflow_id == LevelModel.workflow_id",
    )

    def to_dto(self) -> Level:
        return Level(
            level_id=self.level_id,
            level_number=self.level_number,
            approvers=approvers_for(LevelType(self.level_type), tuple(self.approver_ids or ())),
            approval_type=ApprovalType(self.approval_type),
        )

    @classmethod
    def from_dto(cls, workflow_id: str, dto: Level) -> LevelModel:
        return cls(
            level_id=dto.level_id,
            workflow_id=workflow_id,
            level_number=dto.level_number,
            level_type=dto.level_type.value,
            approval_type=dto.approval_type.value,
            approver_ids=list(dto.approver_ids),
        )
