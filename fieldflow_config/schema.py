"""
Workflow configuration set schema.

The human-authored, reviewable source artifact for approval workflows.
YAML files are parsed into these types by the loader, checked by the
validator and converted into domain ``Workflow`` objects by the bridges.

Values are kept as the strings found in YAML; the validator reports
unknown enum values instead of the parser failing on the first one.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LevelDef:
    """One escalation level as written in YAML."""

    level_type: str
    approval_type: str = "any"
    approvers: tuple[str, ...] = ()
    level_id: str | None = None


@dataclass(frozen=True)
class WorkflowDef:
    """One workflow as written in YAML."""

    workflow_id: str
    name: str
    is_active: bool = True
    assigned_forms: tuple[str, ...] = ()
    levels: tuple[LevelDef, ...] = ()


@dataclass(frozen=True)
class ApprovalPolicyDef:
    """Deployment-wide choices left open by the approval engine."""

    ungated_policy: str = "auto_approve"
    rejection_policy: str = "approvers_only"
    deduplicate_notifications: bool = True


@dataclass(frozen=True)
class WorkflowConfigurationSet:
    """
    A complete, versioned set of workflow definitions.

    ``checksum`` is the SHA-256 of the canonical JSON of the source YAML.
    """

    config_id: str
    version: int
    workflows: tuple[WorkflowDef, ...] = ()
    policies: ApprovalPolicyDef = field(default_factory=ApprovalPolicyDef)
    checksum: str = ""
