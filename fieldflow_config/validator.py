"""
Configuration Validator (``fieldflow_config.validator``).

Responsibility
--------------
Checks a ``WorkflowConfigurationSet`` before it is turned into runtime
workflows.  Errors block the configuration; warnings are reported and
should be reviewed.

Checks
------
* Errors: unknown form types, level types, approval types and policy
  values; flags that are not YAML booleans; duplicate workflow ids;
  empty names; an active workflow without levels or with a level that
  has no approvers; two active workflows claiming the same form type.
* Warnings: role names outside the known job titles and app roles; form
  types no active workflow governs (they submit ungated); duplicate
  approver references within a level.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fieldflow_config.schema import WorkflowConfigurationSet, WorkflowDef
from fieldflow_kernel.domain.directory import APP_ROLES, JOB_TITLES
from fieldflow_kernel.domain.record import RejectionPolicy, UngatedPolicy
from fieldflow_kernel.domain.workflow import ROLE_OPTIONS, ApprovalType, FormType, LevelType

_FORM_TYPES = frozenset(f.value for f in FormType)
_LEVEL_TYPES = frozenset(t.value for t in LevelType)
_APPROVAL_TYPES = frozenset(t.value for t in ApprovalType)
_KNOWN_ROLES = frozenset(r.lower() for r in (*ROLE_OPTIONS, *APP_ROLES, *JOB_TITLES))


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block loading but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: WorkflowConfigurationSet) -> ConfigValidationResult:
    """
    Validate a configuration set.

    Postconditions:
        - Returns a ``ConfigValidationResult`` with errors and warnings.
        - A configuration with errors MUST NOT be loaded into a registry.
    """
    result = ConfigValidationResult()

    _validate_policies(config, result)
    _validate_workflow_ids(config, result)
    for workflow in config.workflows:
        _validate_workflow(workflow, result)
    _validate_assignments(config, result)

    return result


def _validate_policies(config: WorkflowConfigurationSet, result: ConfigValidationResult) -> None:
    policies = config.policies
    if policies.ungated_policy not in {p.value for p in UngatedPolicy}:
        result.add_error(f"Unknown ungated_policy '{policies.ungated_policy}'")
    if policies.rejection_policy not in {p.value for p in RejectionPolicy}:
        result.add_error(f"Unknown rejection_policy '{policies.rejection_policy}'")
    if not isinstance(policies.deduplicate_notifications, bool):
        result.add_error(
            "deduplicate_notifications must be true or false, "
            f"got {policies.deduplicate_notifications!r}"
        )


def _validate_workflow_ids(config: WorkflowConfigurationSet, result: ConfigValidationResult) -> None:
    seen: set[str] = set()
    for workflow in config.workflows:
        if workflow.workflow_id in seen:
            result.add_error(f"Duplicate workflow id '{workflow.workflow_id}'")
        seen.add(workflow.workflow_id)


def _validate_workflow(workflow: WorkflowDef, result: ConfigValidationResult) -> None:
    label = f"Workflow '{workflow.workflow_id}'"
    if not workflow.name.strip():
        result.add_error(f"{label}: name must not be empty")
    if not isinstance(workflow.is_active, bool):
        result.add_error(f"{label}: is_active must be true or false, got {workflow.is_active!r}")

    for form in workflow.assigned_forms:
        if form not in _FORM_TYPES:
            result.add_error(f"{label}: unknown form type '{form}'")

    if workflow.is_active and not workflow.levels:
        result.add_error(f"{label}: an active workflow needs at least one level")

    for number, level in enumerate(workflow.levels, start=1):
        where = f"{label} level {number}"
        if level.level_type not in _LEVEL_TYPES:
            result.add_error(f"{where}: unknown level_type '{level.level_type}'")
        if level.approval_type not in _APPROVAL_TYPES:
            result.add_error(f"{where}: unknown approval_type '{level.approval_type}'")
        if not level.approvers:
            if workflow.is_active:
                result.add_error(f"{where}: no approvers")
            else:
                result.add_warning(f"{where}: no approvers")
        if len(set(level.approvers)) != len(level.approvers):
            result.add_warning(f"{where}: duplicate approver references")
        if level.level_type == LevelType.ROLES.value:
            for role in level.approvers:
                if role.strip().lower() not in _KNOWN_ROLES:
                    result.add_warning(f"{where}: role '{role}' matches no known title or app role")


def _validate_assignments(config: WorkflowConfigurationSet, result: ConfigValidationResult) -> None:
    claimed: dict[str, str] = {}
    for workflow in config.workflows:
        if not workflow.is_active:
            continue
        for form in workflow.assigned_forms:
            if form in claimed and claimed[form] != workflow.workflow_id:
                result.add_error(
                    f"Form type '{form}' is assigned to active workflows "
                    f"'{claimed[form]}' and '{workflow.workflow_id}'"
                )
            else:
                claimed[form] = workflow.workflow_id

    for form in sorted(_FORM_TYPES - claimed.keys()):
        result.add_warning(f"Form type '{form}' has no active workflow and submits ungated")
