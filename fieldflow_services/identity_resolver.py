"""
fieldflow_services.identity_resolver -- Directory-backed approver resolution.

Responsibility:
    Bind the pure identity engine to a live ``DirectoryService``.  Every call
    reads the directory afresh, so a role level follows job title and
    activation changes without any cache invalidation.

Architecture position:
    Services layer.  Imports fieldflow_engines (pure) and
    fieldflow_kernel.domain.
"""

from __future__ import annotations

from fieldflow_engines.identity import actor_matches, resolve_approvers, resolve_reference
from fieldflow_kernel.domain.directory import Actor, DirectoryService, Employee
from fieldflow_kernel.domain.workflow import ApproverSet, RoleApprovers
from fieldflow_kernel.logging_config import get_logger

logger = get_logger("services.identity_resolver")


class IdentityResolver:
    """Resolve approver references against the current directory."""

    def __init__(self, directory: DirectoryService):
        self._directory = directory

    def employees(self) -> tuple[Employee, ...]:
        return tuple(self._directory.list_active_employees())

    def resolve(self, approvers: ApproverSet) -> frozenset[str]:
        # A Users level never needs the directory
        if not isinstance(approvers, RoleApprovers):
            return resolve_approvers(approvers)
        resolved = resolve_approvers(approvers, self.employees())
        if not resolved:
            logger.warning(
                "role_level_resolved_empty",
                extra={"role_names": list(approvers.role_names)},
            )
        return resolved

    def resolve_each(self, approvers: ApproverSet) -> list[tuple[str, tuple[str, ...]]]:
        """Per-reference resolution, in reference order."""
        employees = self.employees() if isinstance(approvers, RoleApprovers) else ()
        return [
            (reference, resolve_reference(reference, approvers, employees))
            for reference in approvers.references
        ]

    def matches(self, approvers: ApproverSet, actor: Actor) -> bool:
        return actor_matches(approvers, actor)
