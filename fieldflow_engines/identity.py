"""
fieldflow_engines.identity -- Approver reference resolution.

Responsibility:
    Turn a level's approver references into concrete user identities, and
    test a single actor against those references.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fieldflow_kernel/domain/ types.  The caller supplies the
    directory snapshot, taken at evaluation time, never cached.

Matching rules:
    - Users references are returned as-is (unknown ids pass through).
    - Role references match an employee's app role or job title,
      case-insensitively.  The ``super-admin`` app role is the ``Admin``
      title bucket: reference ``super-admin`` also matches title ``Admin``
      and app role ``super-admin`` also satisfies reference ``Admin``.
    - ``actor_matches`` and ``resolve_approvers`` share ``role_matches`` so
      an identity check always agrees with membership in the resolved set.

Failure modes:
    None.  Unmatched references contribute no members.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from fieldflow_kernel.domain.directory import (
    ADMIN_TITLE,
    SUPER_ADMIN_ROLE,
    Actor,
    Employee,
)
from fieldflow_kernel.domain.workflow import ApproverSet, RoleApprovers, UserApprovers

_SUPER_ADMIN = SUPER_ADMIN_ROLE.lower()
_ADMIN = ADMIN_TITLE.lower()


def _role_keys(role_name: str) -> frozenset[str]:
    key = role_name.strip().lower()
    if key in (_SUPER_ADMIN, _ADMIN):
        return frozenset({_SUPER_ADMIN, _ADMIN})
    return frozenset({key})


def role_matches(reference: str, role_names: Iterable[str]) -> bool:
    """True if any of ``role_names`` satisfies the role ``reference``."""
    wanted = _role_keys(reference)
    return any(_role_keys(name) & wanted for name in role_names if name)


def resolve_approvers(
    approvers: ApproverSet,
    employees: Sequence[Employee] = (),
) -> frozenset[str]:
    """Resolve ``approvers`` to the set of user ids they designate.

    Args:
        approvers: The level's approver references.
        employees: Current directory snapshot; inactive entries are ignored.

    Returns:
        Concrete user ids.  Empty when nothing matches.
    """
    if isinstance(approvers, UserApprovers):
        return frozenset(approvers.user_ids)

    return frozenset(
        employee.employee_id
        for employee in employees
        if employee.is_active
        and any(role_matches(ref, employee.role_names) for ref in approvers.role_names)
    )


def resolve_reference(
    reference: str,
    approvers: ApproverSet,
    employees: Sequence[Employee] = (),
) -> tuple[str, ...]:
    """Resolve one reference under ``approvers``' interpretation.

    Keeps directory order so per-reference fan-out is deterministic.
    """
    if isinstance(approvers, UserApprovers):
        return (reference,)
    return tuple(
        employee.employee_id
        for employee in employees
        if employee.is_active and role_matches(reference, employee.role_names)
    )


def actor_matches(approvers: ApproverSet, actor: Actor) -> bool:
    """Identity check of one actor, without materializing the whole set."""
    if isinstance(approvers, UserApprovers):
        return actor.actor_id in approvers.user_ids
    if isinstance(approvers, RoleApprovers):
        return any(role_matches(ref, actor.role_names) for ref in approvers.role_names)
    return False
