"""
Tests for fieldflow_engines.identity -- approver resolution.

Covers:
- Users levels pass ids through without a directory
- Role levels match app roles and job titles case-insensitively
- The super-admin / Admin alias
- Inactive employees never resolve
- actor_matches agrees with membership in the resolved set
"""

import pytest

from fieldflow_engines.identity import (
    actor_matches,
    resolve_approvers,
    resolve_reference,
    role_matches,
)
from fieldflow_kernel.domain.directory import Actor
from fieldflow_kernel.domain.workflow import RoleApprovers, UserApprovers
from tests.builders import make_actor


class TestResolveUsers:
    def test_ids_pass_through(self):
        assert resolve_approvers(UserApprovers(("u1", "u2"))) == {"u1", "u2"}

    def test_unknown_ids_pass_through(self, employees):
        assert resolve_approvers(UserApprovers(("nobody",)), employees) == {"nobody"}

    def test_empty(self):
        assert resolve_approvers(UserApprovers()) == frozenset()


class TestResolveRoles:
    def test_job_title_match(self, employees):
        assert resolve_approvers(RoleApprovers(("Supervisor",)), employees) == {"e-sup1", "e-sup2"}

    def test_case_insensitive(self, employees):
        assert resolve_approvers(RoleApprovers(("pm",)), employees) == {"e-pm"}
        assert resolve_approvers(RoleApprovers(("PM",)), employees) == {"e-pm"}

    def test_app_role_match(self, employees):
        assert "e-admin" in resolve_approvers(RoleApprovers(("super-admin",)), employees)

    def test_admin_alias_both_ways(self, employees):
        assert resolve_approvers(RoleApprovers(("Admin",)), employees) == {"e-admin"}
        assert resolve_approvers(RoleApprovers(("super-admin",)), employees) == {"e-admin"}

    def test_inactive_excluded(self, employees):
        assert "e-gone" not in resolve_approvers(RoleApprovers(("Supervisor",)), employees)

    def test_unmatched_role_resolves_empty(self, employees):
        assert resolve_approvers(RoleApprovers(("Inspector",)), employees) == frozenset()

    def test_union_over_roles(self, employees):
        resolved = resolve_approvers(RoleApprovers(("PM", "Worker")), employees)
        assert resolved == {"e-pm", "e-worker"}

    def test_resolve_reference_keeps_directory_order(self, employees):
        approvers = RoleApprovers(("Supervisor",))
        assert resolve_reference("Supervisor", approvers, employees) == ("e-sup1", "e-sup2")

    def test_resolve_reference_users(self):
        assert resolve_reference("u1", UserApprovers(("u1",))) == ("u1",)


class TestRoleMatches:
    @pytest.mark.parametrize(
        "reference, roles, expected",
        [
            ("PM", ("pm",), True),
            ("Supervisor", ("supervisor", "Supervisor"), True),
            ("Admin", ("super-admin",), True),
            ("super-admin", ("Admin",), True),
            ("Lead", ("Worker",), False),
            ("Lead", ("",), False),
            (" pm ", ("PM",), True),
        ],
    )
    def test_matching(self, reference, roles, expected):
        assert role_matches(reference, roles) is expected


class TestActorMatches:
    def test_user_level(self):
        approvers = UserApprovers(("u1",))
        assert actor_matches(approvers, make_actor("u1"))
        assert not actor_matches(approvers, make_actor("u2"))

    def test_role_level_by_job_title(self):
        assert actor_matches(RoleApprovers(("PM",)), make_actor("x", job_title="pm"))

    def test_role_level_by_app_role(self):
        assert actor_matches(RoleApprovers(("Admin",)), make_actor("x", app_role="super-admin"))

    def test_role_level_rejects_other_roles(self):
        assert not actor_matches(RoleApprovers(("PM",)), make_actor("x", job_title="Worker"))

    def test_agrees_with_resolution(self, employees):
        approvers = RoleApprovers(("Supervisor", "Admin"))
        resolved = resolve_approvers(approvers, employees)
        for employee in employees:
            if employee.is_active:
                assert actor_matches(approvers, Actor.from_employee(employee)) == (
                    employee.employee_id in resolved
                )
