"""
Tests for IdentityResolver and NotificationDispatcher.

Covers:
- Fan-out to every resolved recipient, Users and Roles
- Deduplication on (default) and off
- Delivery failures are logged and reported, never raised
- The resolver reads the directory on every call
"""

import pytest

from fieldflow_kernel.domain.directory import Employee
from fieldflow_kernel.domain.notification import NotificationDirective, NotificationKind
from fieldflow_kernel.domain.workflow import RoleApprovers, UserApprovers
from fieldflow_kernel.services import SqlDirectoryService, SqlNotificationInbox
from fieldflow_services import IdentityResolver, NotificationDispatcher
from tests.builders import make_actor


class StaticDirectory:
    def __init__(self, employees):
        self.employees = list(employees)
        self.calls = 0

    def list_active_employees(self):
        self.calls += 1
        return [e for e in self.employees if e.is_active]


class RecordingInbox:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.appended = []

    def append(self, recipient_id, kind, title, body, link):
        if recipient_id in self.fail_for:
            raise RuntimeError(f"inbox unavailable for {recipient_id}")
        self.appended.append((recipient_id, kind, title))

    def list_unread(self, user_id):
        return [a for a in self.appended if a[0] == user_id]

    def mark_read(self, notification_id):
        pass


class BrokenDirectory:
    def list_active_employees(self):
        raise RuntimeError("directory offline")


@pytest.fixture
def directory(employees):
    return StaticDirectory(employees)


def _dispatcher(directory, inbox, **kw):
    return NotificationDispatcher(IdentityResolver(directory), inbox, **kw)


class TestIdentityResolver:
    def test_reads_directory_each_call(self, directory):
        resolver = IdentityResolver(directory)
        resolver.resolve(RoleApprovers(("PM",)))
        resolver.resolve(RoleApprovers(("PM",)))
        assert directory.calls == 2

    def test_users_skip_directory(self, directory):
        assert IdentityResolver(directory).resolve(UserApprovers(("u1",))) == {"u1"}
        assert directory.calls == 0

    def test_follows_directory_changes(self, directory):
        resolver = IdentityResolver(directory)
        assert resolver.resolve(RoleApprovers(("PM",))) == {"e-pm"}
        directory.employees.append(Employee("e-pm2", "New PM", job_title="PM"))
        assert resolver.resolve(RoleApprovers(("PM",))) == {"e-pm", "e-pm2"}

    def test_empty_role_resolution_logged(self, directory, captured_logs):
        assert IdentityResolver(directory).resolve(RoleApprovers(("Inspector",))) == frozenset()
        assert any(r["message"] == "role_level_resolved_empty" for r in captured_logs())

    def test_resolve_each(self, directory):
        pairs = IdentityResolver(directory).resolve_each(RoleApprovers(("PM", "Admin")))
        assert pairs == [("PM", ("e-pm",)), ("Admin", ("e-admin",))]

    def test_matches(self, directory):
        resolver = IdentityResolver(directory)
        assert resolver.matches(RoleApprovers(("pm",)), make_actor("x", job_title="PM"))


class TestDispatch:
    def test_user_fan_out(self, directory):
        inbox = RecordingInbox()
        report = _dispatcher(directory, inbox).notify(
            UserApprovers(("u1", "u2")), "Title", "Body", "/x",
        )
        assert report.recipients == ("u1", "u2")
        assert report.delivered == 2
        assert [a[0] for a in inbox.appended] == ["u1", "u2"]

    def test_role_fan_out(self, directory):
        inbox = RecordingInbox()
        report = _dispatcher(directory, inbox).notify(
            RoleApprovers(("Supervisor",)), "Title", "Body", "/x",
        )
        assert set(report.recipients) == {"e-sup1", "e-sup2"}

    def test_deduplicates_by_default(self, directory):
        inbox = RecordingInbox()
        # e-admin matches both references through the super-admin alias
        report = _dispatcher(directory, inbox).notify(
            RoleApprovers(("Admin", "super-admin")), "Title", "Body", "/x",
        )
        assert report.recipients == ("e-admin",)

    def test_duplicates_without_dedup(self, directory):
        inbox = RecordingInbox()
        report = _dispatcher(directory, inbox, deduplicate=False).notify(
            RoleApprovers(("Admin", "super-admin")), "Title", "Body", "/x",
        )
        assert report.recipients == ("e-admin", "e-admin")
        assert len(inbox.appended) == 2

    def test_dispatch_directives(self, directory):
        inbox = RecordingInbox()
        directives = [
            NotificationDirective(UserApprovers(("u1",)), "A", "a", "/a"),
            NotificationDirective(UserApprovers(("u2",)), "B", "b", "/b", NotificationKind.WARNING),
        ]
        reports = _dispatcher(directory, inbox).dispatch(directives)
        assert [r.title for r in reports] == ["A", "B"]
        assert inbox.appended[1] == ("u2", NotificationKind.WARNING, "B")

    def test_unresolvable_role_delivers_nothing(self, directory):
        inbox = RecordingInbox()
        report = _dispatcher(directory, inbox).notify(RoleApprovers(("Inspector",)), "T", "B", "/x")
        assert report.delivered == 0
        assert inbox.appended == []


class TestFailures:
    def test_failed_recipient_logged_not_raised(self, directory, captured_logs):
        inbox = RecordingInbox(fail_for={"u1"})
        report = _dispatcher(directory, inbox).notify(
            UserApprovers(("u1", "u2")), "Title", "Body", "/x",
        )
        assert report.failed == ("u1",)
        assert report.recipients == ("u2",)

        logs = captured_logs()
        failure = next(r for r in logs if r["message"] == "notification_delivery_failed")
        assert failure["recipient_id"] == "u1"
        assert failure["exc_type"] == "RuntimeError"

    def test_resolution_failure_logged_not_raised(self, captured_logs):
        inbox = RecordingInbox()
        report = _dispatcher(BrokenDirectory(), inbox).notify(
            RoleApprovers(("PM",)), "Title", "Body", "/x",
        )
        assert report.resolution_failed
        assert report.delivered == 0
        assert any(r["message"] == "notification_resolution_failed" for r in captured_logs())


class TestSqlCollaborators:
    def test_dispatch_into_sql_inbox(self, session, employees, deterministic_clock):
        directory = SqlDirectoryService(session)
        for employee in employees:
            directory.upsert(employee)
        inbox = SqlNotificationInbox(session, deterministic_clock)

        report = _dispatcher(directory, inbox).notify(
            RoleApprovers(("Supervisor",)), "Title", "Body", "/x",
        )
        assert set(report.recipients) == {"e-sup1", "e-sup2"}
        assert inbox.unread_count("e-sup1") == 1
        assert inbox.unread_count("e-gone") == 0

    def test_deactivated_employee_stops_resolving(self, session, employees):
        directory = SqlDirectoryService(session)
        for employee in employees:
            directory.upsert(employee)
        resolver = IdentityResolver(directory)
        assert "e-sup2" in resolver.resolve(RoleApprovers(("Supervisor",)))

        assert directory.deactivate("e-sup2")
        assert resolver.resolve(RoleApprovers(("Supervisor",))) == {"e-sup1"}
        assert not directory.deactivate("nobody")
