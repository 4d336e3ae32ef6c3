"""Tests for SqlNotificationInbox."""

from uuid import uuid4

import pytest

from fieldflow_kernel.domain.notification import NotificationKind
from fieldflow_kernel.exceptions import NotificationNotFoundError
from fieldflow_kernel.services import SqlNotificationInbox


@pytest.fixture
def inbox(session, deterministic_clock):
    return SqlNotificationInbox(session, deterministic_clock)


def _append(inbox, clock, recipient="u1", title="New Timesheet Pending Approval"):
    clock.advance(1)
    return inbox.append(recipient, NotificationKind.APPROVAL, title, "body", "/forms/timesheet/ts-1")


class TestAppend:
    def test_append_returns_unread_notification(self, inbox, deterministic_clock):
        notification = _append(inbox, deterministic_clock)
        assert notification.notification_id
        assert notification.recipient_id == "u1"
        assert notification.kind == NotificationKind.APPROVAL
        assert not notification.is_read

    def test_failed_append_keeps_earlier_rows(self, inbox, deterministic_clock):
        _append(inbox, deterministic_clock)
        with pytest.raises(ValueError):
            inbox.append("u1", "bogus", "t", "b", "/x")
        assert inbox.unread_count("u1") == 1
        _append(inbox, deterministic_clock, title="after")
        assert inbox.unread_count("u1") == 2


class TestQueries:
    def test_list_unread_newest_first(self, inbox, deterministic_clock):
        _append(inbox, deterministic_clock, title="first")
        _append(inbox, deterministic_clock, title="second")
        _append(inbox, deterministic_clock, recipient="u2", title="other")

        assert [n.title for n in inbox.list_unread("u1")] == ["second", "first"]
        assert inbox.unread_count("u1") == 2
        assert inbox.unread_count("u2") == 1
        assert inbox.list_unread("nobody") == []

    def test_list_for_user_includes_read(self, inbox, deterministic_clock):
        first = _append(inbox, deterministic_clock, title="first")
        _append(inbox, deterministic_clock, title="second")
        inbox.mark_read(first.notification_id)

        assert [n.title for n in inbox.list_for_user("u1")] == ["second", "first"]
        assert [n.title for n in inbox.list_for_user("u1", limit=1)] == ["second"]
        assert [n.title for n in inbox.list_unread("u1")] == ["second"]


class TestStateChanges:
    def test_mark_read(self, inbox, deterministic_clock):
        notification = _append(inbox, deterministic_clock)
        inbox.mark_read(notification.notification_id)
        assert inbox.unread_count("u1") == 0
        # Idempotent
        inbox.mark_read(notification.notification_id)

    def test_mark_all_read(self, inbox, deterministic_clock):
        for _ in range(3):
            _append(inbox, deterministic_clock)
        _append(inbox, deterministic_clock, recipient="u2")

        assert inbox.mark_all_read("u1") == 3
        assert inbox.unread_count("u1") == 0
        assert inbox.unread_count("u2") == 1
        assert inbox.mark_all_read("u1") == 0

    def test_delete(self, inbox, deterministic_clock):
        notification = _append(inbox, deterministic_clock)
        inbox.delete(notification.notification_id)
        assert inbox.list_for_user("u1") == []

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", str(uuid4())])
    def test_unknown_id(self, inbox, bad_id):
        with pytest.raises(NotificationNotFoundError):
            inbox.mark_read(bad_id)
        with pytest.raises(NotificationNotFoundError):
            inbox.delete(bad_id)
