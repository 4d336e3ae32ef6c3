"""
Hypothesis-based property tests for the approval engines.

Properties checked:
- An N-level ANY workflow approved level by level ends APPROVED with one
  history entry per level, and the level only ever moves up by one.
- A rejection at any level followed by resubmission restarts at Level 1
  and never shrinks the history.
- renumber_levels always yields contiguous numbering and keeps order.
- actor_matches agrees with membership in resolve_approvers for arbitrary
  directories and role references, including case variations.
- Random registry level edits keep a workflow contiguous.
"""

from datetime import datetime, timezone

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from fieldflow_engines.approval import approve, reject, submit
from fieldflow_engines.identity import actor_matches, resolve_approvers
from fieldflow_kernel.domain.directory import Actor, Employee
from fieldflow_kernel.domain.record import ApprovalStatus
from fieldflow_kernel.domain.workflow import (
    LevelType,
    RoleApprovers,
    new_level,
    renumber_levels,
)
from fieldflow_kernel.services import InMemoryWorkflowRepository, WorkflowRegistry
from tests.builders import make_actor, make_level, make_record, make_workflow

AT = datetime(2025, 3, 3, 7, 0, tzinfo=timezone.utc)

ROLE_WORDS = ["Admin", "super-admin", "PM", "pm", "Supervisor", "SUPERVISOR", "Lead", "Worker"]

level_counts = st.integers(min_value=1, max_value=8)

employee_strategy = st.builds(
    Employee,
    employee_id=st.text(alphabet="abcdef0123", min_size=1, max_size=6),
    display_name=st.just("Someone"),
    job_title=st.sampled_from(ROLE_WORDS + [""]),
    app_role=st.one_of(st.none(), st.sampled_from(ROLE_WORDS)),
    is_active=st.booleans(),
)


def _user_workflow(n: int):
    return make_workflow(*(make_level(i, (f"u{i}",)) for i in range(1, n + 1)))


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(n=level_counts)
def test_full_approval_walk(n):
    workflow = _user_workflow(n)
    record = submit(make_record(), workflow).record

    for expected_level in range(1, n + 1):
        assert record.status == ApprovalStatus.PENDING_APPROVAL
        assert record.approval_level == expected_level
        record = approve(record, workflow, make_actor(f"u{expected_level}"), at=AT).record

    assert record.status == ApprovalStatus.APPROVED
    assert [entry.level for entry in record.approval_history] == list(range(1, n + 1))


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(data=st.data(), n=level_counts)
def test_rejection_restarts_at_level_one(data, n):
    workflow = _user_workflow(n)
    reject_at = data.draw(st.integers(min_value=1, max_value=n))
    record = submit(make_record(), workflow).record
    for level in range(1, reject_at):
        record = approve(record, workflow, make_actor(f"u{level}"), at=AT).record

    rejected = reject(record, workflow, make_actor(f"u{reject_at}"), at=AT, reason="redo").record
    assert rejected.status == ApprovalStatus.REJECTED
    assert len(rejected.approval_history) == reject_at

    resubmitted = submit(rejected, workflow).record
    assert resubmitted.approval_level == 1
    assert resubmitted.approval_history == rejected.approval_history


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(numbers=st.lists(st.integers(min_value=-5, max_value=50), max_size=10))
def test_renumber_levels_contiguous(numbers):
    levels = [make_level(n, (f"r{i}",)) for i, n in enumerate(numbers)]
    renumbered = renumber_levels(levels)
    assert [level.level_number for level in renumbered] == list(range(1, len(levels) + 1))
    assert [level.approver_ids for level in renumbered] == [level.approver_ids for level in levels]


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(
    employees=st.lists(employee_strategy, max_size=12, unique_by=lambda e: e.employee_id),
    references=st.lists(st.sampled_from(ROLE_WORDS), min_size=1, max_size=3),
)
def test_actor_matches_agrees_with_resolution(employees, references):
    approvers = RoleApprovers(tuple(references))
    resolved = resolve_approvers(approvers, employees)
    for employee in employees:
        matched = actor_matches(approvers, Actor.from_employee(employee))
        if employee.is_active:
            assert matched == (employee.employee_id in resolved)
        else:
            assert employee.employee_id not in resolved


@settings(
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    max_examples=50,
)
@given(
    n=st.integers(min_value=1, max_value=5),
    edits=st.lists(
        st.tuples(
            st.sampled_from(["up", "down", "remove", "add"]),
            st.integers(min_value=1, max_value=6),
        ),
        max_size=12,
    ),
)
def test_registry_edits_keep_levels_contiguous(n, edits):
    registry = WorkflowRegistry(InMemoryWorkflowRepository())
    workflow = registry.create_workflow(
        "Fuzzed",
        levels=[new_level(LevelType.USERS, references=(f"u{i}",)) for i in range(n)],
        is_active=False,
    )
    for op, level_number in edits:
        count = len(registry.get_workflow(workflow.workflow_id).levels)
        if op == "add":
            registry.add_level(workflow.workflow_id, references=("new",))
        elif level_number <= count:
            if op == "remove":
                registry.remove_level(workflow.workflow_id, level_number)
            else:
                registry.move_level(workflow.workflow_id, level_number, op)

        current = registry.get_workflow(workflow.workflow_id)
        assert current.has_contiguous_levels()
