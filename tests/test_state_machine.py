from datetime import timedelta

import pytest

from studentleave.core.errors import ErrorKind, LeaveError, LeaveEvent
from studentleave.models.leave import LeaveRequest, LeaveStatus, LeaveType
from studentleave.services.state_machine import (
    apply_transition,
    can_transition,
    next_status,
)
from tests.conftest import NOW, TODAY, days_from_today


def make_leave(status: LeaveStatus, start_in_days: int = 3) -> LeaveRequest:
    return LeaveRequest(
        id=1,
        student_id="CS2021001",
        leave_type=LeaveType.FAMILY,
        start_date=days_from_today(start_in_days),
        end_date=days_from_today(start_in_days + 1),
        reason="sister's graduation ceremony",
        status=status,
        created_at=NOW - timedelta(days=5),
        updated_at=NOW - timedelta(days=5),
    )


@pytest.mark.parametrize(
    "event, target",
    [
        (LeaveEvent.APPROVE, LeaveStatus.APPROVED),
        (LeaveEvent.REJECT, LeaveStatus.REJECTED),
        (LeaveEvent.CANCEL, LeaveStatus.CANCELLED),
    ],
)
def test_pending_transitions(event, target):
    assert next_status(make_leave(LeaveStatus.PENDING), event, TODAY) is target


@pytest.mark.parametrize(
    "status", [LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED]
)
@pytest.mark.parametrize("event", [LeaveEvent.APPROVE, LeaveEvent.REJECT])
def test_decisions_only_from_pending(status, event):
    with pytest.raises(LeaveError) as exc_info:
        next_status(make_leave(status), event, TODAY)

    error = exc_info.value
    assert error.kind is ErrorKind.INVALID_TRANSITION
    assert error.current_status is status
    assert error.event is event


@pytest.mark.parametrize("status", [LeaveStatus.REJECTED, LeaveStatus.CANCELLED])
def test_cancel_from_terminal_state_is_invalid(status):
    assert not can_transition(make_leave(status), LeaveEvent.CANCEL, TODAY)


@pytest.mark.parametrize(
    "start_in_days, allowed", [(1, True), (0, False), (-1, False)]
)
def test_cancel_approved_only_before_start(start_in_days, allowed):
    leave = make_leave(LeaveStatus.APPROVED, start_in_days=start_in_days)
    assert can_transition(leave, LeaveEvent.CANCEL, TODAY) is allowed


def test_approve_stamps_decision_fields():
    leave = make_leave(LeaveStatus.PENDING)

    previous = apply_transition(leave, LeaveEvent.APPROVE, NOW, "ADMIN003", "enjoy")

    assert previous is LeaveStatus.PENDING
    assert leave.status is LeaveStatus.APPROVED
    assert leave.approved_by == "ADMIN003"
    assert leave.admin_comment == "enjoy"
    assert leave.decided_at == NOW
    assert leave.updated_at == NOW


def test_cancel_only_touches_status_and_updated_at():
    leave = make_leave(LeaveStatus.PENDING)

    apply_transition(leave, LeaveEvent.CANCEL, NOW, "CS2021001", "ignored")

    assert leave.status is LeaveStatus.CANCELLED
    assert leave.updated_at == NOW
    assert leave.approved_by is None
    assert leave.admin_comment is None
    assert leave.decided_at is None


def test_failed_transition_leaves_request_untouched():
    leave = make_leave(LeaveStatus.REJECTED)
    before = leave.model_dump()

    with pytest.raises(LeaveError):
        apply_transition(leave, LeaveEvent.APPROVE, NOW, "ADMIN003")

    assert leave.model_dump() == before


def test_status_display_names():
    assert LeaveStatus.PENDING.display_name == "Pending Approval"
    assert LeaveStatus.CANCELLED.display_name == "Cancelled"
    assert LeaveType.SICK.display_name == "Sick Leave"
    assert LeaveType.OTHER.display_name == "Other"
    assert not LeaveStatus.PENDING.is_terminal
    assert LeaveStatus.APPROVED.is_terminal
