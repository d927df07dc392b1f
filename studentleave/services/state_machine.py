"""
Leave lifecycle state machine.

Only PENDING has outgoing transitions, apart from cancelling an approved
leave that has not started yet.
"""

from datetime import date, datetime

from studentleave.core.errors import LeaveError, LeaveEvent
from studentleave.models.history import HistoryAction
from studentleave.models.leave import LeaveRequest, LeaveStatus

TRANSITIONS: dict[tuple[LeaveStatus, LeaveEvent], LeaveStatus] = {
    (LeaveStatus.PENDING, LeaveEvent.APPROVE): LeaveStatus.APPROVED,
    (LeaveStatus.PENDING, LeaveEvent.REJECT): LeaveStatus.REJECTED,
    (LeaveStatus.PENDING, LeaveEvent.CANCEL): LeaveStatus.CANCELLED,
    (LeaveStatus.APPROVED, LeaveEvent.CANCEL): LeaveStatus.CANCELLED,
}

EVENT_ACTIONS = {
    LeaveEvent.APPROVE: HistoryAction.APPROVED,
    LeaveEvent.REJECT: HistoryAction.REJECTED,
    LeaveEvent.CANCEL: HistoryAction.CANCELLED,
}


def next_status(leave: LeaveRequest, event: LeaveEvent, today: date) -> LeaveStatus:
    """
    Resolve the target status of ``event`` for ``leave``.

    Raises:
        LeaveError: invalid transition from the current status
    """
    target = TRANSITIONS.get((leave.status, event))
    if target is None:
        raise LeaveError.invalid_transition(leave.status, event, leave.id)

    # An approved leave can only be withdrawn before its first day
    if leave.status is LeaveStatus.APPROVED and not leave.start_date > today:
        raise LeaveError.invalid_transition(leave.status, event, leave.id)

    return target


def can_transition(leave: LeaveRequest, event: LeaveEvent, today: date) -> bool:
    try:
        next_status(leave, event, today)
    except LeaveError:
        return False
    return True


def apply_transition(
    leave: LeaveRequest,
    event: LeaveEvent,
    now: datetime,
    actor_id: str,
    comment: str | None = None,
) -> LeaveStatus:
    """
    Move ``leave`` to its next status in place and return the prior status.

    approve/reject stamp the decision fields; cancel only touches status
    and updated_at.
    """
    target = next_status(leave, event, now.date())
    previous = leave.status

    leave.status = target
    leave.updated_at = now
    if event in (LeaveEvent.APPROVE, LeaveEvent.REJECT):
        leave.approved_by = actor_id
        leave.admin_comment = comment
        leave.decided_at = now

    return previous
