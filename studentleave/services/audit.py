"""
Append-only audit log of leave transitions.
"""

from datetime import datetime
from typing import Protocol

from studentleave.models.history import HistoryAction, HistoryEntry
from studentleave.models.leave import LeaveRequest, LeaveStatus


class HistoryStore(Protocol):
    def append_history(self, entry: HistoryEntry) -> HistoryEntry: ...

    def save_with_history(
        self, leave: LeaveRequest, entry: HistoryEntry
    ) -> tuple[LeaveRequest, HistoryEntry]: ...

    def list_history(self, leave_id: int) -> list[HistoryEntry]: ...


class AuditLog:
    """
    Ordered history per leave id. Insertion order is chronological order;
    entries are never changed or removed once appended.
    """

    def __init__(self, store: HistoryStore):
        self.store = store

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        return self.store.append_history(entry)

    def commit(
        self,
        leave: LeaveRequest,
        action: HistoryAction,
        old_status: LeaveStatus | None,
        performed_by: str,
        performed_at: datetime,
        comment: str | None = None,
    ) -> tuple[LeaveRequest, HistoryEntry]:
        """
        Store ``leave`` in its new status together with the entry recording
        how it got there. Nothing is written when either part fails.
        """
        entry = HistoryEntry(
            leave_id=leave.id,
            action=action,
            old_status=old_status,
            new_status=leave.status,
            performed_by=performed_by,
            comment=comment,
            performed_at=performed_at,
        )
        return self.store.save_with_history(leave, entry)

    def list_for(self, leave_id: int) -> list[HistoryEntry]:
        return self.store.list_history(leave_id)
