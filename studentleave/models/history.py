"""
Audit trail records for leave transitions.

``HistoryEntry`` is the immutable value handed around by the service;
``LeaveHistory`` is its row in the ``leave_history`` table.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from sqlmodel import Field, SQLModel

from studentleave.models.leave import LeaveStatus


class HistoryAction(str, Enum):
    CREATED = "created"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class HistoryEntry(BaseModel):
    """One recorded transition of a leave request."""

    model_config = ConfigDict(frozen=True)

    leave_id: int | None = None  # Assigned when a new leave is stored with it
    action: HistoryAction
    old_status: LeaveStatus | None = None
    new_status: LeaveStatus
    performed_by: str
    comment: str | None = None
    performed_at: datetime


class LeaveHistory(SQLModel, table=True):
    __tablename__ = "leave_history"

    history_id: int | None = Field(default=None, primary_key=True)
    leave_id: int = Field(foreign_key="leaves.id", index=True)
    action: HistoryAction
    old_status: LeaveStatus | None = None
    new_status: LeaveStatus
    performed_by: str = Field(max_length=20)
    comment: str | None = None
    performed_at: datetime

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "LeaveHistory":
        return cls(**entry.model_dump())

    def to_entry(self) -> HistoryEntry:
        return HistoryEntry(
            leave_id=self.leave_id,
            action=self.action,
            old_status=self.old_status,
            new_status=self.new_status,
            performed_by=self.performed_by,
            comment=self.comment,
            performed_at=self.performed_at,
        )
