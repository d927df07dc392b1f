"""
Leave request database model and its enumerations.
"""

from datetime import date, datetime
from enum import Enum

from sqlmodel import Field, SQLModel


class LeaveType(str, Enum):
    """Leave categories a student can apply for."""

    SICK = "sick"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    MEDICAL = "medical"
    FAMILY = "family"
    ACADEMIC = "academic"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        if self is LeaveType.OTHER:
            return "Other"
        return f"{self.value.capitalize()} Leave"


class LeaveStatus(str, Enum):
    """Lifecycle states. Everything except PENDING is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def display_name(self) -> str:
        if self is LeaveStatus.PENDING:
            return "Pending Approval"
        return self.value.capitalize()

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING


class LeaveRequest(SQLModel, table=True):
    """
    A student's leave application.

    Created PENDING by the student; status, admin_comment, approved_by and
    decided_at are only changed by the lifecycle service. Rows are never
    deleted.
    """

    __tablename__ = "leaves"

    id: int | None = Field(default=None, primary_key=True)
    student_id: str = Field(index=True, max_length=20)
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus = Field(default=LeaveStatus.PENDING, index=True)
    admin_comment: str | None = None
    approved_by: str | None = Field(default=None, max_length=20)
    created_at: datetime
    updated_at: datetime
    decided_at: datetime | None = None

    @property
    def duration_days(self) -> int:
        """Inclusive number of days covered by the leave."""
        return (self.end_date - self.start_date).days + 1

    def copy_detached(self) -> "LeaveRequest":
        """Return an unattached copy carrying the same field values."""
        return LeaveRequest(**self.model_dump())
