"""
Leave Pydantic schemas.
Defines the candidate application handed to the rule engine and the
request/response models of the leave API endpoints.
"""

from datetime import date, datetime

from sqlmodel import Field, SQLModel

from studentleave.models.leave import LeaveRequest, LeaveStatus, LeaveType


class LeaveApplication(SQLModel):
    """
    Candidate leave application.

    Every field is optional so that missing values reach the rule engine
    and are reported as a missing-field validation error rather than a
    schema error.
    """

    student_id: str | None = None
    leave_type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=1000)


class LeaveCreateSelf(SQLModel):
    """
    Schema for self-service leave creation.
    Student ID is populated from the authenticated token.
    """

    leave_type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=1000)

    def to_application(self, student_id: str) -> LeaveApplication:
        return LeaveApplication(student_id=student_id, **self.model_dump())


class LeaveApproveRequest(SQLModel):
    """
    Schema for approving a leave request.
    Approver ID is populated from the authenticated token.
    """

    comments: str | None = Field(default=None, max_length=500)


class LeaveRejectRequest(SQLModel):
    """
    Schema for rejecting a leave request.
    Rejection reason is required.
    """

    rejection_reason: str = Field(min_length=1, max_length=500)


class LeavePublic(SQLModel):
    """
    Schema for leave responses.
    Includes all fields returned to clients.
    """

    id: int
    student_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    admin_comment: str | None = None
    approved_by: str | None = None
    created_at: datetime
    updated_at: datetime
    decided_at: datetime | None = None
    days_count: int

    @classmethod
    def from_leave(cls, leave: LeaveRequest) -> "LeavePublic":
        return cls(**leave.model_dump(), days_count=leave.duration_days)


class LeaveSummary(SQLModel):
    """
    Schema for leave summary statistics.
    Used in dashboard and reporting endpoints.
    """

    total_leaves: int = 0
    pending_leaves: int = 0
    approved_leaves: int = 0
    rejected_leaves: int = 0
    cancelled_leaves: int = 0
