"""
Leave reports computed over the repository.

Summaries by status and category, per-student reports, pending
approvals grouped by how soon the leave starts, date-range queries,
monthly summaries and month-by-month trends per leave type.
"""

from calendar import monthrange
from collections import Counter, defaultdict
from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel

from studentleave.core.clock import Clock, SystemClock, today
from studentleave.core.config import Settings, settings
from studentleave.core.errors import LeaveError, ValidationKind
from studentleave.models.leave import LeaveRequest, LeaveStatus, LeaveType
from studentleave.schemas.leave import LeaveSummary
from studentleave.services.repository import LeaveRepository
from studentleave.services.rules import ranges_overlap


def summarize(leaves: Iterable[LeaveRequest]) -> LeaveSummary:
    counts = Counter(leave.status for leave in leaves)
    return LeaveSummary(
        total_leaves=sum(counts.values()),
        pending_leaves=counts[LeaveStatus.PENDING],
        approved_leaves=counts[LeaveStatus.APPROVED],
        rejected_leaves=counts[LeaveStatus.REJECTED],
        cancelled_leaves=counts[LeaveStatus.CANCELLED],
    )


class StudentLeaveReport(BaseModel):
    student_id: str
    summary: LeaveSummary
    approved_days: int
    by_type: dict[LeaveType, int]
    leaves: list[LeaveRequest]


class PendingApprovals(BaseModel):
    """Pending leaves grouped by how soon they start, each group oldest first."""

    total: int
    urgent: list[LeaveRequest]
    soon: list[LeaveRequest]
    normal: list[LeaveRequest]


class MonthlyTypeRow(BaseModel):
    application_date: date
    leave_type: LeaveType
    applications: int
    approved: int
    approved_days: int


class MonthlyReport(BaseModel):
    """Applications made during one calendar month."""

    year: int
    month: int
    rows: list[MonthlyTypeRow]
    total_applications: int
    total_approved: int
    total_approved_days: int
    approval_rate: float  # Percent, one decimal


class TrendPoint(BaseModel):
    year: int
    month: int
    leave_type: LeaveType
    count: int
    average_duration: float


def months_before(day: date, months: int) -> date:
    """Same day ``months`` calendar months earlier, clamped to the month end."""
    index = day.year * 12 + day.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, monthrange(year, month)[1]))


class LeaveReportService:
    def __init__(
        self,
        repository: LeaveRepository,
        clock: Clock | None = None,
        config: Settings = settings,
    ):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.urgent_window_days = config.URGENT_WINDOW_DAYS
        self.soon_window_days = config.SOON_WINDOW_DAYS

    def summary(self) -> LeaveSummary:
        return summarize(self.repository.query_all())

    def count_by_type(self, status: LeaveStatus | None = None) -> dict[LeaveType, int]:
        leaves = (
            self.repository.query_all()
            if status is None
            else self.repository.query_by_status(status)
        )
        return dict(Counter(leave.leave_type for leave in leaves))

    def student_report(self, student_id: str) -> StudentLeaveReport:
        leaves = self.repository.query_by_student(student_id)
        approved = [leave for leave in leaves if leave.status == LeaveStatus.APPROVED]
        return StudentLeaveReport(
            student_id=student_id,
            summary=summarize(leaves),
            approved_days=sum(leave.duration_days for leave in approved),
            by_type=dict(Counter(leave.leave_type for leave in leaves)),
            leaves=leaves,
        )

    def pending_approvals(self) -> PendingApprovals:
        current = today(self.clock)
        urgent, soon, normal = [], [], []

        for leave in self.repository.query_by_status(LeaveStatus.PENDING):
            days_until_start = (leave.start_date - current).days
            if days_until_start <= self.urgent_window_days:
                urgent.append(leave)
            elif days_until_start <= self.soon_window_days:
                soon.append(leave)
            else:
                normal.append(leave)

        return PendingApprovals(
            total=len(urgent) + len(soon) + len(normal),
            urgent=urgent,
            soon=soon,
            normal=normal,
        )

    def active_leaves(self, on: date | None = None) -> list[LeaveRequest]:
        """Approved leaves covering ``on`` (default today), by start date."""
        day = on or today(self.clock)
        leaves = [
            leave
            for leave in self.repository.query_by_status(LeaveStatus.APPROVED)
            if leave.start_date <= day <= leave.end_date
        ]
        return sorted(leaves, key=lambda leave: leave.start_date)

    def leaves_between(self, start_date: date, end_date: date) -> list[LeaveRequest]:
        """All leaves sharing at least one day with the range, by start date."""
        if end_date < start_date:
            raise LeaveError.invalid(
                ValidationKind.INVALID_DATE_RANGE,
                "End date cannot be before start date",
                field="end_date",
            )
        leaves = [
            leave
            for leave in self.repository.query_all()
            if ranges_overlap(start_date, end_date, leave.start_date, leave.end_date)
        ]
        return sorted(leaves, key=lambda leave: leave.start_date)

    def monthly_summary(self, year: int, month: int) -> MonthlyReport:
        """
        Applications created in the given month, grouped by day and type.

        Rows are newest day first, then by leave type. Approved days count
        the inclusive duration of leaves currently approved.

        Raises:
            LeaveError: validation error when month is not 1-12
        """
        if not 1 <= month <= 12:
            raise LeaveError.invalid(
                ValidationKind.INVALID_DATE_RANGE,
                "Month must be between 1 and 12",
                field="month",
            )

        groups: dict[tuple[date, LeaveType], list[LeaveRequest]] = defaultdict(list)
        for leave in self.repository.query_all():
            created = leave.created_at.date()
            if created.year == year and created.month == month:
                groups[(created, leave.leave_type)].append(leave)

        rows = []
        for (day, leave_type), leaves in groups.items():
            approved = [leave for leave in leaves if leave.status == LeaveStatus.APPROVED]
            rows.append(
                MonthlyTypeRow(
                    application_date=day,
                    leave_type=leave_type,
                    applications=len(leaves),
                    approved=len(approved),
                    approved_days=sum(leave.duration_days for leave in approved),
                )
            )
        rows.sort(key=lambda row: row.leave_type.value)
        rows.sort(key=lambda row: row.application_date, reverse=True)

        total_applications = sum(row.applications for row in rows)
        total_approved = sum(row.approved for row in rows)
        rate = total_approved * 100 / total_applications if total_applications else 0.0
        return MonthlyReport(
            year=year,
            month=month,
            rows=rows,
            total_applications=total_applications,
            total_approved=total_approved,
            total_approved_days=sum(row.approved_days for row in rows),
            approval_rate=round(rate, 1),
        )

    def trend(self, months: int = 12) -> list[TrendPoint]:
        """
        Leave counts and average duration per month and type for
        applications created within the last ``months`` months.
        Newest month first, then by leave type.
        """
        since = months_before(today(self.clock), months)

        groups: dict[tuple[int, int, LeaveType], list[int]] = defaultdict(list)
        for leave in self.repository.query_all():
            created = leave.created_at.date()
            if created >= since:
                key = (created.year, created.month, leave.leave_type)
                groups[key].append(leave.duration_days)

        points = [
            TrendPoint(
                year=year,
                month=month,
                leave_type=leave_type,
                count=len(durations),
                average_duration=round(sum(durations) / len(durations), 1),
            )
            for (year, month, leave_type), durations in groups.items()
        ]
        points.sort(key=lambda point: point.leave_type.value)
        points.sort(key=lambda point: (point.year, point.month), reverse=True)
        return points
