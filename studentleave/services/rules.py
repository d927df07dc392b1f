"""
Business rule engine for leave applications.

Validation is a pure function of the candidate and the current time.
Overlap detection is delegated to a ``ConflictChecker``; the default
checker reports no conflicts.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Protocol

from studentleave.core.config import Settings, settings
from studentleave.core.errors import LeaveError, ValidationKind
from studentleave.models.leave import LeaveRequest, LeaveStatus
from studentleave.schemas.leave import LeaveApplication

# Statuses that still occupy the student's calendar
ACTIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


def calculate_leave_days(start_date: date, end_date: date) -> int:
    """
    Calculate the number of leave days between two dates.

    Args:
        start_date: Leave start date
        end_date: Leave end date

    Returns:
        Number of days (inclusive), 0 when the range is inverted
    """
    if end_date < start_date:
        return 0
    return (end_date - start_date).days + 1


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive date ranges share at least one day."""
    return a_start <= b_end and b_start <= a_end


@dataclass(frozen=True)
class LeaveRules:
    min_notice_days: int = 1
    max_duration_days: int = 30
    min_reason_length: int = 10

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "LeaveRules":
        return cls(
            min_notice_days=config.MIN_NOTICE_DAYS,
            max_duration_days=config.MAX_CONSECUTIVE_LEAVE_DAYS,
            min_reason_length=config.MIN_REASON_LENGTH,
        )


class ConflictChecker(Protocol):
    def find_conflicts(
        self, candidate: LeaveApplication, existing: Iterable[LeaveRequest]
    ) -> list[LeaveRequest]: ...


class NoConflictChecker:
    """Overlap detection is left unimplemented; nothing ever conflicts."""

    def find_conflicts(
        self, candidate: LeaveApplication, existing: Iterable[LeaveRequest]
    ) -> list[LeaveRequest]:
        return []


class DateOverlapChecker:
    """Report the student's pending or approved leaves sharing a day with the candidate."""

    def find_conflicts(
        self, candidate: LeaveApplication, existing: Iterable[LeaveRequest]
    ) -> list[LeaveRequest]:
        return [
            leave
            for leave in existing
            if leave.student_id == candidate.student_id
            and leave.status in ACTIVE_STATUSES
            and ranges_overlap(
                candidate.start_date,
                candidate.end_date,
                leave.start_date,
                leave.end_date,
            )
        ]


class LeaveRuleEngine:
    def __init__(
        self,
        rules: LeaveRules | None = None,
        conflict_checker: ConflictChecker | None = None,
    ):
        self.rules = rules or LeaveRules.from_settings()
        self.conflict_checker = conflict_checker or NoConflictChecker()

    def validate_application(self, candidate: LeaveApplication, now: datetime) -> None:
        """
        Validate a leave application, stopping at the first failing rule.

        Order: required fields, reason length, date order, advance notice,
        duration.

        Raises:
            LeaveError: validation error naming the failed rule
        """
        for field in ("student_id", "leave_type", "start_date", "end_date", "reason"):
            value = getattr(candidate, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise LeaveError.invalid(
                    ValidationKind.MISSING_FIELD, f"{field} is required", field=field
                )

        if len(candidate.reason.strip()) < self.rules.min_reason_length:
            raise LeaveError.invalid(
                ValidationKind.REASON_TOO_SHORT,
                f"Reason must be at least {self.rules.min_reason_length} characters long",
                field="reason",
            )

        if candidate.end_date < candidate.start_date:
            raise LeaveError.invalid(
                ValidationKind.INVALID_DATE_RANGE,
                "End date cannot be before start date",
                field="end_date",
            )

        earliest_start = now.date() + timedelta(days=self.rules.min_notice_days)
        if candidate.start_date < earliest_start:
            raise LeaveError.invalid(
                ValidationKind.START_DATE_TOO_SOON,
                f"Leave must be applied at least {self.rules.min_notice_days} day(s) in advance",
                field="start_date",
            )

        days = calculate_leave_days(candidate.start_date, candidate.end_date)
        if days > self.rules.max_duration_days:
            raise LeaveError.invalid(
                ValidationKind.DURATION_EXCEEDED,
                f"Leave duration cannot exceed {self.rules.max_duration_days} days",
                field="end_date",
            )

    def check_conflicts(
        self, candidate: LeaveApplication, existing: Iterable[LeaveRequest]
    ) -> None:
        """
        Ask the conflict checker about the student's other leaves.

        Raises:
            LeaveError: overlapping-leave validation error
        """
        conflicts = self.conflict_checker.find_conflicts(candidate, existing)
        if conflicts:
            ids = ", ".join(str(leave.id) for leave in conflicts)
            raise LeaveError.invalid(
                ValidationKind.OVERLAPPING_LEAVE,
                f"Leave overlaps existing leave(s): {ids}",
                field="start_date",
            )
