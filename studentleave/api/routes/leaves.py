"""
Student Leave Management - Leave Routes.

Thin HTTP adapter over the leave lifecycle service:
- Self-service endpoints for students
- Approval endpoints for admins (ACADEMIC_COORDINATOR and above)
- Review and reporting endpoints for any admin

Business rules live in the service; LeaveError values raised there are
turned into responses by the application's exception handler.
"""

from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from studentleave.api.dependencies import (
    LeaveServiceDep,
    ReportServiceDep,
    ReviewerDep,
    StudentDep,
)
from studentleave.core.logging import get_logger
from studentleave.core.permissions import can_view_leave, log_authorization_check
from studentleave.core.security import CurrentActor
from studentleave.models.history import HistoryEntry
from studentleave.models.leave import LeaveStatus, LeaveType
from studentleave.schemas.leave import (
    LeaveApproveRequest,
    LeaveCreateSelf,
    LeavePublic,
    LeaveRejectRequest,
    LeaveSummary,
)
from studentleave.services.reporting import (
    MonthlyReport,
    PendingApprovals,
    StudentLeaveReport,
    TrendPoint,
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/leaves",
    tags=["leaves"],
    responses={404: {"description": "Leave not found"}},
)


# ============================================================================
# SELF-SERVICE ENDPOINTS (Student Access)
# ============================================================================


@router.post("/me", response_model=LeavePublic, status_code=201)
def apply_for_leave(
    leave: LeaveCreateSelf,
    service: LeaveServiceDep,
    student: StudentDep,
):
    """
    Submit a leave application (Self-Service).

    **Business Rules**:
    - reason of at least 10 characters
    - end_date on or after start_date
    - start_date at least one day ahead
    - at most 30 days inclusive
    """
    logger.info(f"Leave application by student: {student.student_id}")
    created = service.apply(student, leave.to_application(student.student_id))
    return LeavePublic.from_leave(created)


@router.get("/me", response_model=list[LeavePublic])
def get_my_leaves(
    service: LeaveServiceDep,
    student: StudentDep,
    status_filter: LeaveStatus | None = None,
):
    """
    Get my leave requests, newest first (Self-Service).
    """
    leaves = service.leaves_for_student(student.student_id)
    if status_filter is not None:
        leaves = [leave for leave in leaves if leave.status == status_filter]
    return [LeavePublic.from_leave(leave) for leave in leaves]


@router.delete("/me/{leave_id}", response_model=LeavePublic)
def cancel_my_leave(
    leave_id: int,
    service: LeaveServiceDep,
    student: StudentDep,
):
    """
    Cancel my leave request (Self-Service).

    **Business Rules**:
    - Can only cancel own leaves
    - PENDING leaves can always be cancelled
    - APPROVED leaves only before their start date
    """
    cancelled = service.cancel(leave_id, student)
    return LeavePublic.from_leave(cancelled)


# ============================================================================
# ADMIN ENDPOINTS (Approval Workflows)
# ============================================================================


@router.get("/pending", response_model=list[LeavePublic])
def get_pending_leaves(service: LeaveServiceDep, admin: ReviewerDep):
    """
    Get pending leave requests, oldest first.

    **Access**: Any admin
    """
    logger.info(f"Admin {admin.admin_id} fetching pending leaves")
    return [LeavePublic.from_leave(leave) for leave in service.pending_leaves()]


@router.post("/{leave_id}/approve", response_model=LeavePublic)
def approve_leave(
    leave_id: int,
    request: LeaveApproveRequest,
    service: LeaveServiceDep,
    actor: CurrentActor,
):
    """
    Approve a pending leave request.

    **Access**: ACADEMIC_COORDINATOR and above
    """
    approved = service.approve(leave_id, actor, request.comments)
    return LeavePublic.from_leave(approved)


@router.post("/{leave_id}/reject", response_model=LeavePublic)
def reject_leave(
    leave_id: int,
    request: LeaveRejectRequest,
    service: LeaveServiceDep,
    actor: CurrentActor,
):
    """
    Reject a pending leave request. A rejection reason is mandatory.

    **Access**: ACADEMIC_COORDINATOR and above
    """
    rejected = service.reject(leave_id, actor, request.rejection_reason)
    return LeavePublic.from_leave(rejected)


# ============================================================================
# REPORTING ENDPOINTS
# ============================================================================


@router.get("/dashboard/summary", response_model=LeaveSummary)
def get_leave_dashboard_summary(reports: ReportServiceDep, admin: ReviewerDep):
    """
    Counts of leaves by status.

    **Access**: Any admin
    """
    summary = reports.summary()
    logger.info(f"Dashboard summary for {admin.admin_id}: {summary.model_dump()}")
    return summary


@router.get("/dashboard/pending-approvals", response_model=PendingApprovals)
def get_pending_approvals_report(reports: ReportServiceDep, admin: ReviewerDep):
    """
    Pending leaves grouped by urgency of their start date.

    **Access**: Any admin
    """
    return reports.pending_approvals()


@router.get("/dashboard/by-type", response_model=dict[LeaveType, int])
def get_leave_counts_by_type(
    reports: ReportServiceDep,
    admin: ReviewerDep,
    status_filter: LeaveStatus | None = None,
):
    """
    Leave counts per category, optionally for one status only.

    **Access**: Any admin
    """
    return reports.count_by_type(status_filter)


@router.get("/dashboard/students/{student_id}", response_model=StudentLeaveReport)
def get_student_leave_report(
    student_id: str, reports: ReportServiceDep, admin: ReviewerDep
):
    """
    Leave history and totals for one student.

    **Access**: Any admin
    """
    logger.info(f"Admin {admin.admin_id} fetching leave report for {student_id}")
    return reports.student_report(student_id)


@router.get("/dashboard/active", response_model=list[LeavePublic])
def get_active_leaves(
    reports: ReportServiceDep,
    admin: ReviewerDep,
    on: date | None = None,
):
    """
    Approved leaves covering a day (today by default).

    **Access**: Any admin
    """
    return [LeavePublic.from_leave(leave) for leave in reports.active_leaves(on)]


@router.get("/dashboard/between", response_model=list[LeavePublic])
def get_leaves_between(
    start_date: date,
    end_date: date,
    reports: ReportServiceDep,
    admin: ReviewerDep,
):
    """
    Leaves sharing at least one day with the date range.

    **Access**: Any admin
    """
    leaves = reports.leaves_between(start_date, end_date)
    return [LeavePublic.from_leave(leave) for leave in leaves]


@router.get("/dashboard/monthly", response_model=MonthlyReport)
def get_monthly_report(
    year: int,
    month: int,
    reports: ReportServiceDep,
    admin: ReviewerDep,
):
    """
    Applications, approvals and approval rate for one calendar month.

    **Access**: Any admin
    """
    return reports.monthly_summary(year, month)


@router.get("/dashboard/trends", response_model=list[TrendPoint])
def get_leave_trends(
    reports: ReportServiceDep,
    admin: ReviewerDep,
    months: int = Query(default=12, ge=1, le=120),
):
    """
    Monthly leave counts and average duration per category.

    **Access**: Any admin
    """
    return reports.trend(months)


# ============================================================================
# DETAIL ENDPOINTS
# ============================================================================


@router.get("/{leave_id}", response_model=LeavePublic)
def get_leave(leave_id: int, service: LeaveServiceDep, actor: CurrentActor):
    """
    Retrieve a leave request.

    **Authorization**:
    - Students can only view their own leaves
    - Admins can view any leave
    """
    leave = service.get_leave(leave_id)
    if not can_view_leave(actor, leave):
        log_authorization_check(actor, "view_leave", f"leave:{leave_id}", False)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized to view this leave request",
        )
    return LeavePublic.from_leave(leave)


@router.get("/{leave_id}/history", response_model=list[HistoryEntry])
def get_leave_history(leave_id: int, service: LeaveServiceDep, actor: CurrentActor):
    """
    Audit trail of a leave request, oldest first.
    """
    leave = service.get_leave(leave_id)
    if not can_view_leave(actor, leave):
        log_authorization_check(actor, "view_history", f"leave:{leave_id}", False)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized to view this leave request",
        )
    return service.history(leave_id)
