"""
FastAPI dependencies for the leave routes.

Resolves the services installed on the application state and narrows
the authenticated actor to a student or an admin reviewer.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from studentleave.core.logging import get_logger
from studentleave.core.permissions import REVIEWER_ROLE, has_permission
from studentleave.core.security import CurrentActor
from studentleave.models.actor import Admin, Student
from studentleave.services.leave_service import LeaveService
from studentleave.services.reporting import LeaveReportService

logger = get_logger(__name__)


def get_leave_service(request: Request) -> LeaveService:
    return request.app.state.leave_service


def get_report_service(request: Request) -> LeaveReportService:
    return request.app.state.report_service


def require_student(actor: CurrentActor) -> Student:
    """
    Dependency that requires the actor to be a student.

    Raises:
        HTTPException: 403 if the actor is an admin
    """
    if not isinstance(actor, Student):
        logger.warning(f"Access denied: {actor.actor_id} is not a student")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )
    return actor


def require_reviewer(actor: CurrentActor) -> Admin:
    """
    Dependency that requires an admin with at least viewer rights.

    Raises:
        HTTPException: 403 if the actor is not an admin
    """
    if not isinstance(actor, Admin) or not has_permission(actor.role, REVIEWER_ROLE):
        logger.warning(f"Access denied: {actor.actor_id} is not an admin")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


LeaveServiceDep = Annotated[LeaveService, Depends(get_leave_service)]
ReportServiceDep = Annotated[LeaveReportService, Depends(get_report_service)]
StudentDep = Annotated[Student, Depends(require_student)]
ReviewerDep = Annotated[Admin, Depends(require_reviewer)]
