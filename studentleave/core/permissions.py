"""
Student Leave Management - Role/Permission Model.

Admin roles form a strict hierarchy of permission levels:

- SUPER_ADMIN (5)
- DEPARTMENT_HEAD (4)
- ACADEMIC_COORDINATOR (3): minimum role to approve or reject leave
- ASSISTANT_ADMIN (2)
- VIEWER (1): read-only access to leave records and reports

A higher level holds every permission of the levels below it.
``has_permission`` is the only authorization primitive; the helpers
below build on it.
"""

from studentleave.core.errors import LeaveError
from studentleave.core.logging import get_logger
from studentleave.models.actor import Actor, Admin, AdminRole, Student
from studentleave.models.leave import LeaveRequest

logger = get_logger(__name__)

# Minimum role allowed to approve or reject a pending leave
APPROVER_ROLE = AdminRole.ACADEMIC_COORDINATOR

# Minimum role allowed to read other students' leaves and reports
REVIEWER_ROLE = AdminRole.VIEWER


def has_permission(actor_role: AdminRole, required_role: AdminRole) -> bool:
    """
    Check whether a role satisfies a required role.

    Args:
        actor_role: Role held by the admin
        required_role: Role the action demands

    Returns:
        True if the actor's level is at least the required level
    """
    return actor_role.level >= required_role.level


def actor_role(actor: Actor) -> AdminRole | None:
    """Role of the actor, or None for students."""
    if isinstance(actor, Admin):
        return actor.role
    return None


def authorize_admin(actor: Actor, required_role: AdminRole) -> Admin:
    """
    Require the actor to be an admin holding at least ``required_role``.

    Raises:
        LeaveError: unauthorized, carrying the required and held roles
    """
    if isinstance(actor, Admin) and has_permission(actor.role, required_role):
        return actor
    raise LeaveError.unauthorized(required_role, actor_role(actor))


def authorize_owner(actor: Actor, leave: LeaveRequest) -> Student:
    """
    Require the actor to be the student who owns the leave.

    Raises:
        LeaveError: unauthorized with no required role
    """
    if isinstance(actor, Student) and actor.student_id == leave.student_id:
        return actor
    raise LeaveError.unauthorized(
        None,
        actor_role(actor),
        message="Only the student who applied can cancel this leave",
    )


def can_view_leave(actor: Actor, leave: LeaveRequest) -> bool:
    """Students see their own leaves; any admin sees all of them."""
    if isinstance(actor, Admin):
        return has_permission(actor.role, REVIEWER_ROLE)
    return actor.student_id == leave.student_id


def log_authorization_check(
    actor: Actor, action: str, resource: str, allowed: bool
) -> None:
    """
    Log authorization check results for audit purposes.

    Args:
        actor: Actor performing the action
        action: Action being performed (e.g., "approve_leave", "view_leave")
        resource: Resource being accessed (e.g., "leave:123")
        allowed: Whether access was allowed
    """
    status_str = "ALLOWED" if allowed else "DENIED"
    role = actor_role(actor)
    logger.info(
        f"Authorization {status_str}: actor={actor.actor_id}, "
        f"action={action}, resource={resource}, "
        f"role={role.value if role else 'student'}"
    )
