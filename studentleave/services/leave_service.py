"""
Student Leave Management - Leave lifecycle service.

Orchestrates one leave operation at a time:

- validate the application (rule engine)
- authorize the actor (role/permission model)
- apply the status transition (state machine)
- persist the leave together with exactly one history entry (audit log)

Transitions on the same leave id are serialized; other ids proceed in
parallel. Reads take no lock.
"""

from studentleave.core.clock import Clock, SystemClock
from studentleave.core.config import Settings, settings
from studentleave.core.errors import LeaveError, LeaveEvent
from studentleave.core.locks import KeyedLock
from studentleave.core.logging import get_logger
from studentleave.core.permissions import (
    APPROVER_ROLE,
    actor_role,
    authorize_admin,
    authorize_owner,
    log_authorization_check,
)
from studentleave.models.actor import Actor, Student
from studentleave.models.history import HistoryAction, HistoryEntry
from studentleave.models.leave import LeaveRequest, LeaveStatus
from studentleave.schemas.leave import LeaveApplication
from studentleave.services.audit import AuditLog
from studentleave.services.repository import LeaveRepository
from studentleave.services.rules import (
    DateOverlapChecker,
    LeaveRuleEngine,
    LeaveRules,
)
from studentleave.services.state_machine import EVENT_ACTIONS, apply_transition

logger = get_logger(__name__)


class LeaveService:
    def __init__(
        self,
        repository: LeaveRepository,
        clock: Clock | None = None,
        rule_engine: LeaveRuleEngine | None = None,
    ):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.rule_engine = rule_engine or LeaveRuleEngine()
        self.audit = AuditLog(repository)
        self._locks = KeyedLock()

    @classmethod
    def from_settings(
        cls,
        repository: LeaveRepository,
        clock: Clock | None = None,
        config: Settings = settings,
    ) -> "LeaveService":
        """Build a service whose rules and overlap policy come from configuration."""
        checker = DateOverlapChecker() if config.ENFORCE_OVERLAP_CHECK else None
        engine = LeaveRuleEngine(LeaveRules.from_settings(config), checker)
        return cls(repository, clock=clock, rule_engine=engine)

    # ------------------------------------------------------------------
    # Student actions
    # ------------------------------------------------------------------

    def apply(self, actor: Actor, application: LeaveApplication) -> LeaveRequest:
        """
        Submit a new leave application on behalf of the student actor.

        Returns:
            The stored leave in PENDING status

        Raises:
            LeaveError: unauthorized when the actor is not the applying
                student, validation when a business rule fails
        """
        if not isinstance(actor, Student):
            raise LeaveError.unauthorized(
                None, actor_role(actor), message="Only students can apply for leave"
            )
        if not (application.student_id or "").strip():
            application = application.model_copy(
                update={"student_id": actor.student_id}
            )
        elif application.student_id != actor.student_id:
            log_authorization_check(
                actor, "apply_leave", f"student:{application.student_id}", False
            )
            raise LeaveError.unauthorized(
                None,
                None,
                message="Students can only apply for their own leave",
            )

        with self._locks.hold(("student", actor.student_id)):
            now = self.clock.now()
            self.rule_engine.validate_application(application, now)
            self.rule_engine.check_conflicts(
                application, self.repository.query_by_student(actor.student_id)
            )

            leave, _ = self.audit.commit(
                LeaveRequest(
                    student_id=application.student_id,
                    leave_type=application.leave_type,
                    start_date=application.start_date,
                    end_date=application.end_date,
                    reason=application.reason.strip(),
                    status=LeaveStatus.PENDING,
                    created_at=now,
                    updated_at=now,
                ),
                HistoryAction.CREATED,
                None,
                actor.actor_id,
                now,
                comment="Leave application submitted",
            )

        logger.info(
            f"Leave application submitted: ID={leave.id}, "
            f"student={leave.student_id}, type={leave.leave_type.value}, "
            f"days={leave.duration_days}"
        )
        return leave

    def cancel(self, leave_id: int, actor: Actor) -> LeaveRequest:
        """Withdraw a pending leave, or an approved one that has not started."""
        return self._transition(
            leave_id, LeaveEvent.CANCEL, actor, "Leave cancelled by student"
        )

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    def approve(
        self, leave_id: int, actor: Actor, comment: str | None = None
    ) -> LeaveRequest:
        return self._transition(leave_id, LeaveEvent.APPROVE, actor, comment)

    def reject(
        self, leave_id: int, actor: Actor, comment: str | None = None
    ) -> LeaveRequest:
        return self._transition(leave_id, LeaveEvent.REJECT, actor, comment)

    def _transition(
        self,
        leave_id: int,
        event: LeaveEvent,
        actor: Actor,
        comment: str | None,
    ) -> LeaveRequest:
        resource = f"leave:{leave_id}"

        if event is not LeaveEvent.CANCEL:
            try:
                authorize_admin(actor, APPROVER_ROLE)
            except LeaveError:
                log_authorization_check(actor, f"{event.value}_leave", resource, False)
                raise

        with self._locks.hold(("leave", leave_id)):
            leave = self.repository.load_leave(leave_id)

            if event is LeaveEvent.CANCEL:
                try:
                    authorize_owner(actor, leave)
                except LeaveError:
                    log_authorization_check(actor, "cancel_leave", resource, False)
                    raise

            now = self.clock.now()
            try:
                previous = apply_transition(leave, event, now, actor.actor_id, comment)
            except LeaveError:
                logger.warning(
                    f"Rejected {event.value} of leave {leave_id} "
                    f"with status {leave.status.value}"
                )
                raise

            saved, _ = self.audit.commit(
                leave,
                EVENT_ACTIONS[event],
                previous,
                actor.actor_id,
                now,
                comment=comment,
            )

        log_authorization_check(actor, f"{event.value}_leave", resource, True)
        logger.info(
            f"Leave {leave_id} {previous.value} -> {saved.status.value} "
            f"by {actor.actor_id}"
        )
        return saved

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_leave(self, leave_id: int) -> LeaveRequest:
        return self.repository.load_leave(leave_id)

    def leaves_for_student(self, student_id: str) -> list[LeaveRequest]:
        return self.repository.query_by_student(student_id)

    def leaves_by_status(self, status: LeaveStatus) -> list[LeaveRequest]:
        return self.repository.query_by_status(status)

    def pending_leaves(self) -> list[LeaveRequest]:
        return self.repository.query_by_status(LeaveStatus.PENDING)

    def history(self, leave_id: int) -> list[HistoryEntry]:
        """Audit trail of a leave, oldest first."""
        self.repository.load_leave(leave_id)
        return self.audit.list_for(leave_id)
