import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from studentleave.core.config import Settings
from studentleave.core.errors import ErrorKind, LeaveError, LeaveEvent, ValidationKind
from studentleave.models.actor import AdminRole
from studentleave.models.history import HistoryAction
from studentleave.models.leave import LeaveStatus
from studentleave.services.leave_service import LeaveService
from studentleave.services.repository import InMemoryLeaveRepository
from studentleave.services.rules import DateOverlapChecker
from tests.conftest import NOW, days_from_today


class TestApply:
    def test_new_leave_is_pending_with_creation_history(self, service, pending_leave):
        assert pending_leave.id is not None
        assert pending_leave.status is LeaveStatus.PENDING
        assert pending_leave.created_at == NOW
        assert pending_leave.updated_at == NOW
        assert pending_leave.decided_at is None

        history = service.history(pending_leave.id)
        assert len(history) == 1
        entry = history[0]
        assert entry.action is HistoryAction.CREATED
        assert entry.old_status is None
        assert entry.new_status is LeaveStatus.PENDING
        assert entry.performed_by == "CS2021001"
        assert entry.performed_at == NOW

    def test_student_id_filled_from_actor(self, service, student, make_application):
        leave = service.apply(student, make_application(student_id=None))
        assert leave.student_id == student.student_id

    def test_blank_student_id_filled_from_actor(self, service, student, make_application):
        leave = service.apply(student, make_application(student_id=""))
        assert leave.student_id == student.student_id

    def test_reason_is_stored_trimmed(self, service, student, make_application):
        leave = service.apply(student, make_application(reason="  medical checkup  "))
        assert leave.reason == "medical checkup"

    def test_invalid_application_is_not_stored(
        self, service, repository, student, make_application
    ):
        with pytest.raises(LeaveError) as exc_info:
            service.apply(
                student,
                make_application(start_date=days_from_today(0), end_date=days_from_today(2)),
            )

        assert exc_info.value.validation is ValidationKind.START_DATE_TOO_SOON
        assert repository.query_all() == []

    def test_admin_cannot_apply(self, service, super_admin, make_application):
        with pytest.raises(LeaveError) as exc_info:
            service.apply(super_admin, make_application())

        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED
        assert exc_info.value.actor_role is AdminRole.SUPER_ADMIN

    def test_student_cannot_apply_for_someone_else(
        self, service, other_student, make_application
    ):
        with pytest.raises(LeaveError) as exc_info:
            service.apply(other_student, make_application())

        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED

    def test_overlaps_allowed_by_default(self, service, student, make_application):
        service.apply(student, make_application())
        service.apply(student, make_application())

        assert len(service.leaves_for_student(student.student_id)) == 2

    def test_overlap_check_when_enabled(
        self, repository, clock, student, make_application
    ):
        service = LeaveService.from_settings(
            repository, clock=clock, config=Settings(ENFORCE_OVERLAP_CHECK=True)
        )
        assert isinstance(service.rule_engine.conflict_checker, DateOverlapChecker)
        service.apply(student, make_application())

        with pytest.raises(LeaveError) as exc_info:
            service.apply(
                student,
                make_application(start_date=days_from_today(1), end_date=days_from_today(3)),
            )

        assert exc_info.value.validation is ValidationKind.OVERLAPPING_LEAVE
        assert len(repository.query_all()) == 1


class TestApproveReject:
    def test_coordinator_approves(self, service, pending_leave, coordinator):
        approved = service.approve(pending_leave.id, coordinator, "get well soon")

        assert approved.status is LeaveStatus.APPROVED
        assert approved.approved_by == "ADMIN003"
        assert approved.admin_comment == "get well soon"
        assert approved.decided_at == NOW

        history = service.history(pending_leave.id)
        assert [entry.action for entry in history] == [
            HistoryAction.CREATED,
            HistoryAction.APPROVED,
        ]
        assert history[1].old_status is LeaveStatus.PENDING
        assert history[1].new_status is LeaveStatus.APPROVED
        assert history[1].performed_by == "ADMIN003"
        assert history[1].comment == "get well soon"

    def test_higher_role_can_reject(self, service, pending_leave, super_admin):
        rejected = service.reject(pending_leave.id, super_admin, "exam week")

        assert rejected.status is LeaveStatus.REJECTED
        assert rejected.approved_by == "ADMIN001"
        assert rejected.admin_comment == "exam week"

    def test_viewer_is_unauthorized(self, service, pending_leave, viewer):
        with pytest.raises(LeaveError) as exc_info:
            service.approve(pending_leave.id, viewer)

        error = exc_info.value
        assert error.kind is ErrorKind.UNAUTHORIZED
        assert error.required_role is AdminRole.ACADEMIC_COORDINATOR
        assert error.actor_role is AdminRole.VIEWER
        assert service.get_leave(pending_leave.id).status is LeaveStatus.PENDING
        assert len(service.history(pending_leave.id)) == 1

    def test_student_cannot_approve_own_leave(self, service, pending_leave, student):
        with pytest.raises(LeaveError) as exc_info:
            service.approve(pending_leave.id, student)

        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED

    def test_second_approve_is_rejected_without_side_effects(
        self, service, clock, pending_leave, coordinator, super_admin
    ):
        service.approve(pending_leave.id, coordinator, "first")
        before = service.get_leave(pending_leave.id).model_dump()
        clock.advance(hours=1)

        with pytest.raises(LeaveError) as exc_info:
            service.approve(pending_leave.id, super_admin, "second")

        assert exc_info.value.kind is ErrorKind.INVALID_TRANSITION
        assert exc_info.value.current_status is LeaveStatus.APPROVED
        assert exc_info.value.event is LeaveEvent.APPROVE
        assert service.get_leave(pending_leave.id).model_dump() == before
        assert len(service.history(pending_leave.id)) == 2

    def test_reject_after_reject_is_invalid(self, service, pending_leave, coordinator):
        service.reject(pending_leave.id, coordinator, "no")

        with pytest.raises(LeaveError) as exc_info:
            service.reject(pending_leave.id, coordinator, "still no")

        assert exc_info.value.kind is ErrorKind.INVALID_TRANSITION

    def test_unknown_leave(self, service, coordinator):
        with pytest.raises(LeaveError) as exc_info:
            service.approve(999, coordinator)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.leave_id == 999


class HistoryOutageRepository(InMemoryLeaveRepository):
    """Store whose combined leave and history write can be switched off"""

    def __init__(self):
        super().__init__()
        self.history_available = True

    def save_with_history(self, leave, entry):
        if not self.history_available:
            raise LeaveError.storage("Failed to record leave history")
        return super().save_with_history(leave, entry)


class TestStorageFailure:
    @pytest.fixture
    def outage_repository(self):
        return HistoryOutageRepository()

    @pytest.fixture
    def outage_service(self, outage_repository, clock):
        return LeaveService(outage_repository, clock=clock)

    def test_failed_approval_can_be_retried(
        self, outage_service, outage_repository, student, coordinator, make_application
    ):
        leave = outage_service.apply(student, make_application())
        outage_repository.history_available = False

        with pytest.raises(LeaveError) as exc_info:
            outage_service.approve(leave.id, coordinator)

        assert exc_info.value.kind is ErrorKind.STORAGE
        assert outage_service.get_leave(leave.id).status is LeaveStatus.PENDING
        assert len(outage_service.history(leave.id)) == 1

        outage_repository.history_available = True
        approved = outage_service.approve(leave.id, coordinator)

        assert approved.status is LeaveStatus.APPROVED
        assert [entry.action for entry in outage_service.history(leave.id)] == [
            HistoryAction.CREATED,
            HistoryAction.APPROVED,
        ]

    def test_failed_application_is_not_stored(
        self, outage_service, outage_repository, student, make_application
    ):
        outage_repository.history_available = False

        with pytest.raises(LeaveError) as exc_info:
            outage_service.apply(student, make_application())

        assert exc_info.value.kind is ErrorKind.STORAGE
        assert outage_repository.query_all() == []


class TestCancel:
    def test_owner_cancels_pending(self, service, pending_leave, student):
        cancelled = service.cancel(pending_leave.id, student)

        assert cancelled.status is LeaveStatus.CANCELLED
        assert cancelled.approved_by is None
        assert cancelled.decided_at is None

        last = service.history(pending_leave.id)[-1]
        assert last.action is HistoryAction.CANCELLED
        assert last.old_status is LeaveStatus.PENDING
        assert last.performed_by == student.student_id

    def test_owner_cancels_approved_future_leave(
        self, service, pending_leave, student, coordinator
    ):
        approved = service.approve(pending_leave.id, coordinator)

        cancelled = service.cancel(pending_leave.id, student)

        assert cancelled.status is LeaveStatus.CANCELLED
        # Decision fields from the approval are kept
        assert cancelled.approved_by == approved.approved_by
        assert service.history(pending_leave.id)[-1].old_status is LeaveStatus.APPROVED

    def test_approved_leave_that_started_yesterday_cannot_be_cancelled(
        self, service, clock, pending_leave, student, coordinator
    ):
        service.approve(pending_leave.id, coordinator)
        clock.advance(days=2)

        with pytest.raises(LeaveError) as exc_info:
            service.cancel(pending_leave.id, student)

        assert exc_info.value.kind is ErrorKind.INVALID_TRANSITION
        assert exc_info.value.current_status is LeaveStatus.APPROVED
        assert service.get_leave(pending_leave.id).status is LeaveStatus.APPROVED
        assert len(service.history(pending_leave.id)) == 2

    def test_approved_leave_starting_today_cannot_be_cancelled(
        self, service, clock, pending_leave, student, coordinator
    ):
        service.approve(pending_leave.id, coordinator)
        clock.advance(days=1)

        with pytest.raises(LeaveError) as exc_info:
            service.cancel(pending_leave.id, student)

        assert exc_info.value.kind is ErrorKind.INVALID_TRANSITION

    def test_rejected_leave_cannot_be_cancelled(
        self, service, pending_leave, student, coordinator
    ):
        service.reject(pending_leave.id, coordinator, "no")

        with pytest.raises(LeaveError) as exc_info:
            service.cancel(pending_leave.id, student)

        assert exc_info.value.kind is ErrorKind.INVALID_TRANSITION
        assert exc_info.value.current_status is LeaveStatus.REJECTED

    def test_only_owner_can_cancel(self, service, pending_leave, other_student, super_admin):
        for actor in (other_student, super_admin):
            with pytest.raises(LeaveError) as exc_info:
                service.cancel(pending_leave.id, actor)
            assert exc_info.value.kind is ErrorKind.UNAUTHORIZED

        assert service.get_leave(pending_leave.id).status is LeaveStatus.PENDING
        assert len(service.history(pending_leave.id)) == 1


class TestQueries:
    def test_leaves_for_student_newest_first(self, service, clock, student, make_application):
        first = service.apply(student, make_application())
        clock.advance(minutes=5)
        second = service.apply(student, make_application())

        assert [leave.id for leave in service.leaves_for_student("CS2021001")] == [
            second.id,
            first.id,
        ]
        assert service.leaves_for_student("CS2021002") == []

    def test_pending_leaves_oldest_first(
        self, service, clock, student, coordinator, make_application
    ):
        first = service.apply(student, make_application())
        clock.advance(minutes=5)
        second = service.apply(student, make_application())
        clock.advance(minutes=5)
        third = service.apply(student, make_application())
        service.approve(second.id, coordinator)

        assert [leave.id for leave in service.pending_leaves()] == [first.id, third.id]
        assert [leave.id for leave in service.leaves_by_status(LeaveStatus.APPROVED)] == [
            second.id
        ]

    def test_history_of_unknown_leave(self, service):
        with pytest.raises(LeaveError) as exc_info:
            service.history(42)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_loaded_leave_is_a_copy(self, service, pending_leave):
        loaded = service.get_leave(pending_leave.id)
        loaded.status = LeaveStatus.APPROVED

        assert service.get_leave(pending_leave.id).status is LeaveStatus.PENDING


class TestConcurrency:
    def test_concurrent_approvals_have_one_winner(self, service, pending_leave, coordinator):
        workers = 8
        barrier = threading.Barrier(workers)

        def attempt(_):
            barrier.wait()
            try:
                service.approve(pending_leave.id, coordinator)
            except LeaveError as e:
                return e.kind
            return None

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(attempt, range(workers)))

        assert outcomes.count(None) == 1
        assert outcomes.count(ErrorKind.INVALID_TRANSITION) == workers - 1
        actions = [entry.action for entry in service.history(pending_leave.id)]
        assert actions.count(HistoryAction.APPROVED) == 1

    def test_transitions_on_different_leaves_are_independent(
        self, service, student, coordinator, make_application
    ):
        leaves = [service.apply(student, make_application()) for _ in range(6)]

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(
                pool.map(lambda leave: service.approve(leave.id, coordinator), leaves)
            )

        assert all(leave.status is LeaveStatus.APPROVED for leave in results)
        assert service.pending_leaves() == []
