from datetime import date, datetime, timedelta, timezone

import pytest

from studentleave.core.clock import FixedClock
from studentleave.models.actor import Admin, AdminRole, Student
from studentleave.models.leave import LeaveType
from studentleave.schemas.leave import LeaveApplication
from studentleave.services.leave_service import LeaveService
from studentleave.services.repository import InMemoryLeaveRepository

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


def days_from_today(days: int) -> date:
    return TODAY + timedelta(days=days)


@pytest.fixture
def clock():
    """Clock pinned to a Sunday morning in October"""
    return FixedClock(NOW)


@pytest.fixture
def repository():
    return InMemoryLeaveRepository()


@pytest.fixture
def service(repository, clock):
    return LeaveService(repository, clock=clock)


@pytest.fixture
def student():
    return Student(student_id="CS2021001")


@pytest.fixture
def other_student():
    return Student(student_id="CS2021002")


@pytest.fixture
def coordinator():
    return Admin(admin_id="ADMIN003", role=AdminRole.ACADEMIC_COORDINATOR)


@pytest.fixture
def viewer():
    return Admin(admin_id="ADMIN009", role=AdminRole.VIEWER)


@pytest.fixture
def super_admin():
    return Admin(admin_id="ADMIN001", role=AdminRole.SUPER_ADMIN)


@pytest.fixture
def make_application():
    """Factory fixture for leave applications, valid unless overridden"""

    def _make_application(**overrides):
        fields = {
            "student_id": "CS2021001",
            "leave_type": LeaveType.MEDICAL,
            "start_date": days_from_today(1),
            "end_date": days_from_today(1),
            "reason": "medical checkup",
        }
        fields.update(overrides)
        return LeaveApplication(**fields)

    return _make_application


@pytest.fixture
def pending_leave(service, student, make_application):
    return service.apply(student, make_application())
