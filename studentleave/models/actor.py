"""
Actors performing lifecycle actions: students and role-bearing admins.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AdminRole(str, Enum):
    """Administrator roles, ordered by permission level."""

    VIEWER = "VIEWER"
    ASSISTANT_ADMIN = "ASSISTANT_ADMIN"
    ACADEMIC_COORDINATOR = "ACADEMIC_COORDINATOR"
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD"
    SUPER_ADMIN = "SUPER_ADMIN"

    @property
    def level(self) -> int:
        return _ROLE_LEVELS[self]

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


_ROLE_LEVELS = {
    AdminRole.VIEWER: 1,
    AdminRole.ASSISTANT_ADMIN: 2,
    AdminRole.ACADEMIC_COORDINATOR: 3,
    AdminRole.DEPARTMENT_HEAD: 4,
    AdminRole.SUPER_ADMIN: 5,
}


class Student(BaseModel):
    model_config = ConfigDict(frozen=True)

    student_id: str

    @property
    def actor_id(self) -> str:
        return self.student_id


class Admin(BaseModel):
    model_config = ConfigDict(frozen=True)

    admin_id: str
    role: AdminRole = AdminRole.VIEWER
    last_login_at: datetime | None = None

    @property
    def actor_id(self) -> str:
        return self.admin_id

    def record_login(self, now: datetime) -> "Admin":
        """Return a copy with the login timestamp stamped. Does not affect permissions."""
        return self.model_copy(update={"last_login_at": now})


Actor = Student | Admin
