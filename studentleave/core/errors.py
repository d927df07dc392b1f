"""
Structured errors raised by the leave core.

All failures are reported through a single ``LeaveError`` carrying a
``kind`` discriminator plus the payload fields relevant to that kind.
Callers dispatch with ``match err.kind`` (or a class pattern on
``LeaveError(kind=...)``) instead of catching per-kind subclasses.
"""

from enum import Enum
from typing import Any

from studentleave.models.actor import AdminRole
from studentleave.models.leave import LeaveStatus


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    INVALID_TRANSITION = "invalid_transition"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    STORAGE = "storage_error"


class ValidationKind(str, Enum):
    MISSING_FIELD = "missing-field"
    REASON_TOO_SHORT = "reason-too-short"
    INVALID_DATE_RANGE = "invalid-date-range"
    START_DATE_TOO_SOON = "start-date-too-soon"
    DURATION_EXCEEDED = "duration-exceeded"
    OVERLAPPING_LEAVE = "overlapping-leave"


class LeaveEvent(str, Enum):
    """Lifecycle events a caller can request."""

    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"


class LeaveError(Exception):
    """
    Recoverable failure of a leave operation.

    Only the payload attributes relevant to ``kind`` are set; the rest
    stay None.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        validation: ValidationKind | None = None,
        field: str | None = None,
        current_status: LeaveStatus | None = None,
        event: LeaveEvent | None = None,
        required_role: AdminRole | None = None,
        actor_role: AdminRole | None = None,
        leave_id: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.validation = validation
        self.field = field
        self.current_status = current_status
        self.event = event
        self.required_role = required_role
        self.actor_role = actor_role
        self.leave_id = leave_id

    @classmethod
    def invalid(
        cls, validation: ValidationKind, message: str, field: str | None = None
    ) -> "LeaveError":
        return cls(ErrorKind.VALIDATION, message, validation=validation, field=field)

    @classmethod
    def invalid_transition(
        cls, current_status: LeaveStatus, event: LeaveEvent, leave_id: int | None = None
    ) -> "LeaveError":
        return cls(
            ErrorKind.INVALID_TRANSITION,
            f"Cannot {event.value} a leave with status {current_status.value}",
            current_status=current_status,
            event=event,
            leave_id=leave_id,
        )

    @classmethod
    def unauthorized(
        cls,
        required_role: AdminRole | None,
        actor_role: AdminRole | None,
        message: str | None = None,
    ) -> "LeaveError":
        if message is None:
            held = actor_role.value if actor_role else "none"
            required = required_role.value if required_role else "owner"
            message = f"Requires {required} permission, actor has {held}"
        return cls(
            ErrorKind.UNAUTHORIZED,
            message,
            required_role=required_role,
            actor_role=actor_role,
        )

    @classmethod
    def not_found(cls, leave_id: int) -> "LeaveError":
        return cls(ErrorKind.NOT_FOUND, f"Leave not found: {leave_id}", leave_id=leave_id)

    @classmethod
    def storage(cls, message: str) -> "LeaveError":
        return cls(ErrorKind.STORAGE, message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable view of the kind and its populated payload."""
        payload = {
            "validation": self.validation,
            "field": self.field,
            "current_status": self.current_status,
            "event": self.event,
            "required_role": self.required_role,
            "actor_role": self.actor_role,
            "leave_id": self.leave_id,
        }
        data: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        for key, value in payload.items():
            if value is not None:
                data[key] = value.value if isinstance(value, Enum) else value
        return data

    def __repr__(self) -> str:
        return f"LeaveError(kind={self.kind.value!r}, message={self.message!r})"
