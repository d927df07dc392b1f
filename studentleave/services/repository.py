"""
Persistence collaborators for leave requests and their history.

``InMemoryLeaveRepository`` keeps copies in process memory;
``SqlLeaveRepository`` stores rows through SQLModel. Both hand out
detached copies so a caller mutating a loaded leave never changes the
stored state until it calls ``save_leave``.

``save_with_history`` stores a leave together with the history entry
describing its change: either both are written or neither is.
"""

from itertools import count
from threading import Lock
from typing import Protocol

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from studentleave.core.errors import LeaveError
from studentleave.core.logging import get_logger
from studentleave.models.history import HistoryEntry, LeaveHistory
from studentleave.models.leave import LeaveRequest, LeaveStatus

logger = get_logger(__name__)


class LeaveRepository(Protocol):
    def load_leave(self, leave_id: int) -> LeaveRequest: ...

    def save_leave(self, leave: LeaveRequest) -> LeaveRequest: ...

    def append_history(self, entry: HistoryEntry) -> HistoryEntry: ...

    def save_with_history(
        self, leave: LeaveRequest, entry: HistoryEntry
    ) -> tuple[LeaveRequest, HistoryEntry]: ...

    def list_history(self, leave_id: int) -> list[HistoryEntry]: ...

    def query_by_student(self, student_id: str) -> list[LeaveRequest]: ...

    def query_by_status(self, status: LeaveStatus) -> list[LeaveRequest]: ...

    def query_all(self) -> list[LeaveRequest]: ...


def _newest_first(leaves: list[LeaveRequest]) -> list[LeaveRequest]:
    return sorted(leaves, key=lambda leave: (leave.created_at, leave.id), reverse=True)


def _oldest_first(leaves: list[LeaveRequest]) -> list[LeaveRequest]:
    return sorted(leaves, key=lambda leave: (leave.created_at, leave.id))


class InMemoryLeaveRepository:
    """Thread-safe dictionary-backed store."""

    def __init__(self):
        self._lock = Lock()
        self._ids = count(1)
        self._leaves: dict[int, LeaveRequest] = {}
        self._history: dict[int, list[HistoryEntry]] = {}

    def load_leave(self, leave_id: int) -> LeaveRequest:
        with self._lock:
            leave = self._leaves.get(leave_id)
            if leave is None:
                raise LeaveError.not_found(leave_id)
            return leave.copy_detached()

    def _stage(self, leave: LeaveRequest) -> LeaveRequest:
        stored = leave.copy_detached()
        if stored.id is None:
            stored.id = next(self._ids)
        elif stored.id not in self._leaves:
            raise LeaveError.not_found(stored.id)
        return stored

    def save_leave(self, leave: LeaveRequest) -> LeaveRequest:
        with self._lock:
            stored = self._stage(leave)
            self._leaves[stored.id] = stored
            return stored.copy_detached()

    def append_history(self, entry: HistoryEntry) -> HistoryEntry:
        with self._lock:
            self._history.setdefault(entry.leave_id, []).append(entry)
            return entry

    def save_with_history(
        self, leave: LeaveRequest, entry: HistoryEntry
    ) -> tuple[LeaveRequest, HistoryEntry]:
        with self._lock:
            stored = self._stage(leave)
            recorded = entry.model_copy(update={"leave_id": stored.id})
            self._leaves[stored.id] = stored
            self._history.setdefault(stored.id, []).append(recorded)
            return stored.copy_detached(), recorded

    def list_history(self, leave_id: int) -> list[HistoryEntry]:
        with self._lock:
            return list(self._history.get(leave_id, []))

    def query_by_student(self, student_id: str) -> list[LeaveRequest]:
        with self._lock:
            leaves = [
                leave.copy_detached()
                for leave in self._leaves.values()
                if leave.student_id == student_id
            ]
        return _newest_first(leaves)

    def query_by_status(self, status: LeaveStatus) -> list[LeaveRequest]:
        with self._lock:
            leaves = [
                leave.copy_detached()
                for leave in self._leaves.values()
                if leave.status == status
            ]
        return _oldest_first(leaves)

    def query_all(self) -> list[LeaveRequest]:
        with self._lock:
            leaves = [leave.copy_detached() for leave in self._leaves.values()]
        return _oldest_first(leaves)


class SqlLeaveRepository:
    """
    SQLModel-backed store using the ``leaves`` and ``leave_history`` tables.

    Each call runs in its own session; database failures are re-raised
    as storage errors without retrying.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def load_leave(self, leave_id: int) -> LeaveRequest:
        try:
            with self._session() as session:
                leave = session.get(LeaveRequest, leave_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load leave {leave_id}: {e}")
            raise LeaveError.storage(f"Failed to load leave: {e}") from e

        if leave is None:
            raise LeaveError.not_found(leave_id)
        return leave

    def _stage(self, session: Session, leave: LeaveRequest) -> LeaveRequest:
        if leave.id is None:
            stored = leave.copy_detached()
            session.add(stored)
            return stored
        if session.get(LeaveRequest, leave.id) is None:
            raise LeaveError.not_found(leave.id)
        return session.merge(leave.copy_detached())

    def save_leave(self, leave: LeaveRequest) -> LeaveRequest:
        try:
            with self._session() as session:
                stored = self._stage(session, leave)
                session.commit()
                session.refresh(stored)
                return stored
        except SQLAlchemyError as e:
            logger.error(f"Failed to save leave {leave.id}: {e}")
            raise LeaveError.storage(f"Failed to save leave: {e}") from e

    def save_with_history(
        self, leave: LeaveRequest, entry: HistoryEntry
    ) -> tuple[LeaveRequest, HistoryEntry]:
        """Write the leave and its history row in a single transaction."""
        try:
            with self._session() as session:
                stored = self._stage(session, leave)
                session.flush()
                recorded = entry.model_copy(update={"leave_id": stored.id})
                session.add(LeaveHistory.from_entry(recorded))
                session.commit()
                session.refresh(stored)
                return stored, recorded
        except SQLAlchemyError as e:
            logger.error(f"Failed to save leave {leave.id} with its history: {e}")
            raise LeaveError.storage(f"Failed to save leave: {e}") from e

    def append_history(self, entry: HistoryEntry) -> HistoryEntry:
        try:
            with self._session() as session:
                session.add(LeaveHistory.from_entry(entry))
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to record history for leave {entry.leave_id}: {e}")
            raise LeaveError.storage(f"Failed to record leave history: {e}") from e
        return entry

    def list_history(self, leave_id: int) -> list[HistoryEntry]:
        query = (
            select(LeaveHistory)
            .where(LeaveHistory.leave_id == leave_id)
            .order_by(LeaveHistory.history_id)
        )
        return [row.to_entry() for row in self._all(query)]

    def query_by_student(self, student_id: str) -> list[LeaveRequest]:
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.student_id == student_id)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        )
        return self._all(query)

    def query_by_status(self, status: LeaveStatus) -> list[LeaveRequest]:
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.status == status)
            .order_by(LeaveRequest.created_at, LeaveRequest.id)
        )
        return self._all(query)

    def query_all(self) -> list[LeaveRequest]:
        query = select(LeaveRequest).order_by(
            LeaveRequest.created_at, LeaveRequest.id
        )
        return self._all(query)

    def _all(self, query) -> list:
        try:
            with self._session() as session:
                return list(session.exec(query).all())
        except SQLAlchemyError as e:
            logger.error(f"Leave query failed: {e}")
            raise LeaveError.storage(f"Leave query failed: {e}") from e
