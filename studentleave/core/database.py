"""
Database engine and table creation.

The engine is built explicitly and handed to the repository; nothing
here holds process-wide connection state.
"""

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from studentleave.core.config import settings
from studentleave.core.logging import get_logger

# Imported for table registration on SQLModel.metadata
from studentleave.models.history import LeaveHistory  # noqa: F401
from studentleave.models.leave import LeaveRequest  # noqa: F401

logger = get_logger(__name__)


def build_engine(url: str | None = None, echo: bool | None = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        url: Database URL; defaults to settings.database_url
        echo: Echo SQL statements; defaults to settings.DB_ECHO

    Returns:
        Engine ready for use by SqlLeaveRepository
    """
    url = url or settings.database_url
    echo = settings.DB_ECHO if echo is None else echo

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(url, echo=echo, pool_pre_ping=True)


def create_db_and_tables(engine: Engine) -> None:
    """Create the leave tables if they do not exist."""
    logger.info("Creating leave tables...")
    SQLModel.metadata.create_all(engine)
