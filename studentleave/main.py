"""
Student Leave Management Service - Main Application Entry Point.

This service handles student leave management including:
- Leave application submission and tracking
- Role-based approval and rejection by administrators
- Cancellation by students
- Audit history of every status change
- Dashboard summaries and pending-approval reports
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studentleave.api.errors import leave_error_handler
from studentleave.api.routes.leaves import router as leaves_router
from studentleave.core.clock import Clock
from studentleave.core.config import settings
from studentleave.core.database import build_engine, create_db_and_tables
from studentleave.core.errors import LeaveError
from studentleave.core.logging import configure_logging, get_logger
from studentleave.services.leave_service import LeaveService
from studentleave.services.reporting import LeaveReportService
from studentleave.services.repository import LeaveRepository, SqlLeaveRepository

logger = get_logger(__name__)


def _install_services(
    app: FastAPI, repository: LeaveRepository, clock: Clock | None
) -> None:
    app.state.leave_service = LeaveService.from_settings(repository, clock=clock)
    app.state.report_service = LeaveReportService(repository, clock=clock)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Builds the SQL repository unless one was injected.
    """
    logger.info("Starting Student Leave Management Service...")

    engine = None
    if getattr(app.state, "leave_service", None) is None:
        logger.info("Creating database and tables...")
        engine = build_engine()
        create_db_and_tables(engine)
        _install_services(app, SqlLeaveRepository(engine), clock=None)
        logger.info("Database and tables created successfully")

    logger.info("Student Leave Management Service startup complete")

    yield

    logger.info("Student Leave Management Service shutting down...")
    if engine is not None:
        engine.dispose()
        logger.info("Database engine disposed")


def create_app(
    repository: LeaveRepository | None = None, clock: Clock | None = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        repository: Persistence collaborator; when omitted a SQL repository
            is created at startup from settings.database_url
        clock: Time source; system UTC clock when omitted
    """
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Student Leave Management Service - Handles leave applications, approvals and audit history",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if repository is not None:
        _install_services(app, repository, clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.add_exception_handler(LeaveError, leave_error_handler)
    app.include_router(leaves_router, prefix="/api/v1")

    @app.get("/health", tags=["health"])
    async def health_check():
        """
        Health check endpoint for container orchestration and monitoring.
        """
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    @app.get("/", tags=["root"])
    async def root():
        """
        Root endpoint with service information.
        """
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()
