"""
Translation of core LeaveError values into HTTP responses.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from studentleave.core.errors import ErrorKind, LeaveError
from studentleave.core.logging import get_logger

logger = get_logger(__name__)


def status_code_for(error: LeaveError) -> int:
    match error.kind:
        case ErrorKind.VALIDATION:
            return status.HTTP_400_BAD_REQUEST
        case ErrorKind.INVALID_TRANSITION:
            return status.HTTP_409_CONFLICT
        case ErrorKind.UNAUTHORIZED:
            return status.HTTP_403_FORBIDDEN
        case ErrorKind.NOT_FOUND:
            return status.HTTP_404_NOT_FOUND
        case ErrorKind.STORAGE:
            return status.HTTP_503_SERVICE_UNAVAILABLE


async def leave_error_handler(_: Request, exc: LeaveError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"Leave operation failed: {exc.message}")
    return JSONResponse(status_code=code, content={"detail": exc.to_dict()})
