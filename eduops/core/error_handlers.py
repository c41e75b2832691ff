# eduops/core/error_handlers.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
import logging

from .exceptions import EduOpsException, ContentionError, DatabaseError

logger = logging.getLogger(__name__)


async def eduops_exception_handler(request: Request, exc: EduOpsException):
    """Handle application exceptions raised by services"""
    if isinstance(exc, ContentionError):
        logger.warning(f"Lock contention - Path: {request.url.path}")
    elif exc.status_code >= 500:
        logger.error(f"Service error: {exc.detail} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": exc.__class__.__name__},
        headers=exc.headers
    )


async def database_exception_handler(request: Request, exc: DBAPIError):
    """Store unreachable or failed mid-statement; no partial writes were committed"""
    logger.error(f"Database failure: {exc.__class__.__name__}: {exc.orig} - Path: {request.url.path}")
    error = DatabaseError()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail, "type": error.__class__.__name__}
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "InternalError"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EduOpsException, eduops_exception_handler)
    app.add_exception_handler(DBAPIError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
