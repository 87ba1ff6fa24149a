"""
Global Exception Handlers for FastAPI Application.

Engine errors that escape a route (``AutomationError`` subclasses) are
reported with their machine readable code. Any other unhandled exception is
logged with its request context and answered with a generic 500 carrying an
error ID that clients can quote when reporting issues.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from automation_engine.core.errors import AutomationError
from automation_engine.core.logging_config import get_logger

logger = get_logger(__name__)


async def automation_error_handler(request: Request, exc: AutomationError) -> JSONResponse:
    """
    Report an engine error raised outside of a run.

    Args:
        request: The HTTP request that caused the exception
        exc: The engine error

    Returns:
        JSONResponse (HTTP 400) with the error message and code
    """
    logger.warning(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
            "error_type": type(exc).__name__,
            "code": exc.code,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AutomationError, automation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
