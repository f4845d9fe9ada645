"""
Error Rendering

Controllers raise; only this module turns exceptions into responses.
Every error body has the same shape: {"status": <int>, "message": <str>}.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.services.storage import StorageError
from src.validation import ValidationError


logger = structlog.get_logger(__name__)


class AuthenticationError(Exception):
    """The request carries no usable user identity."""
    status_code = 401

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def send_error(error: Exception) -> JSONResponse:
    """Render an error as a JSON response with its status code."""
    status = getattr(error, "status_code", 500)
    message = getattr(error, "message", None) or str(error) or "Internal server error"

    if status >= 500:
        logger.error("request_failed", status=status, error=message)
    else:
        logger.info("request_rejected", status=status, error=message)

    return JSONResponse(status_code=status, content={"status": status, "message": message})


def _describe_request_errors(error: RequestValidationError) -> str:
    parts = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()) if part != "body")
        parts.append(f"{location}: {issue.get('msg')}" if location else issue.get("msg"))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Route every domain exception through send_error."""

    async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
        if getattr(exc, "status_code", 500) >= 500:
            await request.app.state.components.audit_logger.log_error(
                error_type=type(exc).__name__,
                error_message=getattr(exc, "message", None) or str(exc),
                details={"method": request.method, "path": request.url.path},
            )
        return send_error(exc)

    async def handle_request_validation(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return send_error(ValidationError(_describe_request_errors(exc)))

    app.add_exception_handler(StorageError, handle_domain_error)
    app.add_exception_handler(ValidationError, handle_domain_error)
    app.add_exception_handler(AuthenticationError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
