"""
Error handling with security-compliant error sanitization.

Domain errors raised by services are mapped to HTTP status codes here;
everything else is reported without leaking internals.
"""

import logging
import traceback
from typing import Any, Callable, Optional
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
import re

from core.errors import (
    DomainError,
    NotFoundError,
    AuthorizationError,
    ConflictError,
    ValidationError,
    IntegrationFailure,
)

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'(postgres(ql)?|redis)(\+\w+)?://[^\s"]+', re.IGNORECASE),  # DSNs
]

DOMAIN_STATUS_CODES: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    IntegrationFailure: status.HTTP_502_BAD_GATEWAY,
}


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def status_for_domain_error(exc: DomainError) -> int:
    """Walk the MRO so subclasses inherit their parent's status code."""
    for klass in type(exc).__mro__:
        if klass in DOMAIN_STATUS_CODES:
            return DOMAIN_STATUS_CODES[klass]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the traceback (only in dev)
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        })
    return errors


def build_error_response(
    exc: Exception,
    path: str,
    method: str,
    request_id: Optional[str] = None,
    debug: bool = False,
) -> JSONResponse:
    """
    Translate an exception into the standard error envelope.

    Returns:
        JSONResponse shaped {"error": {"code", "message", "path", "method", ...}}
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_SERVER_ERROR"
    message = "An unexpected error occurred"
    details = None

    if isinstance(exc, DomainError):
        status_code = status_for_domain_error(exc)
        error_code = exc.code
        message = sanitize_error_message(exc.message)
        details = exc.details or None
        if isinstance(exc, IntegrationFailure):
            logger.error(f"Integration failure: {method} {path} - {message}")
        else:
            logger.info(f"{error_code}: {method} {path} - {message}")

    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        error_code = "HTTP_EXCEPTION"
        message = sanitize_error_message(str(exc.detail))

    elif isinstance(exc, RequestValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        error_code = "REQUEST_VALIDATION_ERROR"
        message = "Request validation failed"
        details = format_validation_errors(exc)
        logger.warning(f"Validation error: {method} {path} - Errors: {details}")

    elif isinstance(exc, IntegrityError):
        status_code = status.HTTP_409_CONFLICT
        error_code = "INTEGRITY_ERROR"
        message = "Database integrity constraint violated"
        if debug:
            details = get_safe_error_details(exc, include_details=True)
        logger.error(f"Database integrity error: {method} {path}", exc_info=not debug)

    elif isinstance(exc, OperationalError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        error_code = "DATABASE_ERROR"
        message = "Database service temporarily unavailable"
        logger.error(f"Database operational error: {method} {path}", exc_info=True)

    elif isinstance(exc, SQLAlchemyError):
        error_code = "DATABASE_ERROR"
        message = "A database error occurred"
        if debug:
            details = get_safe_error_details(exc, include_details=True)
        logger.error(f"SQLAlchemy error: {method} {path}", exc_info=not debug)

    else:
        if debug:
            details = get_safe_error_details(exc, include_details=True)
        logger.error(
            f"Unhandled exception: {method} {path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True,
        )

    error_response = {
        "error": {
            "code": error_code,
            "message": message,
            "path": path,
            "method": method,
        }
    }
    if details is not None:
        error_response["error"]["details"] = details
    if request_id:
        error_response["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=error_response)


class ErrorHandlingMiddleware:
    """
    Last line of defence for exceptions that escape the route handlers.

    Domain and validation errors are normally answered by the exception
    handlers in setup_error_handlers; this catches anything raised outside
    them so the client still gets the standard envelope.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        request_id = None
        if "headers" in scope:
            headers = dict(scope["headers"])
            raw = headers.get(b"x-request-id")
            if raw:
                request_id = raw.decode()

        return build_error_response(
            exc,
            path=scope.get("path", "unknown"),
            method=scope.get("method", "unknown"),
            request_id=request_id,
            debug=self.debug,
        )


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether to include detailed error information
    """

    def _respond(request: Request, exc: Exception) -> JSONResponse:
        return build_error_response(
            exc,
            path=str(request.url.path),
            method=request.method,
            request_id=getattr(request.state, "request_id", None),
            debug=debug,
        )

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        """Handle errors raised by service operations."""
        return _respond(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return _respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        return _respond(request, exc)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        """Handle database errors that escaped the services."""
        return _respond(request, exc)
