"""
Shared HTTP error classes and utilities for all Perfex services.

Provides:
- Base exception class for API errors
- Common subclasses (Validation, Auth, NotFound, Service, Upstream)
- The shared response envelope for failures
- Utility to convert exceptions to error responses
- FastAPI exception handler registration

Common Usage Patterns:
=====================

>>> from services.common.http_errors import NotFoundError, ServiceError
>>>
>>> # Resource not found
>>> error = NotFoundError("Contact")
>>> error.message
'Contact not found'
>>>
>>> # A write succeeded but the follow-up read came back empty
>>> error = ServiceError("Failed to create contact", code=ErrorCode.DATABASE_ERROR)

FastAPI Integration:
>>> from fastapi import FastAPI
>>> from services.common.http_errors import register_exception_handlers
>>>
>>> app = FastAPI()
>>> register_exception_handlers(app)

Envelope:
=========
Every failure is rendered as

    {"success": false, "error": {"code": "...", "message": "..."}, "request_id": "..."}

except resource-not-found errors, which use the compact form

    {"success": false, "error": "Contact not found", "request_id": "..."}

Error Code Taxonomy:
===================
- VALIDATION_FAILED : Input validation errors (422)
- AUTH_* / TOKEN_* : Authentication errors (401)
- INSUFFICIENT_PERMISSIONS : Authorization errors (403)
- NOT_FOUND : Resource not found (404)
- INTERNAL_ERROR / SERVICE_ERROR / DATABASE_ERROR : Internal errors (500)
- UPSTREAM_ERROR : Calls to other modules failed (502)
"""

import uuid
from enum import Enum
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

from services.common.logging_config import get_logger, log_http_error, request_id_var

logger = get_logger(__name__)

GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"


class ErrorCode(str, Enum):
    """Standardized error codes for all Perfex services."""

    # General (4xx)
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Authentication (401)
    AUTH_FAILED = "AUTH_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"

    # Authorization (403)
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Service (5xx)
    SERVICE_ERROR = "SERVICE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"


class ErrorDetail(BaseModel):
    """Structured error body."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """
    Standardized failure envelope for all Perfex services.

    Attributes:
        success: Always False for errors
        error: Structured detail, or a bare message for not-found responses
        request_id: Identifier for tracing and debugging purposes
    """

    success: bool = False
    error: Union[ErrorDetail, str]
    request_id: str

    def to_content(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _current_request_id() -> str:
    request_id = request_id_var.get()
    if not request_id or request_id == "uninitialized":
        return str(uuid.uuid4())
    return request_id


class PerfexAPIException(Exception):
    """
    Base exception class for all Perfex API errors.

    Attributes:
        message: Human-readable error message
        details: Dictionary containing additional error context
        error_type: Categorization of the error (validation_error, auth_error, etc.)
        error_code: Specific error code from the ErrorCode enum
        status_code: HTTP status code to return
        request_id: Identifier for request tracing
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.status_code = status_code
        self.request_id = request_id or _current_request_id()
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert the exception to the failure envelope."""
        return ErrorResponse(
            error=ErrorDetail(
                code=self.error_code.value,
                message=self.message,
                details=self.details or None,
            ),
            request_id=self.request_id,
        )


class ValidationError(PerfexAPIException):
    """
    Exception for input validation errors (HTTP 422).

    Args:
        message: Human-readable description of the validation failure
        field: Optional field name that failed validation
        value: Optional invalid value that was provided
        details: Optional additional validation context
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        validation_details = dict(details or {})
        if field:
            validation_details["field"] = field
        if value is not None:
            validation_details["value"] = str(value)
        super().__init__(
            message=message,
            details=validation_details,
            error_type="validation_error",
            error_code=ErrorCode.VALIDATION_FAILED,
            status_code=422,
        )
        self.field = field
        self.value = value


class NotFoundError(PerfexAPIException):
    """
    Exception for resource not found errors (HTTP 404).

    Covers both a missing row and a row owned by another organization; the
    two are deliberately indistinguishable to the caller.

    Examples:
        >>> NotFoundError("Contact").message
        'Contact not found'
        >>> NotFoundError("Contact", "c-1").message
        'Contact c-1 not found'
    """

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if identifier:
            message = f"{resource} {identifier} not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            message=message,
            details={**(details or {}), "resource": resource},
            error_type="not_found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier

    def to_error_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, request_id=self.request_id)


class AuthError(PerfexAPIException):
    """
    Exception for authentication and authorization errors.

    Defaults to HTTP 401; permission failures pass ``status_code=403`` and an
    authorization code.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.AUTH_FAILED,
        status_code: int = 401,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="auth_error",
            error_code=code,
            status_code=status_code,
        )


class ServiceError(PerfexAPIException):
    """
    Exception for internal service errors (HTTP 500).

    Raised when the store is left in an unexpected state, e.g. a write
    succeeded but the row cannot be read back.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.SERVICE_ERROR,
        status_code: int = 500,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="service_error",
            error_code=code,
            status_code=status_code,
        )


class UpstreamError(PerfexAPIException):
    """
    Exception for failed calls to another Perfex module (HTTP 502).

    Attributes:
        endpoint: Module endpoint that failed
        upstream_status: Status code returned by the module, if any
    """

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.UPSTREAM_ERROR,
        status_code: int = 502,
    ):
        upstream_details = dict(details or {})
        if endpoint:
            upstream_details["endpoint"] = endpoint
        if upstream_status is not None:
            upstream_details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            details=upstream_details,
            error_type="upstream_error",
            error_code=code,
            status_code=status_code,
        )
        self.endpoint = endpoint
        self.upstream_status = upstream_status


def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to the failure envelope.

    1. PerfexAPIException: uses its own to_error_response()
    2. HTTPException: keeps the status-derived detail message
    3. Anything else: a generic internal error that does not echo the
       exception text back to the client
    """
    if isinstance(exc, PerfexAPIException):
        return exc.to_error_response()
    if isinstance(exc, HTTPException):
        if isinstance(exc.detail, dict):
            message = str(exc.detail.get("message", "HTTP error"))
            details: Optional[Dict[str, Any]] = exc.detail
        else:
            message = str(exc.detail)
            details = None
        return ErrorResponse(
            error=ErrorDetail(code=f"HTTP_{exc.status_code}", message=message, details=details),
            request_id=_current_request_id(),
        )
    return ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.INTERNAL_ERROR.value,
            message=GENERIC_INTERNAL_MESSAGE,
        ),
        request_id=_current_request_id(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the shared exception handlers on a FastAPI application.

    - PerfexAPIException: the exception's status code and envelope
    - RequestValidationError: 422 with the failing fields
    - HTTPException: the exception's status code, normalized envelope
    - Exception: 500 with a generic message
    """

    @app.exception_handler(PerfexAPIException)
    async def perfex_api_exception_handler(
        request: Request, exc: PerfexAPIException
    ) -> JSONResponse:
        log_http_error(
            exc.error_type,
            exc.message,
            exc.status_code,
            request_id=exc.request_id,
            details=exc.details,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_error_response().to_content()
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        error = ValidationError("Request validation failed", details={"errors": errors})
        log_http_error(
            error.error_type,
            error.message,
            error.status_code,
            request_id=error.request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=error.status_code, content=error.to_error_response().to_content()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.to_content(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        error_response = exception_to_response(exc)
        return JSONResponse(status_code=500, content=error_response.to_content())
