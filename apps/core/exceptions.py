"""
Standardized error handling for the pending revisions API.

Provides consistent error codes, exception classes, and response formatting.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_POST_ID = "INVALID_POST_ID"
    INVALID_REVISION_ID = "INVALID_REVISION_ID"
    INVALID_EDITING_MODE = "INVALID_EDITING_MODE"

    # Authentication/Authorization (401/403)
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POST_LOCKED = "POST_LOCKED"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource errors (404)
    NOT_FOUND = "NOT_FOUND"
    POST_NOT_FOUND = "POST_NOT_FOUND"
    REVISION_NOT_FOUND = "REVISION_NOT_FOUND"
    NO_BACKUP_AVAILABLE = "NO_BACKUP_AVAILABLE"
    BACKUP_NOT_FOUND = "BACKUP_NOT_FOUND"

    # Persistence errors (500)
    REVISION_CREATE_FAILED = "REVISION_CREATE_FAILED"
    APPROVAL_FAILED = "APPROVAL_FAILED"
    REJECTION_FAILED = "REJECTION_FAILED"
    SWITCH_FAILED = "SWITCH_FAILED"
    REVERT_FAILED = "REVERT_FAILED"
    UPDATE_FAILED = "UPDATE_FAILED"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Error Response Schema
# =============================================================================

@dataclass
class ErrorDetail:
    """Detailed error information."""
    code: ErrorCode
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code.value if isinstance(self.code, ErrorCode) else self.code,
            "message": self.message,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class ErrorResponse:
    """Standardized error response."""
    error: ErrorDetail
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.error.to_dict(),
            "request_id": self.request_id,
        }

    def to_response(self, status_code: int = 400) -> Response:
        return Response(self.to_dict(), status=status_code)


# =============================================================================
# Custom Exceptions
# =============================================================================

class PendingRevisionsException(APIException):
    """Base exception for pending revisions API errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}

        if status_code:
            self.status_code = status_code

        super().__init__(detail=self.message)

    def get_error_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(
            error=ErrorDetail(
                code=self.error_code,
                message=self.message,
                field=self.field,
                details=self.error_details if self.error_details else None,
            ),
            request_id=request_id or str(uuid.uuid4()),
        )


class ValidationError(PendingRevisionsException):
    """Validation error."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.VALIDATION_ERROR
    default_detail = "Validation failed"


class InvalidPostIdError(ValidationError):
    error_code = ErrorCode.INVALID_POST_ID
    default_detail = "Invalid post ID."


class PermissionDeniedError(PendingRevisionsException):
    """Permission denied."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.PERMISSION_DENIED
    default_detail = "Sorry, you are not allowed to do that."


class PostLockedError(PermissionDeniedError):
    """Post is locked against edits by non-reviewers."""
    error_code = ErrorCode.POST_LOCKED
    default_detail = "This post is locked. Only reviewers can change it."


class NotFoundError(PendingRevisionsException):
    """Resource not found."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"


class PostNotFoundError(NotFoundError):
    error_code = ErrorCode.POST_NOT_FOUND
    default_detail = "Post not found."


class RevisionNotFoundError(NotFoundError):
    error_code = ErrorCode.REVISION_NOT_FOUND
    default_detail = "Revision not found."


class BackupUnavailableError(NotFoundError):
    """Emergency revert requested without a usable last-known-good revision."""
    error_code = ErrorCode.NO_BACKUP_AVAILABLE
    default_detail = "No backup revision available for emergency revert."


class PersistenceError(PendingRevisionsException):
    """A write to the database failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = ErrorCode.DATABASE_ERROR
    default_detail = "Failed to save changes."


# =============================================================================
# Exception Handler
# =============================================================================

def get_request_id(request) -> str:
    """Get or generate request ID from request."""
    if hasattr(request, 'request_id'):
        return request.request_id
    return str(uuid.uuid4())


def pending_revisions_exception_handler(exc, context):
    """
    Custom exception handler for the pending revisions API.

    Converts all exceptions to standardized error response format.
    """
    request = context.get('request')
    request_id = get_request_id(request) if request else str(uuid.uuid4())

    # Handle our custom exceptions
    if isinstance(exc, PendingRevisionsException):
        error_response = exc.get_error_response(request_id)
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"API Error: {exc.error_code.value}",
            extra={
                "request_id": request_id,
                "error_code": exc.error_code.value,
                "error_message": exc.message,
                "field": exc.field,
                "status_code": exc.status_code,
            }
        )
        return error_response.to_response(exc.status_code)

    # Handle Django validation errors
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            details = exc.message_dict
            message = "Validation failed"
        else:
            details = {"errors": exc.messages}
            message = exc.messages[0] if exc.messages else "Validation failed"

        error_response = ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.VALIDATION_ERROR,
                message=message,
                details=details,
            ),
            request_id=request_id,
        )
        return error_response.to_response(status.HTTP_400_BAD_REQUEST)

    # Handle 404
    if isinstance(exc, Http404):
        error_response = ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.NOT_FOUND,
                message=str(exc) if str(exc) else "Resource not found",
            ),
            request_id=request_id,
        )
        return error_response.to_response(status.HTTP_404_NOT_FOUND)

    # Database failures that escaped the workflow layer
    if isinstance(exc, DatabaseError):
        logger.exception(
            f"Database error: {type(exc).__name__}",
            extra={"request_id": request_id},
        )
        error_response = ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.DATABASE_ERROR,
                message="Failed to save changes.",
            ),
            request_id=request_id,
        )
        return error_response.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)

    # Use DRF's default handler for standard exceptions
    response = drf_exception_handler(exc, context)

    if response is not None:
        error_code = ErrorCode.VALIDATION_ERROR
        if response.status_code == 401:
            error_code = ErrorCode.AUTHENTICATION_REQUIRED
        elif response.status_code == 403:
            error_code = ErrorCode.PERMISSION_DENIED
        elif response.status_code == 404:
            error_code = ErrorCode.NOT_FOUND
        elif response.status_code == 429:
            error_code = ErrorCode.RATE_LIMITED
        elif response.status_code >= 500:
            error_code = ErrorCode.INTERNAL_ERROR

        # Extract message from DRF response
        if isinstance(response.data, dict):
            if 'detail' in response.data:
                message = str(response.data['detail'])
                details = None
            else:
                message = "Validation failed"
                details = response.data
        elif isinstance(response.data, list):
            message = str(response.data[0]) if response.data else "Error"
            details = {"errors": response.data}
        else:
            message = str(response.data)
            details = None

        error_response = ErrorResponse(
            error=ErrorDetail(
                code=error_code,
                message=message,
                details=details,
            ),
            request_id=request_id,
        )
        # Keep WWW-Authenticate and Retry-After from DRF
        wrapped = error_response.to_response(response.status_code)
        for header, value in response.items():
            wrapped[header] = value
        return wrapped

    # Unhandled exception - log and return generic error
    logger.exception(
        f"Unhandled exception: {type(exc).__name__}",
        extra={
            "request_id": request_id,
            "exception_type": type(exc).__name__,
        }
    )

    error_response = ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.INTERNAL_ERROR,
            message="An unexpected error occurred",
        ),
        request_id=request_id,
    )
    return error_response.to_response(status.HTTP_500_INTERNAL_SERVER_ERROR)


# =============================================================================
# Response Helpers
# =============================================================================

def success_response(
    data: Any = None,
    message: str = "",
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Response:
    """
    Create the success envelope used by every revision endpoint.

    Returns:
        Response with {"success": true, "message": ..., "data": ...}
        plus any top-level keys from ``extra`` (e.g. pagination)
    """
    body = {"success": True, "message": message, "data": data}
    if extra:
        body.update(extra)
    return Response(body, status=status_code, headers=headers)


def created_response(
    data: Any = None,
    message: str = "Created successfully",
) -> Response:
    """Create a 201 Created response."""
    return success_response(data=data, message=message, status_code=201)
