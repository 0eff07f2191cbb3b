"""
academia/errors.py
Centralized error handling

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "ErrorType",
    "message": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}

HTTP STATUS CODE DISCIPLINE:
- 400: Invalid input / malformed request (including schema validation)
- 401: Authentication missing or invalid
- 403: Authenticated but not allowed (role / ownership / assignment)
- 404: Referenced entity does not exist
- 409: Uniqueness violation
- 429: Rate limit exceeded
- 502: Content generation service failed
- 500: Internal only, never caused by user input
"""

import logging
import uuid
from typing import Optional, Dict, Any

from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    INVALID_QUESTIONS = "INVALID_QUESTIONS"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    NOT_FACULTY = "NOT_FACULTY"

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    AUTH_INVALID = "AUTH_INVALID"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    FORBIDDEN = "FORBIDDEN"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    OWNERSHIP_VIOLATION = "OWNERSHIP_VIOLATION"
    COURSE_NOT_ASSIGNED = "COURSE_NOT_ASSIGNED"

    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    CLO_NOT_FOUND = "CLO_NOT_FOUND"
    ASSIGNMENT_NOT_FOUND = "ASSIGNMENT_NOT_FOUND"
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"

    CONFLICT = "CONFLICT"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    COURSE_CODE_TAKEN = "COURSE_CODE_TAKEN"
    DEPARTMENT_CODE_TAKEN = "DEPARTMENT_CODE_TAKEN"
    CLO_NUMBER_TAKEN = "CLO_NUMBER_TAKEN"
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"

    RATE_LIMITED = "RATE_LIMITED"

    GENERATION_FAILED = "GENERATION_FAILED"
    GENERATION_TIMEOUT = "GENERATION_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIError(Exception):
    """Base API exception with consistent structure"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.code
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        """Convert to FastAPI JSONResponse"""
        headers = None
        if self.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(status_code=self.status_code, content=self.to_dict(), headers=headers)


class BadRequestError(APIError):
    """400 Bad Request - Invalid input"""
    def __init__(self, message: str, code: str = ErrorCode.INVALID_INPUT, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="Bad Request",
            message=message,
            code=code,
            details=details
        )


class UnauthorizedError(APIError):
    """401 Unauthorized - Authentication required"""
    def __init__(self, message: str = "Authentication required", code: str = ErrorCode.AUTH_REQUIRED):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="Unauthorized",
            message=message,
            code=code
        )


class ForbiddenError(APIError):
    """403 Forbidden - Access denied"""
    def __init__(self, message: str, code: str = ErrorCode.FORBIDDEN, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error="Forbidden",
            message=message,
            code=code,
            details=details
        )


class NotFoundError(APIError):
    """404 Not Found - Resource does not exist"""
    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        code: str = ErrorCode.NOT_FOUND,
        details: Optional[Dict] = None
    ):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error="Not Found",
            message=message,
            code=code,
            details=details
        )


class ConflictError(APIError):
    """409 Conflict - Uniqueness violation"""
    def __init__(self, message: str, code: str = ErrorCode.CONFLICT, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error="Conflict",
            message=message,
            code=code,
            details=details
        )


class GenerationFailedError(APIError):
    """502 Bad Gateway - Content generation service failed"""
    def __init__(self, message: str, retryable: bool = False, code: str = ErrorCode.GENERATION_FAILED):
        self.retryable = retryable
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            error="Generation Failed",
            message=message,
            code=code,
            details={"retryable": retryable}
        )


class InternalError(APIError):
    """500 Internal Server Error - Use sparingly, only for true internal failures"""
    def __init__(self, message: str = "An internal error occurred", log_id: Optional[str] = None):
        details = {"log_id": log_id} if log_id else None
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="Internal Error",
            message=message,
            code=ErrorCode.INTERNAL_ERROR,
            details=details
        )


def new_log_id() -> str:
    return str(uuid.uuid4())[:8]


def conflict_from_integrity(error: IntegrityError, message: str, code: str = ErrorCode.CONFLICT) -> ConflictError:
    """
    Translate a store-level uniqueness violation into a 409.

    The pre-checks in the services catch the common case; this covers the
    window where two concurrent writers both pass the pre-check.
    """
    logger.warning(f"Integrity violation mapped to conflict ({code}): {error.orig}")
    return ConflictError(message, code=code)


ERROR_MAPPING = {
    400: ("Bad Request", ErrorCode.INVALID_INPUT),
    401: ("Unauthorized", ErrorCode.AUTH_REQUIRED),
    403: ("Forbidden", ErrorCode.FORBIDDEN),
    404: ("Not Found", ErrorCode.NOT_FOUND),
    405: ("Method Not Allowed", ErrorCode.INVALID_INPUT),
    409: ("Conflict", ErrorCode.CONFLICT),
    429: ("Too Many Requests", ErrorCode.RATE_LIMITED),
    500: ("Internal Error", ErrorCode.INTERNAL_ERROR),
}
