"""Custom exception classes for API errors."""

from typing import Any

from fastapi import HTTPException, status


class APIError(HTTPException):
    """Base API error with structured response."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
    ):
        self.code = code
        self.error_message = message
        self.details = details

        super().__init__(
            status_code=status_code,
            detail={
                "error": {
                    "code": code,
                    "message": message,
                    "details": details,
                }
            },
        )


class NotFoundError(APIError):
    """Resource not found error (404)."""

    def __init__(self, resource: str, resource_id: str | None = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message=message,
        )


class InvalidStateError(APIError):
    """Operation not allowed in the resource's current state (409)."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code="INVALID_STATE",
            message=message,
            details=details,
        )


class AlreadyExistsError(APIError):
    """Duplicate action or resource (409)."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code="ALREADY_EXISTS",
            message=message,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required error (401)."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="UNAUTHORIZED",
            message=message,
        )


class ValidationError(APIError):
    """Validation error (422)."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class UpstreamUnavailableError(APIError):
    """Backing store or cache could not be reached (503)."""

    def __init__(self, service: str, message: str | None = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code="UPSTREAM_UNAVAILABLE",
            message=message or f"{service} is unavailable",
            details={"service": service},
        )
