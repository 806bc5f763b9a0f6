"""Custom exceptions for API and domain error handling."""

from typing import Any

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Custom exception for API errors with standard format.

    Example:
        raise APIException(
            code="ROUTE_NOT_FOUND",
            message="Route not found",
            status_code=status.HTTP_404_NOT_FOUND
        )
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API exception.

        Args:
            code: Error code (e.g., 'AUTH_INVALID_TOKEN', 'ROUTE_NOT_FOUND').
            message: Human-readable error message.
            status_code: HTTP status code (default: 400).
            details: Optional additional error details.
        """
        super().__init__(
            status_code=status_code,
            detail={"error": {"code": code, "message": message, "details": details}},
        )
        self.code = code
        self.message = message
        self.details = details


class DomainError(Exception):
    """Base exception raised by domain services and aggregates."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any | None = None) -> None:
        message = f"{resource} not found"
        if resource_id is not None:
            message += f" (ID: {resource_id})"
        super().__init__(message, {"resource": resource, "id": resource_id})
        self.resource = resource
        self.resource_id = resource_id


class DuplicateEntityError(DomainError):
    """Raised when a uniqueness rule (e.g. inventory code) would be violated."""

    code = "DUPLICATE_ENTITY"


class InsufficientPermissionsError(DomainError):
    """Raised when the caller lacks a permission the operation requires."""

    code = "INSUFFICIENT_PERMISSIONS"


class BusinessRuleError(DomainError):
    """Raised when an operation breaks an aggregate invariant."""

    code = "BUSINESS_RULE_VIOLATION"


_DOMAIN_STATUS_CODES: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateEntityError: status.HTTP_409_CONFLICT,
    InsufficientPermissionsError: status.HTTP_403_FORBIDDEN,
    BusinessRuleError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def to_api_exception(error: DomainError) -> APIException:
    """Translate a domain error into its HTTP representation.

    Args:
        error: Domain error raised by a service.

    Returns:
        APIException carrying the matching status code.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _DOMAIN_STATUS_CODES.items():
        if isinstance(error, error_type):
            status_code = mapped
            break
    return APIException(
        code=error.code,
        message=error.message,
        status_code=status_code,
        details=error.details,
    )


# Helper functions for common error codes
def raise_unauthorized(
    code: str = "AUTH_UNAUTHORIZED", message: str = "Unauthorized"
) -> None:
    """Raise 401 Unauthorized exception.

    Raises:
        APIException: 401 Unauthorized error.
    """
    raise APIException(
        code=code, message=message, status_code=status.HTTP_401_UNAUTHORIZED
    )


def raise_forbidden(
    code: str = "AUTH_INSUFFICIENT_PERMISSIONS",
    message: str = "Insufficient permissions",
    details: dict[str, Any] | None = None,
) -> None:
    """Raise 403 Forbidden exception.

    Raises:
        APIException: 403 Forbidden error.
    """
    raise APIException(
        code=code,
        message=message,
        status_code=status.HTTP_403_FORBIDDEN,
        details=details,
    )
