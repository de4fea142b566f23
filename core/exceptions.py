"""Custom exception classes for the application.

Defines domain-specific exceptions that can be raised throughout the
application and handled consistently by exception handlers.
"""

from typing import Optional, Any, Dict


class AppException(Exception):
    """Base exception class for all application exceptions.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional additional error details.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize application exception.

        Args:
            message: Error message.
            status_code: HTTP status code (default: 500).
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        """Initialize not found error.

        Args:
            resource: Type of resource (e.g., 'User', 'Report').
            identifier: ID or identifier that was not found.
        """
        message = f"{resource} with id '{identifier}' not found"
        super().__init__(message, status_code=404, details={"resource": resource, "id": identifier})


class ValidationError(AppException):
    """Exception raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize validation error.

        Args:
            message: Validation error message.
            field: Optional field name that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(AppException):
    """Exception raised when the request carries no known user."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status_code=401)


class PermissionDeniedError(AppException):
    """Exception raised when the current user may not act on a target."""

    def __init__(self, message: str = "Access denied", target_id: Optional[Any] = None):
        """Initialize permission error.

        Args:
            message: Error message.
            target_id: Optional id of the user or resource that was refused.
        """
        details = {"target_id": target_id} if target_id is not None else {}
        super().__init__(message, status_code=403, details=details)


class DependentLimitError(AppException):
    """Exception raised when a plan's dependent quota is already used up."""

    def __init__(self, max_allowed: int):
        super().__init__(
            f"Limite de dependentes atingido. Seu plano permite {max_allowed} dependente(s).",
            status_code=409,
            details={"max_dependentes": max_allowed},
        )


class DashboardTimeoutError(AppException):
    """Exception raised when the dashboard summary does not finish in time."""

    def __init__(self, seconds: float):
        super().__init__(
            "Dashboard summary timed out",
            status_code=504,
            details={"timeout_seconds": seconds},
        )


class DatabaseError(AppException):
    """Exception raised when database operations fail."""

    def __init__(self, message: str, operation: Optional[str] = None):
        """Initialize database error.

        Args:
            message: Database error message.
            operation: Optional operation that failed (e.g., 'create', 'update').
        """
        details = {"operation": operation} if operation else {}
        super().__init__(message, status_code=500, details=details)


class ConfigurationError(AppException):
    """Exception raised when application configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        """Initialize configuration error.

        Args:
            message: Configuration error message.
            config_key: Optional configuration key that is invalid.
        """
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, status_code=500, details=details)
