"""Custom exception classes for the application.

Defines domain-specific exceptions raised by the leveling, nutrition and
feed services and rendered consistently by the HTTP exception handlers.
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
    """Exception raised when a referenced user profile or record is absent."""

    def __init__(self, resource: str, identifier: Any):
        """Initialize not found error.

        Args:
            resource: Type of resource (e.g., 'UserProfile').
            identifier: ID or identifier that was not found.
        """
        message = f"{resource} with id '{identifier}' not found"
        super().__init__(message, status_code=404, details={"resource": resource, "id": identifier})


class InvalidArgumentError(AppException):
    """Exception raised for non-positive XP grants or negative nutrition values."""

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize invalid argument error.

        Args:
            message: Validation error message.
            field: Optional field name that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)


class StorageError(AppException):
    """Exception raised when a transaction, commit or connection fails."""

    def __init__(self, message: str, operation: Optional[str] = None):
        """Initialize storage error.

        Args:
            message: Storage error message.
            operation: Optional operation that failed (e.g., 'grant_xp').
        """
        details = {"operation": operation} if operation else {}
        super().__init__(message, status_code=500, details=details)


class ConflictError(AppException):
    """Exception raised when a concurrent modification could not be reconciled.

    Callers should retry the whole operation.
    """

    def __init__(self, message: str, resource: Optional[str] = None):
        details = {"retryable": True}
        if resource:
            details["resource"] = resource
        super().__init__(message, status_code=503, details=details)


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
