"""Custom exceptions for the Cupid match engine."""

from typing import Any, Dict, Optional


class CupidError(Exception):
    """Base exception for all Cupid errors."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the error with a message and optional details.

        Args:
            message (str): Error message describing what went wrong.
            status_code (int): HTTP status code associated with the error (default 500).
            details (Optional[Dict[str, Any]]): Additional context or debug information.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(CupidError):
    """Raised when there's an issue with the application configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 500, details)


class DatabaseError(CupidError):
    """Raised when a storage operation fails and retrying will not help."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 500, details)


class TransientError(CupidError):
    """
    Raised when storage contention or a timeout outlasts the retry budget.

    The request had no effect and is safe to retry.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 503, details)


class ValidationError(CupidError):
    """Raised when request data is malformed (empty report reason, empty message)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 422, details)


class AuthenticationError(CupidError):
    """Raised when the request carries no caller identity."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 401, details)


class NotFoundError(CupidError):
    """Raised when a referenced user does not exist."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 404, details)


class ConflictError(CupidError):
    """Raised on a duplicate interaction or a duplicate block."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 409, details)


class InvalidOperationError(CupidError):
    """Raised for self-targeting actions and for unblocking a user who is not blocked."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 400, details)


class ForbiddenError(CupidError):
    """Raised when the caller is not allowed to perform the action (e.g. messaging without a match)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 403, details)


class ExternalServiceError(CupidError):
    """Raised when an external collaborator (Redis, notification sink) fails."""

    def __init__(self, message: str, service: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the external service error.

        Args:
            message (str): Error message.
            service (str): Name of the external service.
            details (Optional[Dict[str, Any]]): Additional details.
        """
        error_details = details or {}
        error_details["service"] = service
        super().__init__(message, 502, error_details)
