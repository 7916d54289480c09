"""
StreakFit API - Custom Exception Classes.

Exception hierarchy for application error handling.
"""

from typing import Optional


class StreakFitException(Exception):
    """
    Base exception class for StreakFit application.

    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code for the error.
        detail: Additional error details.
        error_code: Stable machine-readable error kind.
    """

    error_code: str = "error"

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        detail: Optional[str] = None
    ):
        """
        Initialize StreakFitException.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code (default 500).
            detail: Additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.detail = detail or message
        super().__init__(self.message)


class UnauthorizedError(StreakFitException):
    """
    Exception raised when no caller identity is present.

    Never retried automatically.
    """

    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Not authenticated",
        detail: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=401,
            detail=detail
        )


class NotFoundError(StreakFitException):
    """
    Exception raised when a resource is not found.

    Used when:
    - Session not found
    - Workout or exercise reference missing
    """

    error_code = "not_found"

    def __init__(
        self,
        message: str = "Resource not found",
        detail: Optional[str] = None
    ):
        """
        Initialize NotFoundError.

        Args:
            message: Error message.
            detail: Additional details.
        """
        super().__init__(
            message=message,
            status_code=404,
            detail=detail
        )


class ValidationError(StreakFitException):
    """Exception raised for input validation failures."""

    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation error",
        detail: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=400,
            detail=detail
        )


class ForbiddenError(StreakFitException):
    """
    Exception raised for authorization failures.

    Used when:
    - Session belongs to another user
    """

    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Access denied",
        detail: Optional[str] = None
    ):
        """
        Initialize ForbiddenError.

        Args:
            message: Error message.
            detail: Additional details.
        """
        super().__init__(
            message=message,
            status_code=403,
            detail=detail
        )


class AlreadyClosedError(StreakFitException):
    """Exception raised when completing a session that is already closed."""

    error_code = "already_closed"

    def __init__(
        self,
        message: str = "Session already completed",
        detail: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=409,
            detail=detail
        )


class ConflictError(StreakFitException):
    """
    Exception raised for resource conflicts.

    Used when:
    - Stats kept changing under a compare-and-swap write
    """

    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource conflict",
        detail: Optional[str] = None
    ):
        """
        Initialize ConflictError.

        Args:
            message: Error message.
            detail: Additional details.
        """
        super().__init__(
            message=message,
            status_code=409,
            detail=detail
        )


class RunnerStateError(StreakFitException):
    """Exception raised for an action the workout runner cannot take in its current phase."""

    error_code = "invalid_runner_state"

    def __init__(
        self,
        message: str = "Action not allowed in the current runner phase",
        detail: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=409,
            detail=detail
        )


ERRORS_BY_CODE = {
    cls.error_code: cls
    for cls in (
        UnauthorizedError,
        NotFoundError,
        ValidationError,
        ForbiddenError,
        AlreadyClosedError,
        ConflictError,
        RunnerStateError,
    )
}
