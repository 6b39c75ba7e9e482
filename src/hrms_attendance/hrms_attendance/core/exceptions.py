class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an employee, record or leave request does not exist."""


class ConflictError(DomainError):
    """Raised when the current state does not allow the requested transition."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class SchedulingError(DomainError):
    """Raised when the absence trigger cannot be installed."""


class JobRunError(DomainError):
    """Raised when a single employee cannot be processed by the absence job."""

    def __init__(self, employee_id: int, message: str):
        super().__init__(message)
        self.employee_id = employee_id


def http_status(error: DomainError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    return 500
