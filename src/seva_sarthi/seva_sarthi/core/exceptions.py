class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials or bearer tokens are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist (or is inactive)."""

    status_code = 404


class RateLimitError(DomainError):
    """Raised when too many attempts were made within the limiter window."""

    status_code = 429
