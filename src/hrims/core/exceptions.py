class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class ConflictError(DomainError):
    """Raised when an action clashes with the current state of a record."""
