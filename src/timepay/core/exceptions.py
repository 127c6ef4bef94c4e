class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_failure"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist (or is outside the caller's company)."""

    kind = "not_found"


class ConflictError(DomainError):
    """Raised on duplicates and on operations not allowed in the entity's current state."""

    kind = "conflict"


InvalidStateError = ConflictError


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "forbidden"
