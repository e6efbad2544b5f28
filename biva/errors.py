"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"
CONFLICT = "CONFLICT"
NOT_ACTIONABLE = "NOT_ACTIONABLE"
PRECONDITION_FAILED = "PRECONDITION_FAILED"
INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
INVALID_ACTION = "INVALID_ACTION"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    code = "DOMAIN_ERROR"


class NotFoundError(DomainError):
    """Raised when a requested resource (or a contact lookup) does not resolve."""

    code = NOT_FOUND


class DomainValidationError(DomainError):
    """Raised when input is malformed or out of range (e.g. a past proposed date, a non-image signature)."""

    code = VALIDATION_ERROR


class InvalidActionError(DomainValidationError):
    """Raised when a negotiation response names an action the responding side cannot take."""

    code = INVALID_ACTION


class ForbiddenError(DomainError):
    """Raised when the actor is not a party to the entity or lacks the required role."""

    code = FORBIDDEN


class UnauthorizedError(DomainError):
    """Raised when credentials are missing or wrong."""

    code = UNAUTHORIZED


class ConflictError(DomainError):
    """Raised when the operation clashes with current state (double signature, overlapping contract, ...)."""

    code = CONFLICT


class DuplicateResourceError(ConflictError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    code = DUPLICATE_RESOURCE


class NotActionableError(ConflictError):
    """Raised when acting on a visit or contract whose status no longer accepts that action."""

    code = NOT_ACTIONABLE


class PreconditionError(DomainError):
    """Raised when required prior data or steps are missing (no id document, confirming before signing)."""

    code = PRECONDITION_FAILED


class InvariantViolationError(DomainError):
    """Raised when persisted state is internally inconsistent (e.g. accepting a null proposed date)."""

    code = INVARIANT_VIOLATION
