class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist in the tenant."""


class StoreError(Exception):
    """Raised when the backing store cannot complete an operation."""
