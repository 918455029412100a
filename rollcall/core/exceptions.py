"""Typed failures raised by the service layer.

Every error carries a stable ``code`` that API clients can branch on and the
HTTP status the API layer answers with. Endpoints never translate these by
hand; ``rollcall.main`` renders them through a single exception handler.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input is malformed or a required field is missing."""

    code = "validation_error"
    status_code = 422


class NotFoundError(DomainError):
    """Raised for unknown ids, keys, codes, or a missing/inactive survey."""

    code = "not_found"
    status_code = 404


class RateLimitedError(DomainError):
    """Raised by admission control; ``retry_after`` is in whole seconds."""

    code = "rate_limited"
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ConflictError(DomainError):
    """Raised when a concurrent writer won a race on the same record."""

    code = "conflict"
    status_code = 409


class StorageError(DomainError):
    """Transient failure of the database. Callers retry with backoff."""

    code = "storage_error"
    status_code = 503
