"""Common response schemas."""
from pydantic import BaseModel
from typing import Optional

from rollcall.core.exceptions import DomainError, RateLimitedError


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    """Stable machine-readable code plus a message safe to show registrants."""
    code: str
    message: str
    # Seconds until an admission-controlled request may be retried
    retry_after: Optional[int] = None


class ErrorResponse(BaseModel):
    """Standard error response body rendered for every DomainError."""
    success: bool = False
    error: ErrorDetail

    @classmethod
    def from_error(cls, exc: DomainError) -> "ErrorResponse":
        retry_after = exc.retry_after if isinstance(exc, RateLimitedError) else None
        return cls(error=ErrorDetail(code=exc.code, message=exc.message, retry_after=retry_after))
