"""Database models."""
from rollcall.db.models.participant import Participant, CheckinSession
from rollcall.db.models.audit_log import AuditLog, AuditAction, AuditTargetType
from rollcall.db.models.rate_limit import RateLimitCounter
from rollcall.db.models.registration import Survey, RegistrationResponse

__all__ = [
    "Participant",
    "CheckinSession",
    "AuditLog",
    "AuditAction",
    "AuditTargetType",
    "RateLimitCounter",
    "Survey",
    "RegistrationResponse",
]
