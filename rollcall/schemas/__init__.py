"""Pydantic schemas for request/response validation."""
from rollcall.schemas.auth import AdminLoginRequest, AdminLoginResponse
from rollcall.schemas.audit import (
    AuditClearResponse,
    AuditEntryCreate,
    AuditEntryResponse,
    AuditPageResponse,
)
from rollcall.schemas.checkin import (
    AttendanceDetail,
    DeriveKeyRequest,
    DeriveKeyResponse,
    ScanRequest,
    ScanResponse,
    SessionDetail,
    ToggleResponse,
)
from rollcall.schemas.participant import (
    ParticipantCreate,
    ParticipantResponse,
    ParticipantUpdate,
    ParticipantUpdateResponse,
)
from rollcall.schemas.registration import (
    CodeLookupRequest,
    RegistrationDetail,
    RegistrationEdit,
    RegistrationSubmit,
    RegistrationSubmitResponse,
    SendCodeRequest,
)
from rollcall.schemas.survey import SurveyCreate, SurveyResponse, SurveyUpdate
from rollcall.schemas.common import SuccessResponse, ErrorResponse, ErrorDetail

__all__ = [
    "AdminLoginRequest",
    "AdminLoginResponse",
    "AuditClearResponse",
    "AuditEntryCreate",
    "AuditEntryResponse",
    "AuditPageResponse",
    "AttendanceDetail",
    "DeriveKeyRequest",
    "DeriveKeyResponse",
    "ScanRequest",
    "ScanResponse",
    "SessionDetail",
    "ToggleResponse",
    "ParticipantCreate",
    "ParticipantResponse",
    "ParticipantUpdate",
    "ParticipantUpdateResponse",
    "CodeLookupRequest",
    "RegistrationDetail",
    "RegistrationEdit",
    "RegistrationSubmit",
    "RegistrationSubmitResponse",
    "SendCodeRequest",
    "SurveyCreate",
    "SurveyResponse",
    "SurveyUpdate",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
