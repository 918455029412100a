"""Check-in and identity schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from rollcall.core.sanitization import validate_payload_length


class ScanRequest(BaseModel):
    payload: str = Field(..., min_length=1)

    @field_validator('payload')
    @classmethod
    def validate_payload_field(cls, v: str) -> str:
        # Payload text is matched exactly; only the length is checked
        return validate_payload_length(v)


class DeriveKeyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    birth_date: str = Field(..., min_length=10, max_length=10)


class DeriveKeyResponse(BaseModel):
    key: str
    payload: str


class SessionDetail(BaseModel):
    id: str
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None


class AttendanceDetail(BaseModel):
    participant_id: str
    name: str
    status: str
    lookup_key: Optional[str] = None
    sessions: List[SessionDetail]
    total_attended_seconds: float


class ToggleResponse(BaseModel):
    participant_id: str
    session_id: str
    action: str
    status: str
    check_in_time: datetime
    check_out_time: Optional[datetime] = None


class ScanResponse(BaseModel):
    participant_id: str
    name: str
    status: str
