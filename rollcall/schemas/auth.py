"""Authentication schemas."""
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from rollcall.core.sanitization import sanitize_name


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=100)  # Staff name recorded in audit entries

    @field_validator('name')
    @classmethod
    def sanitize_name_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return sanitize_name(v)


class AdminLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
