"""Survey schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rollcall.core.sanitization import MAX_TEXT_LENGTH, sanitize_text


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True

    @field_validator('title')
    @classmethod
    def sanitize_title_field(cls, v: str) -> str:
        sanitized = sanitize_text(v, max_length=MAX_TEXT_LENGTH)
        if not sanitized:
            raise ValueError("Title cannot be empty")
        return sanitized


class SurveyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    is_active: Optional[bool] = None

    @field_validator('title')
    @classmethod
    def sanitize_title_field(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        sanitized = sanitize_text(v, max_length=MAX_TEXT_LENGTH)
        if not sanitized:
            raise ValueError("Title cannot be empty")
        return sanitized


class SurveyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    is_active: bool
    created_at: datetime
